"""Exception hierarchy for validate-rules."""


class ValidateRulesError(Exception):
    """Base exception for all validate-rules errors."""


class SkillConfigError(ValidateRulesError):
    """Invalid or missing skill registry configuration."""


class RulesDirectoryError(ValidateRulesError):
    """A skill's rules directory could not be listed."""
