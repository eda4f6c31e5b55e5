"""
validate-rules: Structural validation for skill rule files.

Parses the markdown rule files of each configured skill and checks they
carry a title, an explanation, incorrect/correct code examples and a
valid impact level.
"""

__version__ = "0.1.0"

from validate_rules.types import CodeExample, ImpactLevel, Rule, ValidationError
from validate_rules.parser import parse_rule, parse_rule_file
from validate_rules.config import DEFAULT_SKILLS, SkillConfig, load_skills
from validate_rules.validator import ValidationReport, validate_rule, validate_skills

__all__ = [
    # Types
    "CodeExample",
    "ImpactLevel",
    "Rule",
    "ValidationError",
    # Parsing
    "parse_rule",
    "parse_rule_file",
    # Configuration
    "DEFAULT_SKILLS",
    "SkillConfig",
    "load_skills",
    # Validation
    "ValidationReport",
    "validate_rule",
    "validate_skills",
]
