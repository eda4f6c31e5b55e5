"""
Structural validation of rule files.

Every rule must have a title, an explanation, labeled code examples
(at least one incorrect- or correct-style label) and a valid impact level.
Errors are accumulated per file and across skills; only a rules directory
that cannot be listed stops the run.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from validate_rules.config import SkillConfig, SkillRegistry
from validate_rules.exceptions import RulesDirectoryError
from validate_rules.parser import parse_rule_file
from validate_rules.types import ImpactLevel, Rule, ValidationError


logger = logging.getLogger(__name__)

RULE_SUFFIX = ".md"
IGNORE_PREFIX = "_"

# Substrings, matched case-insensitively against example labels
INCORRECT_KEYWORDS = ("incorrect", "wrong", "bad")
CORRECT_KEYWORDS = ("correct", "good", "usage", "implementation", "example")


@dataclass
class ValidationReport:
    """Errors collected over one validation run."""
    errors: list[ValidationError] = field(default_factory=list)
    files_checked: int = 0

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def add(self, error: ValidationError) -> None:
        self.errors.append(error)


def _label_matches(label: str, keywords: tuple[str, ...]) -> bool:
    label = label.lower()
    return any(keyword in label for keyword in keywords)


def validate_rule(rule: Rule, file: str) -> list[ValidationError]:
    """
    Check a parsed rule against the required structure.

    Checks run in a fixed order and do not stop at the first failure:
    1. Title present
    2. Explanation present
    3. Code examples present, with an incorrect- or correct-style label
    4. Impact is a known level

    Args:
        rule: The parsed rule
        file: Identifier used in error messages (skill/filename)

    Returns:
        List of errors, empty if the rule is valid
    """
    errors = []

    if not rule.title.strip():
        errors.append(ValidationError(file, "Missing or empty title"))

    if not rule.explanation.strip():
        errors.append(ValidationError(file, "Missing or empty explanation"))

    if not rule.examples:
        errors.append(ValidationError(
            file,
            "Missing examples (need at least one incorrect and one correct example)",
        ))
    else:
        code_examples = [e for e in rule.examples if e.has_code]
        has_incorrect = any(_label_matches(e.label, INCORRECT_KEYWORDS) for e in code_examples)
        has_correct = any(_label_matches(e.label, CORRECT_KEYWORDS) for e in code_examples)

        if not code_examples:
            errors.append(ValidationError(file, "Missing code examples"))
        elif not has_incorrect and not has_correct:
            errors.append(ValidationError(file, "Missing incorrect or correct examples"))

    if rule.impact_level is None:
        errors.append(ValidationError(
            file,
            f"Invalid impact level: {rule.impact}. "
            f"Must be one of: {', '.join(ImpactLevel.names())}",
        ))

    return errors


def list_rule_files(rules_dir: Path) -> list[Path]:
    """
    List the rule files in a directory.

    Markdown files whose names start with `_` (section templates and the
    like) are skipped. Files are returned sorted by name.

    Raises:
        RulesDirectoryError: If the directory cannot be listed
    """
    try:
        entries = list(Path(rules_dir).iterdir())
    except OSError as e:
        raise RulesDirectoryError(f"Cannot read rules directory {rules_dir}: {e}") from e

    return sorted(
        (
            p for p in entries
            if p.suffix == RULE_SUFFIX
            and not p.name.startswith(IGNORE_PREFIX)
            and p.is_file()
        ),
        key=lambda p: p.name,
    )


def validate_file(path: Path, file: str) -> list[ValidationError]:
    """Parse and validate one file, turning read/parse failures into an error."""
    try:
        rule = parse_rule_file(path)
    except Exception as e:
        logger.warning("Failed to parse %s: %s", path, e)
        return [ValidationError(file, f"Failed to parse: {e}")]

    return validate_rule(rule, file)


def validate_skill(skill: SkillConfig, report: ValidationReport) -> None:
    """
    Validate every rule file of a skill, adding results to the report.

    Raises:
        RulesDirectoryError: If the skill's rules directory cannot be listed
    """
    files = list_rule_files(skill.rules_dir)
    logger.info("Skill %s: %d rule file(s) in %s", skill.name, len(files), skill.rules_dir)

    report.files_checked += len(files)
    for path in files:
        file = f"{skill.name}/{path.name}"
        errors = validate_file(path, file)
        logger.debug("%s: %d error(s)", file, len(errors))
        for error in errors:
            report.add(error)


def validate_skills(skills: SkillRegistry, console: Console | None = None) -> ValidationReport:
    """
    Validate all configured skills in order.

    Args:
        skills: Skill registry to validate
        console: If given, a heading is printed for each skill

    Returns:
        ValidationReport with every error found

    Raises:
        RulesDirectoryError: If any skill's rules directory cannot be listed
    """
    report = ValidationReport()

    for name, skill in skills.items():
        if console is not None:
            console.print(f"\n[bold]Validating skill:[/bold] {escape(name)}")
            console.print(f"Rules directory: {escape(str(skill.rules_dir))}", soft_wrap=True)
        validate_skill(skill, report)

    return report


def format_report(report: ValidationReport, console: Console) -> None:
    """Print the final summary of a validation run."""
    if report.has_errors:
        console.print("\n[red]✗ Validation failed:[/red]\n")
        for error in report.errors:
            console.print(f"  {error.file}: {error.message}", markup=False, highlight=False, soft_wrap=True)
    else:
        console.print(f"\n[green]✓ All {report.files_checked} rule files are valid[/green]")
