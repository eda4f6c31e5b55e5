"""
validate-rules CLI - Structural checks for skill rule files.

Usage:
    validate-rules              Validate every configured skill
    validate-rules show FILE    Print the parsed form of one rule file
"""

import json
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.markup import escape

app = typer.Typer(
    name="validate-rules",
    help="Validate that skill rule files follow the required structure",
)

console = Console()

OUTPUT_FORMATS = ("yaml", "json")


def _load_registry(config_path: Path | None):
    from validate_rules.config import DEFAULT_SKILLS, load_skills

    if config_path is None:
        return DEFAULT_SKILLS
    return load_skills(config_path)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="TOML skill registry (defaults to the built-in skills)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Log debug output to stderr"),
    version: bool = typer.Option(False, "--version", "-v", help="Show version"),
) -> None:
    """
    Validate all configured skills.

    Every rule file needs a title, an explanation, incorrect/correct code
    examples and a valid impact level. Exits with status 1 if any file
    fails.

    Example:
        validate-rules
        validate-rules --config skills.toml
    """
    from validate_rules.logging import setup_logging

    if version:
        from validate_rules import __version__
        console.print(f"validate-rules {__version__}")
        raise typer.Exit()

    setup_logging("DEBUG" if verbose else "WARNING")

    if ctx.invoked_subcommand is not None:
        if config_path is not None:
            raise typer.BadParameter(
                f"only applies when validating, not to '{ctx.invoked_subcommand}'",
                param_hint="--config",
            )
        return

    from validate_rules.validator import format_report, validate_skills

    try:
        skills = _load_registry(config_path)
        report = validate_skills(skills, console)
    except Exception as e:
        console.print(f"[red]Validation failed:[/red] {escape(str(e))}", soft_wrap=True)
        raise typer.Exit(1)

    format_report(report, console)

    if report.has_errors:
        raise typer.Exit(1)


@app.command()
def show(
    rule_path: Path = typer.Argument(..., help="Path to a rule markdown file"),
    output_format: str = typer.Option("yaml", "--format", "-f", help="Output format: yaml, json"),
) -> None:
    """
    Print the parsed form of a rule file.

    Useful for checking how titles, labels and references are picked up.
    The top-level --config option does not apply here and is rejected.

    Example:
        validate-rules show skills/fastify-best-practise/rules/schemas.md
    """
    from validate_rules.parser import parse_rule_file

    if output_format not in OUTPUT_FORMATS:
        raise typer.BadParameter(
            f"must be one of: {', '.join(OUTPUT_FORMATS)}", param_hint="--format"
        )

    try:
        rule = parse_rule_file(rule_path)
    except (OSError, UnicodeDecodeError) as e:
        console.print(f"[red]Cannot read {escape(str(rule_path))}:[/red] {escape(str(e))}", soft_wrap=True)
        raise typer.Exit(1)

    data = rule.to_dict()
    if output_format == "json":
        text = json.dumps(data, indent=2, ensure_ascii=False)
    else:
        text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)

    console.print(text, markup=False, highlight=False, emoji=False, soft_wrap=True)


if __name__ == "__main__":
    app()
