"""Tests for the validator module."""

import tempfile
from pathlib import Path

import pytest

from validate_rules.config import SkillConfig, load_skills, make_registry
from validate_rules.exceptions import RulesDirectoryError
from validate_rules.parser import parse_rule
from validate_rules.types import CodeExample, ImpactLevel, Rule, ValidationError
from validate_rules.validator import (
    ValidationReport,
    list_rule_files,
    validate_file,
    validate_rule,
    validate_skills,
)


EXAMPLES_DIR = Path(__file__).parent.parent / "examples"

VALID_RULE = """---
title: Sample Rule
impact: HIGH
---
## Sample Rule
This explains the rule.
**Incorrect:**
```ts
bad();
```
**Correct:**
```ts
good();
```
"""


def _skill(name: str, rules_dir: Path) -> SkillConfig:
    return SkillConfig(
        name=name,
        title=name.title(),
        description="",
        skill_dir=rules_dir.parent,
        rules_dir=rules_dir,
    )


def _messages(rule: Rule) -> list[str]:
    return [e.message for e in validate_rule(rule, "skill/rule.md")]


class TestImpactLevel:
    """Tests for impact level normalization."""

    def test_known_levels(self):
        """All six levels map to members, in priority order."""
        assert ImpactLevel.names() == [
            "CRITICAL", "HIGH", "MEDIUM-HIGH", "MEDIUM", "LOW-MEDIUM", "LOW",
        ]
        assert ImpactLevel.from_value("MEDIUM-HIGH") is ImpactLevel.MEDIUM_HIGH

    def test_invalid_levels(self):
        """Unknown, empty and wrongly-cased values are invalid."""
        assert ImpactLevel.from_value("UNKNOWN_LEVEL") is None
        assert ImpactLevel.from_value("") is None
        assert ImpactLevel.from_value("high") is None


class TestValidateRule:
    """Tests for validate_rule."""

    def test_valid_rule_passes(self):
        """A complete rule has no errors."""
        assert _messages(parse_rule(VALID_RULE)) == []

    def test_missing_explanation(self):
        """No prose between heading and first label is reported."""
        rule = parse_rule(VALID_RULE.replace("This explains the rule.\n", ""))

        assert _messages(rule) == ["Missing or empty explanation"]

    def test_missing_title(self):
        """A blank title is reported."""
        rule = parse_rule(VALID_RULE)
        rule.title = "   "

        assert _messages(rule) == ["Missing or empty title"]

    def test_invalid_impact(self):
        """An unknown impact yields one error naming the value and all levels."""
        rule = parse_rule(VALID_RULE.replace("impact: HIGH", "impact: UNKNOWN_LEVEL"))
        messages = _messages(rule)

        assert len(messages) == 1
        assert "UNKNOWN_LEVEL" in messages[0]
        for level in ImpactLevel.names():
            assert level in messages[0]

    def test_no_examples(self):
        """A rule without code blocks reports missing examples."""
        rule = parse_rule("## Title\nExplanation only.\n")

        assert rule.examples == []
        assert len(_messages(rule)) == 1
        assert _messages(rule)[0].startswith("Missing examples")

    def test_labels_without_code(self):
        """Examples that carry no code are reported."""
        rule = Rule(
            title="T",
            explanation="E",
            examples=[CodeExample(label="Incorrect"), CodeExample(label="Correct", code="  \n")],
        )

        assert _messages(rule) == ["Missing code examples"]

    def test_unrecognized_labels(self):
        """Code examples whose labels match no keyword are reported."""
        rule = Rule(
            title="T",
            explanation="E",
            examples=[CodeExample(label="Before", code="a()"), CodeExample(label="After", code="b()")],
        )

        assert _messages(rule) == ["Missing incorrect or correct examples"]

    @pytest.mark.parametrize("label", ["Bad", "Wrong way", "Usage", "Full Implementation", "Example"])
    def test_permissive_labels(self, label):
        """Any incorrect- or correct-style keyword satisfies the label check."""
        rule = Rule(title="T", explanation="E", examples=[CodeExample(label=label, code="x()")])

        assert _messages(rule) == []

    def test_errors_accumulate(self):
        """Several problems in one rule are all reported, in check order."""
        rule = Rule(title="", explanation="", impact="NOPE")
        messages = _messages(rule)

        assert len(messages) == 4
        assert messages[0] == "Missing or empty title"
        assert messages[1] == "Missing or empty explanation"
        assert messages[2].startswith("Missing examples")
        assert messages[3].startswith("Invalid impact level: NOPE")

    def test_error_identifies_file(self):
        """Errors carry the skill/file identifier."""
        errors = validate_rule(Rule(), "my-skill/my-rule.md")

        assert all(e.file == "my-skill/my-rule.md" for e in errors)


class TestListRuleFiles:
    """Tests for rule file discovery."""

    def test_skips_underscore_and_non_markdown(self):
        """Only markdown files not starting with `_` are rule files."""
        with tempfile.TemporaryDirectory() as tmpdir:
            rules_dir = Path(tmpdir)
            for name in ["b.md", "a.md", "_sections.md", "notes.txt"]:
                (rules_dir / name).write_text("## T\n")
            (rules_dir / "nested.md").mkdir()

            files = list_rule_files(rules_dir)

        assert [f.name for f in files] == ["a.md", "b.md"]

    def test_missing_directory_raises(self):
        """A missing rules directory is a directory error."""
        with pytest.raises(RulesDirectoryError):
            list_rule_files(Path("/nonexistent/rules"))


class TestValidateSkills:
    """Tests for validating whole skills."""

    def test_sample_skill_is_valid(self):
        """The bundled sample skill passes."""
        report = validate_skills(load_skills(EXAMPLES_DIR / "skills.toml"))

        assert not report.has_errors, [str(e) for e in report.errors]
        assert report.files_checked == 2

    def test_broken_skill_errors(self):
        """The broken sample skill reports one error per bad file."""
        report = validate_skills(load_skills(EXAMPLES_DIR / "broken-skills.toml"))

        assert report.files_checked == 5
        assert [e.file for e in report.errors] == [
            "fastify-broken/missing-explanation.md",
            "fastify-broken/no-examples.md",
            "fastify-broken/unknown-impact.md",
        ]

    def test_unreadable_file_is_reported(self):
        """A file that cannot be decoded becomes a parse error, not a crash."""
        with tempfile.TemporaryDirectory() as tmpdir:
            rules_dir = Path(tmpdir)
            (rules_dir / "good.md").write_text(VALID_RULE)
            (rules_dir / "binary.md").write_bytes(b"\xff\xfe\x00\x80")

            report = validate_skills(make_registry([_skill("demo", rules_dir)]))

        assert report.files_checked == 2
        assert len(report.errors) == 1
        assert report.errors[0].file == "demo/binary.md"
        assert report.errors[0].message.startswith("Failed to parse:")

    def test_unexpected_parse_error_is_isolated(self, tmp_path, monkeypatch):
        """Any exception while parsing one file is reported and the run continues."""
        from validate_rules import validator

        (tmp_path / "a.md").write_text(VALID_RULE)
        (tmp_path / "b.md").write_text(VALID_RULE.replace("impact: HIGH", "impact: NOPE"))
        real_parse = validator.parse_rule_file

        def flaky_parse(path):
            if path.name == "a.md":
                raise RuntimeError("boom")
            return real_parse(path)

        monkeypatch.setattr(validator, "parse_rule_file", flaky_parse)

        report = validate_skills(make_registry([_skill("demo", tmp_path)]))

        assert report.files_checked == 2
        assert [str(e) for e in report.errors][0] == "demo/a.md: Failed to parse: boom"
        assert report.errors[1].file == "demo/b.md"
        assert report.errors[1].message.startswith("Invalid impact level: NOPE")

    def test_validate_file_missing(self):
        """A vanished file is reported as a parse failure."""
        errors = validate_file(Path("/nonexistent/rule.md"), "demo/rule.md")

        assert len(errors) == 1
        assert errors[0].message.startswith("Failed to parse:")

    def test_missing_directory_stops_run(self):
        """A skill with no rules directory aborts the whole run."""
        with tempfile.TemporaryDirectory() as tmpdir:
            registry = make_registry([
                _skill("missing", Path(tmpdir) / "missing" / "rules"),
                _skill("present", Path(tmpdir)),
            ])

            with pytest.raises(RulesDirectoryError):
                validate_skills(registry)


class TestValidationReport:
    """Tests for ValidationReport."""

    def test_add(self):
        """add records a file/message pair."""
        report = ValidationReport()
        assert not report.has_errors

        report.add(ValidationError("skill/a.md", "Missing or empty title"))

        assert report.has_errors
        assert str(report.errors[0]) == "skill/a.md: Missing or empty title"
