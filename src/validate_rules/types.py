"""
Shared types for rule parsing and validation.

Kept separate from parser.py and validator.py so both can import them
without depending on each other.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


DEFAULT_IMPACT = "MEDIUM"
DEFAULT_LANGUAGE = "typescript"


class ImpactLevel(Enum):
    """Impact level of a rule, highest priority first."""
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM_HIGH = "MEDIUM-HIGH"
    MEDIUM = "MEDIUM"
    LOW_MEDIUM = "LOW-MEDIUM"
    LOW = "LOW"

    @classmethod
    def from_value(cls, value: str | None) -> Optional["ImpactLevel"]:
        """
        Map raw text to an impact level.

        Matching is exact and case-sensitive. The parser upper-cases values
        read from the body, frontmatter values are used as written.

        Returns:
            The matching member, or None if the value is not a valid level.
        """
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            return None

    @classmethod
    def names(cls) -> list[str]:
        return [level.value for level in cls]


@dataclass
class CodeExample:
    """A labeled code example taken from a rule body."""
    label: str
    description: str | None = None
    code: str = ""
    language: str = DEFAULT_LANGUAGE
    additional_text: str | None = None

    @property
    def has_code(self) -> bool:
        return bool(self.code.strip())


@dataclass
class Rule:
    """
    A parsed rule file.

    Attributes:
        title: Rule title (frontmatter `title` or the first `##` heading)
        impact: Raw impact value, checked against ImpactLevel by the validator
        impact_description: Optional text from `**Impact: X (description)**`
        explanation: Prose before the first labeled example
        examples: Labeled code examples in document order
        references: Reference URLs in document order, without duplicates
        tags: Tags from frontmatter, None when not given
    """
    title: str = ""
    impact: str = DEFAULT_IMPACT
    impact_description: str | None = None
    explanation: str = ""
    examples: list[CodeExample] = field(default_factory=list)
    references: list[str] = field(default_factory=list)
    tags: list[str] | None = None

    @property
    def impact_level(self) -> ImpactLevel | None:
        return ImpactLevel.from_value(self.impact)

    def to_dict(self) -> dict[str, Any]:
        """Plain-data view of the rule, for YAML/JSON output."""
        data: dict[str, Any] = {
            "title": self.title,
            "impact": self.impact,
            "explanation": self.explanation,
            "examples": [],
            "references": list(self.references),
        }
        if self.impact_description:
            data["impactDescription"] = self.impact_description
        if self.tags is not None:
            data["tags"] = list(self.tags)

        for example in self.examples:
            item: dict[str, Any] = {
                "label": example.label,
                "language": example.language,
                "code": example.code,
            }
            if example.description:
                item["description"] = example.description
            if example.additional_text:
                item["additionalText"] = example.additional_text
            data["examples"].append(item)

        return data


@dataclass
class ValidationError:
    """A single problem found in a rule file."""
    file: str
    message: str

    def __str__(self) -> str:
        return f"{self.file}: {self.message}"
