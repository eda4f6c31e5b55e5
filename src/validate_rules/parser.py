"""
Parser for rule markdown files.

A rule file looks like this:

    ---
    title: Use schemas for validation
    impact: HIGH
    tags: validation, schemas
    ---

    ## Use schemas for validation

    **Impact: HIGH (prevents invalid payloads)**

    Explanation of the rule.

    **Incorrect:**

    ```ts
    fastify.post('/', handler)
    ```

    **Correct (with a JSON schema):**

    ```ts
    fastify.post('/', { schema }, handler)
    ```

    Reference: [Validation](https://fastify.dev/docs/latest/Reference/Validation-and-Serialization/)

The body is read in a single forward pass. Frontmatter values win over
anything inferred from the body.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from validate_rules.types import (
    DEFAULT_IMPACT,
    DEFAULT_LANGUAGE,
    CodeExample,
    Rule,
)


logger = logging.getLogger(__name__)

FRONTMATTER_DELIMITER = "---"
FENCE = "```"

_IMPACT_RE = re.compile(
    r"\*\*Impact:(?:\*\*)?\s*(\w+(?:-\w+)?)\s*(?:\(([^)]+)\))?",
    re.IGNORECASE,
)
_LABEL_RE = re.compile(r"^\*\*([^:]+?):\*{0,2}\s*$")
_LABEL_DESCRIPTION_RE = re.compile(r"^([A-Za-z]+(?:\s+[A-Za-z]+)*)\s*\(([^()]+)\)$")
_REFERENCE_RE = re.compile(r"^(?:\*\*)?References?:")
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_TITLE_PREFIX_RE = re.compile(r"^##+\s*")
_QUOTES_RE = re.compile(r"^[\"']|[\"']$")


class _State(Enum):
    PROSE = "prose"
    IN_CODE = "in_code"
    REFERENCES = "references"


class _TextBuffer:
    """Collects prose lines into blank-line separated paragraphs."""

    def __init__(self) -> None:
        self.paragraphs: list[list[str]] = []
        self._open = False

    def __bool__(self) -> bool:
        return bool(self.paragraphs)

    def add(self, line: str) -> None:
        if self._open:
            self.paragraphs[-1].append(line)
        else:
            self.paragraphs.append([line])
            self._open = True

    def end_paragraph(self) -> None:
        self._open = False

    def text(self) -> str:
        return "\n\n".join("\n".join(p) for p in self.paragraphs).strip()


@dataclass
class _Accumulator:
    """Everything collected while walking the body."""
    explanation: _TextBuffer = field(default_factory=_TextBuffer)
    examples: list[CodeExample] = field(default_factory=list)
    current: CodeExample | None = None
    trailing: _TextBuffer = field(default_factory=_TextBuffer)
    code_lines: list[str] = field(default_factory=list)
    code_language: str = DEFAULT_LANGUAGE
    impact: str = DEFAULT_IMPACT
    impact_description: str | None = None
    references: list[str] = field(default_factory=list)

    def end_paragraph(self) -> None:
        self.explanation.end_paragraph()
        self.trailing.end_paragraph()

    def add_text(self, line: str) -> None:
        if self.current is None:
            self.explanation.add(line)
        else:
            self.trailing.add(line)

    def open_example(self, full_label: str) -> None:
        match = _LABEL_DESCRIPTION_RE.match(full_label)
        if match:
            self.current = CodeExample(
                label=match.group(1).strip(),
                description=match.group(2).strip(),
            )
        else:
            self.current = CodeExample(label=full_label)

    def close_example(self) -> None:
        if self.current is None:
            return
        if self.trailing:
            self.current.additional_text = self.trailing.text()
        self.examples.append(self.current)
        self.current = None
        self.trailing = _TextBuffer()

    def open_code_block(self, language: str) -> None:
        self.end_paragraph()
        self.code_lines = []
        self.code_language = language

    def close_code_block(self) -> None:
        # A fence before the first label has no example to attach to
        if self.current is not None:
            code = "\n".join(self.code_lines)
            if self.current.code:
                self.current.code += "\n\n" + code
            else:
                self.current.code = code
                self.current.language = self.code_language
        self.code_lines = []

    def add_references(self, line: str) -> None:
        for match in _LINK_RE.finditer(line):
            url = match.group(2).strip()
            if url and url not in self.references:
                self.references.append(url)


def normalize_newlines(text: str) -> str:
    """Convert CRLF and lone CR line endings to LF and drop a leading BOM."""
    return text.lstrip("\ufeff").replace("\r\n", "\n").replace("\r", "\n")


def split_frontmatter(content: str) -> tuple[dict[str, str], str]:
    """
    Split a document into its frontmatter mapping and body.

    Frontmatter is a flat block of `key: value` lines between two `---`
    lines at the very start of the document. Without a closing delimiter
    the whole document is treated as body.

    Returns:
        (frontmatter, body)
    """
    lines = content.split("\n")
    if lines[0].strip() != FRONTMATTER_DELIMITER:
        return {}, content

    for i in range(1, len(lines)):
        if lines[i].strip() == FRONTMATTER_DELIMITER:
            return _parse_frontmatter(lines[1:i]), "\n".join(lines[i + 1:])

    return {}, content


def _parse_frontmatter(lines: list[str]) -> dict[str, str]:
    data: dict[str, str] = {}
    for line in lines:
        key, sep, value = line.partition(":")
        key = key.strip()
        if not sep or not key:
            continue
        data[key] = _QUOTES_RE.sub("", value.strip())
    return data


def _split_list(value: str) -> list[str]:
    """Split a comma-separated frontmatter value, tolerating `[a, b]`."""
    value = value.strip()
    if value.startswith("[") and value.endswith("]"):
        value = value[1:-1]
    items = (_QUOTES_RE.sub("", item.strip()) for item in value.split(","))
    return [item for item in items if item]


def _find_title(lines: list[str]) -> tuple[str, int]:
    """Return the first `##` heading and the index of the line after it."""
    for i, line in enumerate(lines):
        if line.startswith("##") and not line.startswith("###"):
            return _TITLE_PREFIX_RE.sub("", line).strip(), i + 1
    return "", 0


def _step(state: _State, line: str, acc: _Accumulator) -> _State:
    """Consume one body line and return the next state."""
    if state is _State.IN_CODE:
        if line.startswith(FENCE):
            acc.close_code_block()
            return _State.PROSE
        acc.code_lines.append(line)
        return state

    if state is _State.REFERENCES:
        acc.add_references(line)
        return state

    if "**Impact:" in line:
        match = _IMPACT_RE.search(line)
        if match:
            acc.impact = match.group(1).upper()
            acc.impact_description = match.group(2).strip() if match.group(2) else None
        acc.end_paragraph()
        return state

    if line.startswith(FENCE):
        acc.open_code_block(line[len(FENCE):].strip() or DEFAULT_LANGUAGE)
        return _State.IN_CODE

    if _REFERENCE_RE.match(line):
        acc.close_example()
        acc.add_references(line)
        return _State.REFERENCES

    label = _LABEL_RE.match(line)
    if label:
        acc.close_example()
        acc.open_example(label.group(1).strip())
        return _State.PROSE

    if not line.strip() or line.startswith("#"):
        acc.end_paragraph()
        return state

    acc.add_text(line.rstrip())
    return state


def parse_rule(text: str) -> Rule:
    """
    Parse the text of a rule file into a Rule.

    Never raises on textual input. Missing parts come back empty (or as
    defaults) and are left for the validator to report.

    Args:
        text: Full contents of the rule file

    Returns:
        The parsed Rule
    """
    frontmatter, body = split_frontmatter(normalize_newlines(text))
    # Split on "\n" only so fenced code keeps other line-boundary characters
    lines = body.split("\n")
    if lines[-1] == "":
        lines.pop()
    title, start = _find_title(lines)

    acc = _Accumulator()
    state = _State.PROSE
    for line in lines[start:]:
        state = _step(state, line, acc)

    # Unterminated fence: keep what was captured
    if state is _State.IN_CODE:
        acc.close_code_block()
    acc.close_example()

    logger.debug(
        "Parsed rule %r: frontmatter keys=%s, examples=%d, references=%d",
        frontmatter.get("title") or title,
        sorted(frontmatter),
        len(acc.examples),
        len(acc.references),
    )

    return Rule(
        title=frontmatter.get("title") or title,
        impact=frontmatter.get("impact") or acc.impact,
        impact_description=frontmatter.get("impactDescription") or acc.impact_description or None,
        explanation=frontmatter.get("explanation") or acc.explanation.text(),
        examples=acc.examples,
        references=(
            _split_list(frontmatter["references"])
            if frontmatter.get("references")
            else acc.references
        ),
        tags=_split_list(frontmatter["tags"]) if frontmatter.get("tags") else None,
    )


def parse_rule_file(path: Path) -> Rule:
    """
    Read and parse a rule file.

    Raises:
        OSError: If the file cannot be read
        UnicodeDecodeError: If the file is not valid UTF-8
    """
    logger.debug("Reading rule file %s", path)
    with open(path, encoding="utf-8") as f:
        text = f.read()
    return parse_rule(text)
