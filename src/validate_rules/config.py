"""
Skill registry configuration.

The built-in registry lists the skills shipped with this repository. Its
paths are relative to the source checkout (`<repo>/skills`), so an installed
copy of the package needs a registry loaded from a TOML file:

    skills_dir = "skills"

    [skills.fastify-best-practise]
    title = "Fastify Best Practices"
    description = "Fastify best practice rules"
    rules_dir = "rules"
"""

from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import tomli

from validate_rules.exceptions import SkillConfigError


SKILLS_DIR = Path(__file__).resolve().parents[2] / "skills"
RULES_SUBDIR = "rules"


@dataclass(frozen=True)
class SkillConfig:
    """A skill and the directory holding its rule files."""
    name: str
    title: str
    description: str
    skill_dir: Path
    rules_dir: Path


SkillRegistry = Mapping[str, SkillConfig]


def make_registry(skills: list[SkillConfig]) -> SkillRegistry:
    """Build a read-only registry, keeping the given order."""
    return MappingProxyType({skill.name: skill for skill in skills})


DEFAULT_SKILLS: SkillRegistry = make_registry([
    SkillConfig(
        name="fastify-best-practise",
        title="Fastify Best Practices",
        description="Fastify best practice rules",
        skill_dir=SKILLS_DIR / "fastify-best-practise",
        rules_dir=SKILLS_DIR / "fastify-best-practise" / RULES_SUBDIR,
    ),
])


def load_skills(config_path: Path) -> SkillRegistry:
    """
    Load a skill registry from a TOML file.

    Relative paths are resolved against the file's directory: `skills_dir`
    first, then each skill's `skill_dir` (default: the skill name) and
    `rules_dir` (default: `rules`).

    Args:
        config_path: Path to the registry file

    Returns:
        Read-only mapping of skill name to SkillConfig

    Raises:
        SkillConfigError: If the file is missing, not valid TOML, or
            describes a skill without a title
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise SkillConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomli.load(f)
    except tomli.TOMLDecodeError as e:
        raise SkillConfigError(f"Invalid TOML in {config_path}: {e}") from e

    base_dir = config_path.resolve().parent
    skills_dir = base_dir / data.get("skills_dir", ".")

    sections = data.get("skills")
    if not isinstance(sections, dict) or not sections:
        raise SkillConfigError(f"No [skills] defined in {config_path}")

    return make_registry([
        _build_skill(name, section, skills_dir)
        for name, section in sections.items()
    ])


def _build_skill(name: str, section: Any, skills_dir: Path) -> SkillConfig:
    if not isinstance(section, dict):
        raise SkillConfigError(f"Skill '{name}' must be a table")
    if not section.get("title"):
        raise SkillConfigError(f"Skill '{name}' is missing a title")

    skill_dir = skills_dir / section.get("skill_dir", name)
    return SkillConfig(
        name=name,
        title=section["title"],
        description=section.get("description", ""),
        skill_dir=skill_dir,
        rules_dir=skill_dir / section.get("rules_dir", RULES_SUBDIR),
    )
