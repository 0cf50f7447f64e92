"""Skill storage as SKILL.md directories."""

from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from clawagent.models.skill import Skill
from clawagent.utils.logging import get_logger

logger = get_logger(__name__)

SKILL_FILE = "SKILL.md"
_INVALID_DIR_CHARS = set('<>:"/\\|?*\0')


def parse_frontmatter(content: str) -> tuple[dict[str, Any] | None, str]:
    """Split a SKILL.md text into its YAML frontmatter and Markdown body.

    Returns ``(None, content)`` when the text has no frontmatter block.

    Raises:
        yaml.YAMLError: If the frontmatter is not valid YAML
    """
    if not content.startswith("---"):
        return None, content

    end_index = content.find("\n---", 3)
    if end_index == -1:
        return None, content

    meta = yaml.safe_load(content[3:end_index]) or {}
    if not isinstance(meta, dict):
        return None, content

    body = content[end_index + 4 :].lstrip("\n")
    return meta, body


def build_skill_md(skill: Skill) -> str:
    """Render a skill as SKILL.md text, replacing any existing frontmatter."""
    meta: dict[str, Any] = {"name": skill.name, "description": skill.description}
    if skill.dependencies:
        meta["dependencies"] = skill.dependencies

    _, body = parse_frontmatter(skill.content) if skill.content else (None, "")
    frontmatter = yaml.safe_dump(meta, allow_unicode=True, sort_keys=False)
    return f"---\n{frontmatter}---\n\n{body}"


def sanitize_dir_name(name: str) -> str:
    """Replace characters that are not allowed in directory names."""
    return "".join("_" if c in _INVALID_DIR_CHARS else c for c in name).strip()


class SkillStore:
    """Skills kept as ``<skills_dir>/<display name>/SKILL.md``."""

    def __init__(self, skills_dir: str | Path):
        self.skills_dir = Path(skills_dir).expanduser()

    async def list_skills(self) -> list[Skill]:
        """Load every parseable skill, ordered by directory name."""
        if not self.skills_dir.is_dir():
            return []

        skills = []
        for skill_dir in sorted(path for path in self.skills_dir.iterdir() if path.is_dir()):
            skill_file = skill_dir / SKILL_FILE
            if not skill_file.is_file():
                continue
            skill = self._load(skill_file)
            if skill is not None:
                skills.append(skill)
        return skills

    async def get_skill(self, name: str) -> Skill | None:
        """Find a skill by directory name or by frontmatter ``name``."""
        skill_dir = self._find_skill_dir(name)
        if skill_dir is None:
            return None
        return self._load(skill_dir / SKILL_FILE)

    async def save_skill(self, skill: Skill) -> Path:
        """Write a skill; the directory is named after its display name."""
        skill_dir = self.skills_dir / sanitize_dir_name(skill.display_name or skill.name)
        skill_dir.mkdir(parents=True, exist_ok=True)

        skill_file = skill_dir / SKILL_FILE
        skill_file.write_text(build_skill_md(skill), encoding="utf-8")
        logger.info(f"Saved skill {skill.name} to {skill_file}")
        return skill_file

    async def delete_skill(self, name: str) -> bool:
        """Delete a skill directory. Returns False if no such skill exists."""
        skill_dir = self._find_skill_dir(name)
        if skill_dir is None:
            return False

        for path in sorted(skill_dir.rglob("*"), reverse=True):
            if path.is_dir():
                path.rmdir()
            else:
                path.unlink()
        skill_dir.rmdir()
        logger.info(f"Deleted skill {name}")
        return True

    def _find_skill_dir(self, name: str) -> Path | None:
        if not self.skills_dir.is_dir():
            return None

        direct = self.skills_dir / sanitize_dir_name(name)
        if (direct / SKILL_FILE).is_file():
            return direct

        for skill_dir in sorted(path for path in self.skills_dir.iterdir() if path.is_dir()):
            skill = self._load(skill_dir / SKILL_FILE) if (skill_dir / SKILL_FILE).is_file() else None
            if skill is not None and skill.name == name:
                return skill_dir
        return None

    def _load(self, skill_file: Path) -> Skill | None:
        try:
            content = skill_file.read_text(encoding="utf-8")
            meta, _ = parse_frontmatter(content)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            logger.warning(f"Skipping unreadable skill file {skill_file}: {e}")
            return None

        if meta is None:
            logger.warning(f"Skipping skill file without frontmatter: {skill_file}")
            return None

        stat = skill_file.stat()
        dependencies = meta.get("dependencies")
        return Skill(
            name=str(meta.get("name") or skill_file.parent.name),
            display_name=skill_file.parent.name,
            description=str(meta.get("description") or ""),
            dependencies=str(dependencies) if dependencies is not None else None,
            content=content,
            created_at=datetime.fromtimestamp(stat.st_ctime),
            updated_at=datetime.fromtimestamp(stat.st_mtime),
        )
