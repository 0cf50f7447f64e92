"""Skill data models."""

import hashlib
import re
from datetime import datetime

from pydantic import BaseModel, Field

_ASCII_TOOL_NAME = re.compile(r"[A-Za-z0-9_-]+")


class Skill(BaseModel):
    """A prompt-driven skill stored as a SKILL.md file.

    ``content`` holds the full SKILL.md text (frontmatter and body) and is used
    verbatim as the system prompt when the skill runs.
    """

    name: str
    display_name: str = ""
    description: str = ""
    content: str = ""
    dependencies: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def tool_name(self) -> str:
        """Stable, ASCII-safe tool name for this skill.

        Other names map to a 4-byte SHA-256 prefix, so two distinct names
        can collide.
        """
        return skill_tool_name(self.name)


def skill_tool_name(name: str) -> str:
    """Derive the tool name for a skill name."""
    if not name:
        return "skill_unknown"
    if _ASCII_TOOL_NAME.fullmatch(name):
        return f"skill_{name}"
    digest = hashlib.sha256(name.encode("utf-8")).digest()
    return f"skill_{digest[:4].hex()}"
