"""Gateway session state."""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass
class Session:
    """A gateway session; its history lives in the agent's memory store."""

    session_id: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_activity: datetime = field(default_factory=lambda: datetime.now(UTC))
    turns: int = 0
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def as_dict(self) -> dict[str, Any]:
        """Return the session as a dictionary."""
        return {
            "session_id": self.session_id,
            "created_at": self.created_at.isoformat(),
            "last_activity": self.last_activity.isoformat(),
            "turns": self.turns,
        }

    def update_activity(self) -> None:
        """Update the last activity timestamp."""
        self.last_activity = datetime.now(UTC)

    def record_turn(self) -> None:
        """Count a completed turn."""
        self.turns += 1
        self.update_activity()
