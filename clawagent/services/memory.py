"""Conversation history and system prompt sections.

The agent loop only talks to the :class:`Memory` protocol. Two stores are
provided: :class:`InMemoryMemory` for tests and embedding, and
:class:`FileMemory`, which keeps one JSON file per session and one Markdown
file per prompt section under a data directory.
"""

import re
from pathlib import Path
from typing import Protocol

from pydantic import TypeAdapter

from clawagent.models.llm import Message
from clawagent.utils.logging import get_logger

logger = get_logger(__name__)

_SESSION_ID = re.compile(r"[A-Za-z0-9_.:@-]+")
_MESSAGES = TypeAdapter(list[Message])


class Memory(Protocol):
    """Narrow contract the agent loop uses for history and prompt sections."""

    async def get_messages(self, session_id: str) -> list[Message]: ...

    async def add_message(self, session_id: str, message: Message) -> None: ...

    async def clear_session(self, session_id: str) -> None: ...

    async def get_identity(self) -> str | None: ...

    async def get_soul(self) -> str | None: ...

    async def get_agents(self) -> str | None: ...

    async def get_user(self) -> str | None: ...

    async def get_memory(self) -> str | None: ...

    async def get_tools(self) -> str | None: ...


class InMemoryMemory:
    """Process-local memory keyed by session id."""

    def __init__(
        self,
        identity: str | None = None,
        soul: str | None = None,
        agents: str | None = None,
        user: str | None = None,
        memory: str | None = None,
        tools: str | None = None,
    ):
        self.sessions: dict[str, list[Message]] = {}
        self.sections = {
            "identity": identity,
            "soul": soul,
            "agents": agents,
            "user": user,
            "memory": memory,
            "tools": tools,
        }

    async def get_messages(self, session_id: str) -> list[Message]:
        return list(self.sessions.get(session_id, []))

    async def add_message(self, session_id: str, message: Message) -> None:
        self.sessions.setdefault(session_id, []).append(message)

    async def clear_session(self, session_id: str) -> None:
        self.sessions.pop(session_id, None)

    async def get_identity(self) -> str | None:
        return self.sections["identity"]

    async def get_soul(self) -> str | None:
        return self.sections["soul"]

    async def get_agents(self) -> str | None:
        return self.sections["agents"]

    async def get_user(self) -> str | None:
        return self.sections["user"]

    async def get_memory(self) -> str | None:
        return self.sections["memory"]

    async def get_tools(self) -> str | None:
        return self.sections["tools"]


class FileMemory:
    """File-backed memory rooted at a data directory."""

    IDENTITY = "IDENTITY.md"
    SOUL = "SOUL.md"
    AGENTS = "AGENTS.md"
    USER = "USER.md"
    MEMORY = "memory/MEMORY.md"
    TOOLS = "TOOLS.md"

    def __init__(self, data_dir: str | Path):
        self.data_dir = Path(data_dir).expanduser()
        self.sessions_dir = self.data_dir / "sessions"
        self._cache: dict[str, list[Message]] = {}
        for sub_dir in ("sessions", "memory", "skills"):
            (self.data_dir / sub_dir).mkdir(parents=True, exist_ok=True)

    # Sessions

    async def get_messages(self, session_id: str) -> list[Message]:
        return list(self._load_session(session_id))

    async def add_message(self, session_id: str, message: Message) -> None:
        messages = self._load_session(session_id)
        messages.append(message)
        self._session_file(session_id).write_bytes(_MESSAGES.dump_json(messages, exclude_none=True, indent=2))

    async def clear_session(self, session_id: str) -> None:
        self._cache.pop(session_id, None)
        self._session_file(session_id).unlink(missing_ok=True)
        logger.info(f"Cleared session {session_id}")

    async def list_sessions(self) -> list[str]:
        """Session ids with stored history, newest name first."""
        return sorted((path.stem for path in self.sessions_dir.glob("*.json")), reverse=True)

    def _load_session(self, session_id: str) -> list[Message]:
        if session_id in self._cache:
            return self._cache[session_id]

        messages: list[Message] = []
        session_file = self._session_file(session_id)
        if session_file.is_file():
            try:
                messages = _MESSAGES.validate_json(session_file.read_bytes())
            except ValueError as e:
                logger.error(f"Session file {session_file} is unreadable, starting empty: {e}")
                messages = []

        self._cache[session_id] = messages
        return messages

    def _session_file(self, session_id: str) -> Path:
        if not _SESSION_ID.fullmatch(session_id):
            raise ValueError(f"Invalid session id: {session_id!r}")
        return self.sessions_dir / f"{session_id}.json"

    # Prompt sections

    async def get_identity(self) -> str | None:
        return self._read_section(self.IDENTITY)

    async def set_identity(self, content: str) -> None:
        self._write_section(self.IDENTITY, content)

    async def get_soul(self) -> str | None:
        return self._read_section(self.SOUL)

    async def set_soul(self, content: str) -> None:
        self._write_section(self.SOUL, content)

    async def get_agents(self) -> str | None:
        return self._read_section(self.AGENTS)

    async def set_agents(self, content: str) -> None:
        self._write_section(self.AGENTS, content)

    async def get_user(self) -> str | None:
        return self._read_section(self.USER)

    async def set_user(self, content: str) -> None:
        self._write_section(self.USER, content)

    async def get_memory(self) -> str | None:
        return self._read_section(self.MEMORY)

    async def set_memory(self, content: str) -> None:
        self._write_section(self.MEMORY, content)

    async def get_tools(self) -> str | None:
        return self._read_section(self.TOOLS)

    async def set_tools(self, content: str) -> None:
        self._write_section(self.TOOLS, content)

    def _read_section(self, file_name: str) -> str | None:
        path = self.data_dir / file_name
        return path.read_text(encoding="utf-8") if path.is_file() else None

    def _write_section(self, file_name: str, content: str) -> None:
        path = self.data_dir / file_name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
