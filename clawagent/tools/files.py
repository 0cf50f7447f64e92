"""File system tools: read, write and list."""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from clawagent.tools.base import Tool
from clawagent.utils.logging import get_logger

logger = get_logger(__name__)

MAX_READ_CHARS = 50_000


class PathInput(BaseModel):
    """Input schema for tools that take a single path."""

    path: str = Field(..., description="Absolute path, or a path relative to the workspace")

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v or v.isspace():
            raise ValueError("Path cannot be empty")
        return v.strip()


class WriteFileInput(PathInput):
    """Input schema for the write_file tool."""

    content: str = Field(..., description="Content to write to the file")


class WorkspaceTool(Tool):
    """Tool whose relative paths resolve against the agent workspace."""

    def __init__(self, workspace: str | Path):
        self.workspace = Path(workspace).expanduser()

    def resolve(self, path: str) -> Path:
        candidate = Path(path).expanduser()
        if not candidate.is_absolute():
            candidate = self.workspace / candidate
        return candidate


class ReadFileTool(WorkspaceTool):
    """Read a text file."""

    name = "read_file"
    description = "Read the contents of a file"
    input_model = PathInput

    async def run(self, params: PathInput) -> str:
        path = self.resolve(params.path)
        if not path.is_file():
            return f"Error: file not found: {path}"

        try:
            content = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            return f"Error: {e}"

        if len(content) > MAX_READ_CHARS:
            return content[:MAX_READ_CHARS] + "\n... (truncated)"
        return content


class WriteFileTool(WorkspaceTool):
    """Write a text file, creating parent directories as needed."""

    name = "write_file"
    description = "Write content to a file"
    input_model = WriteFileInput

    async def run(self, params: WriteFileInput) -> str:
        path = self.resolve(params.path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(params.content, encoding="utf-8")
        except OSError as e:
            return f"Error: {e}"

        logger.info(f"Wrote {len(params.content)} characters to {path}")
        return f"File written successfully: {path}"


class ListDirTool(WorkspaceTool):
    """List the entries of a directory."""

    name = "list_dir"
    description = "List the contents of a directory"
    input_model = PathInput

    async def run(self, params: PathInput) -> str:
        path = self.resolve(params.path)
        if not path.is_dir():
            return f"Error: directory not found: {path}"

        try:
            entries = sorted(path.iterdir(), key=lambda entry: entry.name)
        except OSError as e:
            return f"Error: {e}"

        if not entries:
            return "(empty directory)"
        return "\n".join(f"[dir] {entry.name}/" if entry.is_dir() else f"[file] {entry.name}" for entry in entries)
