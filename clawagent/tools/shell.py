"""Shell command execution tool."""

import asyncio
import sys
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from clawagent.tools.base import Tool
from clawagent.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30
MAX_TIMEOUT = 300

DANGEROUS_PATTERNS = (
    "rm -rf",
    "del /f",
    "rmdir /s",
    "format",
    "mkfs",
    "diskpart",
    "dd if=",
    "shutdown",
    "reboot",
    "poweroff",
)


class ShellInput(BaseModel):
    """Input schema for the exec tool."""

    command: str = Field(..., description="Shell command to run")
    timeout: int = Field(DEFAULT_TIMEOUT, ge=1, description=f"Timeout in seconds (default: {DEFAULT_TIMEOUT})")

    @field_validator("command")
    @classmethod
    def validate_command(cls, v: str) -> str:
        if not v or v.isspace():
            raise ValueError("Command cannot be empty")
        return v


class ShellTool(Tool):
    """Run a shell command in the workspace and report its output."""

    name = "exec"
    description = "Execute a shell command"
    input_model = ShellInput

    def __init__(self, workspace: str | Path):
        self.workspace = Path(workspace).expanduser()

    async def run(self, params: ShellInput) -> str:
        lowered = params.command.lower()
        for pattern in DANGEROUS_PATTERNS:
            if pattern in lowered:
                logger.warning(f"Blocked command containing '{pattern}': {params.command}")
                return f"Error: command blocked (contains dangerous pattern: {pattern})"

        timeout = min(params.timeout, MAX_TIMEOUT)
        cwd = self.workspace if self.workspace.is_dir() else None
        logger.info(f"Executing command (timeout {timeout}s): {params.command}")

        try:
            process = await asyncio.create_subprocess_shell(
                params.command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
            )
        except OSError as e:
            return f"Error: {e}"

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except TimeoutError:
            await self._kill(process)
            return f"Error: command timed out after {timeout}s"
        except asyncio.CancelledError:
            await self._kill(process)
            raise

        encoding = sys.getdefaultencoding()
        result = []
        if stdout:
            result.append(stdout.decode(encoding, errors="replace"))
        if stderr:
            result.append(f"[stderr] {stderr.decode(encoding, errors='replace')}")
        result.append(f"[exit code: {process.returncode}]")
        return "\n".join(result)

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            process.kill()
            await process.wait()
