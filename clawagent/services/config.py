"""Configuration models and the config file manager."""

import os
from pathlib import Path

from pydantic import BaseModel, Field

from clawagent.utils.logging import get_logger

logger = get_logger(__name__)

CONFIG_FILE = "config.json"
DATA_DIR_ENV = "CLAWAGENT_HOME"

DEFAULT_SECTIONS = {
    "IDENTITY.md": "# Identity\n\nYou are ClawAgent, a helpful AI assistant.\n",
    "SOUL.md": "# Personality\n\nYou are friendly, professional and efficient.\n",
    "USER.md": "# User Profile\n\nTell me about yourself here...\n",
    "AGENTS.md": (
        "# Guidelines\n\n"
        "- Keep answers concise and accurate\n"
        "- Explain your intent before using a tool\n"
        "- Ask when something is unclear\n"
    ),
    "TOOLS.md": (
        "# Tools Guide\n\n"
        "- read_file: read the contents of a file\n"
        "- write_file: write content to a file\n"
        "- list_dir: list the contents of a directory\n"
        "- exec: execute a shell command\n"
    ),
    "memory/MEMORY.md": "# Long-term Memory\n\nImportant things to remember...\n",
}


def default_data_dir() -> Path:
    """Data directory from CLAWAGENT_HOME, falling back to ~/.clawagent."""
    override = os.getenv(DATA_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".clawagent"


class AgentConfig(BaseModel):
    """Agent loop configuration."""

    model: str | None = None  # None uses the provider's default model
    max_tokens: int = 4096
    temperature: float = 0.7
    max_tool_iterations: int = Field(20, ge=1)
    workspace: str = Field(default_factory=lambda: str(Path.home()))
    max_message_tokens: int = 8000  # Per incoming user message


class ProviderConfig(BaseModel):
    """Credentials and endpoint for one LLM provider."""

    api_key: str = ""
    api_base: str = ""
    default_model: str | None = None
    is_local: bool = False


class RateLimitConfig(BaseModel):
    """Client-side throttle applied to provider calls."""

    requests_per_minute: int = 50
    tokens_per_minute: int = 40_000


class AppConfig(BaseModel):
    """Application configuration."""

    agents: AgentConfig = Field(default_factory=AgentConfig)
    providers: dict[str, ProviderConfig] = Field(default_factory=dict)
    default_provider: str = "openai"
    data_dir: str = ""
    rate_limit: RateLimitConfig | None = None


class ConfigManager:
    """Load, save and initialize the configuration and data directory."""

    def __init__(self, data_dir: str | Path | None = None):
        self.data_dir = Path(data_dir).expanduser() if data_dir else default_data_dir()
        self.config = AppConfig(data_dir=str(self.data_dir))

    @property
    def config_path(self) -> Path:
        return self.data_dir / CONFIG_FILE

    @property
    def exists(self) -> bool:
        return self.config_path.is_file()

    def load(self) -> AppConfig:
        """Load configuration from disk.

        Raises:
            FileNotFoundError: If no configuration has been written yet
        """
        if not self.exists:
            raise FileNotFoundError(
                f"Configuration file not found: {self.config_path}. Run scripts/onboard.py to create one."
            )

        self.config = AppConfig.model_validate_json(self.config_path.read_text(encoding="utf-8"))
        if not self.config.data_dir:
            self.config.data_dir = str(self.data_dir)

        logger.info(f"Loaded configuration from {self.config_path}")
        return self.config

    def save(self) -> None:
        """Write the current configuration to disk."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.config.data_dir = str(self.data_dir)
        self.config_path.write_text(self.config.model_dump_json(indent=2), encoding="utf-8")

    def set_default(self) -> None:
        """Reset to the default configuration."""
        self.config = AppConfig(data_dir=str(self.data_dir))

    def set_provider(
        self,
        name: str,
        api_key: str,
        api_base: str | None = None,
        default_model: str | None = None,
        is_local: bool = False,
    ) -> None:
        """Add or replace a provider entry."""
        self.config.providers[name] = ProviderConfig(
            api_key=api_key,
            api_base=api_base or "",
            default_model=default_model,
            is_local=is_local,
        )

    def get_provider(self, name: str | None = None) -> ProviderConfig | None:
        """Get a provider entry, filling a missing key from ``<NAME>_API_KEY``."""
        provider_name = name or self.config.default_provider
        provider = self.config.providers.get(provider_name)
        if provider is None:
            return None

        if not provider.api_key:
            env_key = os.getenv(f"{provider_name.upper()}_API_KEY", "")
            if env_key:
                provider = provider.model_copy(update={"api_key": env_key})
        return provider

    def initialize_data_dir(self) -> None:
        """Create the data directory layout and default section files."""
        for sub_dir in ("sessions", "memory", "skills"):
            (self.data_dir / sub_dir).mkdir(parents=True, exist_ok=True)

        for file_name, default_content in DEFAULT_SECTIONS.items():
            path = self.data_dir / file_name
            if not path.exists():
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(default_content, encoding="utf-8")
