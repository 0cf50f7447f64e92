"""Logging setup shared by the gateway, the agent loop and the providers."""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from pydantic import BaseModel

# Provider SDKs and the HTTP stack log every request at INFO
QUIET_LOGGERS = ("anthropic", "httpx", "httpcore", "uvicorn.access")


class LogConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    file: Path | None = None
    max_bytes: int = 2_000_000
    backup_count: int = 5

    @classmethod
    def from_env(cls) -> "LogConfig":
        """Build a config from ``LOG_LEVEL`` and ``LOG_FILE``."""
        log_file = os.getenv("LOG_FILE")
        return cls(
            level=os.getenv("LOG_LEVEL", "INFO"),
            file=Path(log_file).expanduser() if log_file else None,
        )


def setup_logging(config: LogConfig | None = None) -> None:
    """Configure the root logger for stdout and, optionally, a rotating file.

    Args:
        config: Settings to apply; read from the environment when omitted
    """
    if config is None:
        config = LogConfig.from_env()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.file is not None:
        config.file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                config.file, maxBytes=config.max_bytes, backupCount=config.backup_count, encoding="utf-8"
            )
        )

    logging.basicConfig(
        level=getattr(logging, config.level.upper()),
        format=config.format,
        datefmt=config.date_format,
        handlers=handlers,
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str, level: str | None = None) -> logging.Logger:
    """Get a logger for a specific module.

    Args:
        name: Module name (typically __name__)
        level: Explicit level, overriding the LOG_LEVEL environment variable

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    log_level = level if level else os.getenv("LOG_LEVEL", "INFO")
    logger.setLevel(log_level.upper())

    return logger
