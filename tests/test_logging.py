"""Tests for logging setup."""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from clawagent.utils.logging import LogConfig, get_logger, setup_logging


@pytest.fixture
def root_logger():
    """Restore the root logger after a test reconfigures it."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLogConfig:
    """Tests for environment driven configuration."""

    def test_from_env_defaults(self, monkeypatch):
        """Test the defaults when nothing is set."""
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.delenv("LOG_FILE", raising=False)

        config = LogConfig.from_env()

        assert config.level == "INFO"
        assert config.file is None

    def test_from_env_reads_level_and_file(self, monkeypatch, tmp_path):
        """Test that LOG_LEVEL and LOG_FILE are picked up."""
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("LOG_FILE", str(tmp_path / "gateway.log"))

        config = LogConfig.from_env()

        assert config.level == "debug"
        assert config.file == tmp_path / "gateway.log"


class TestSetupLogging:
    """Tests for root logger configuration."""

    def test_stdout_only_by_default(self, root_logger):
        """Test that no file handler is installed without a file."""
        setup_logging(LogConfig(level="warning"))

        assert root_logger.level == logging.WARNING
        assert not any(isinstance(handler, RotatingFileHandler) for handler in root_logger.handlers)
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("anthropic").level == logging.WARNING

    def test_file_handler_writes_log_lines(self, root_logger, tmp_path):
        """Test that the rotating file receives records and its directory is created."""
        log_file = tmp_path / "logs" / "gateway.log"
        setup_logging(LogConfig(file=log_file))

        get_logger("clawagent.test", level="INFO").info("turn finished")
        for handler in root_logger.handlers:
            handler.flush()

        assert "clawagent.test - INFO - turn finished" in log_file.read_text(encoding="utf-8")


class TestGetLogger:
    """Tests for module loggers."""

    def test_level_from_env(self, monkeypatch):
        """Test that LOG_LEVEL sets the module logger level."""
        monkeypatch.setenv("LOG_LEVEL", "error")

        assert get_logger("clawagent.env_level").level == logging.ERROR

    def test_explicit_level_wins(self, monkeypatch):
        """Test that an explicit level overrides the environment."""
        monkeypatch.setenv("LOG_LEVEL", "error")

        assert get_logger("clawagent.explicit_level", level="debug").level == logging.DEBUG
