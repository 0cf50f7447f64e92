"""Tests for the memory stores and configuration."""

import json
from unittest.mock import patch

import pytest

from clawagent.models.llm import Message, ToolCall
from clawagent.services.config import DEFAULT_SECTIONS, AppConfig, ConfigManager
from clawagent.services.memory import FileMemory, InMemoryMemory


class TestInMemoryMemory:
    """Tests for the process-local store."""

    @pytest.mark.asyncio
    async def test_sessions_are_isolated(self):
        """Test that histories are keyed by session id."""
        memory = InMemoryMemory()
        await memory.add_message("a", Message.user("for a"))
        await memory.add_message("b", Message.user("for b"))

        assert [m.content for m in await memory.get_messages("a")] == ["for a"]
        assert [m.content for m in await memory.get_messages("b")] == ["for b"]

    @pytest.mark.asyncio
    async def test_get_messages_returns_a_copy(self):
        """Test that callers cannot mutate stored history."""
        memory = InMemoryMemory()
        await memory.add_message("a", Message.user("x"))

        messages = await memory.get_messages("a")
        messages.append(Message.user("y"))

        assert len(await memory.get_messages("a")) == 1

    @pytest.mark.asyncio
    async def test_sections(self):
        """Test section getters."""
        memory = InMemoryMemory(identity="id", tools="guide")
        assert await memory.get_identity() == "id"
        assert await memory.get_tools() == "guide"
        assert await memory.get_soul() is None


class TestFileMemory:
    """Tests for the file-backed store."""

    @pytest.mark.asyncio
    async def test_history_survives_reload(self, tmp_path):
        """Test that sessions are written to disk and read back."""
        memory = FileMemory(tmp_path)
        await memory.add_message("s1", Message.user("hello"))
        await memory.add_message("s1", Message.assistant("", [ToolCall.create("c1", "exec", '{"command": "ls"}')]))
        await memory.add_message("s1", Message.tool("a.txt", tool_call_id="c1", name="exec"))

        reloaded = await FileMemory(tmp_path).get_messages("s1")

        assert reloaded == await memory.get_messages("s1")
        assert reloaded[1].tool_calls[0].function.arguments == '{"command": "ls"}'
        stored = json.loads((tmp_path / "sessions" / "s1.json").read_text())
        assert "tool_call_id" not in stored[0]

    @pytest.mark.asyncio
    async def test_clear_session(self, tmp_path):
        """Test that clearing removes the session file."""
        memory = FileMemory(tmp_path)
        await memory.add_message("s1", Message.user("hello"))

        await memory.clear_session("s1")

        assert await memory.get_messages("s1") == []
        assert not (tmp_path / "sessions" / "s1.json").exists()

    @pytest.mark.asyncio
    async def test_corrupt_session_starts_empty(self, tmp_path):
        """Test that an unreadable session file is treated as empty."""
        memory = FileMemory(tmp_path)
        (tmp_path / "sessions" / "bad.json").write_text("{not json")

        assert await memory.get_messages("bad") == []

    @pytest.mark.asyncio
    async def test_invalid_session_id(self, tmp_path):
        """Test that path-like session ids are refused."""
        memory = FileMemory(tmp_path)

        with pytest.raises(ValueError, match="Invalid session id"):
            await memory.add_message("../escape", Message.user("x"))

    @pytest.mark.asyncio
    async def test_list_sessions(self, tmp_path):
        """Test the stored session listing."""
        memory = FileMemory(tmp_path)
        await memory.add_message("alpha", Message.user("x"))
        await memory.add_message("beta", Message.user("y"))

        assert await memory.list_sessions() == ["beta", "alpha"]

    @pytest.mark.asyncio
    async def test_sections_round_trip(self, tmp_path):
        """Test section setters and getters, including the nested memory file."""
        memory = FileMemory(tmp_path)
        assert await memory.get_identity() is None

        await memory.set_identity("I am Claw.")
        await memory.set_memory("Remember this.")

        assert await memory.get_identity() == "I am Claw."
        assert (tmp_path / "memory" / "MEMORY.md").read_text() == "Remember this."


class TestConfigManager:
    """Tests for configuration loading and the data directory."""

    def test_load_missing_config(self, tmp_path):
        """Test the onboarding hint when no config exists."""
        with pytest.raises(FileNotFoundError, match="onboard"):
            ConfigManager(tmp_path).load()

    def test_save_and_load(self, tmp_path):
        """Test that saved settings are loaded back."""
        manager = ConfigManager(tmp_path)
        manager.set_provider("deepseek", "sk-test", default_model="deepseek-chat")
        manager.config.default_provider = "deepseek"
        manager.config.agents.max_tool_iterations = 5
        manager.save()

        loaded = ConfigManager(tmp_path).load()

        assert isinstance(loaded, AppConfig)
        assert loaded.default_provider == "deepseek"
        assert loaded.agents.max_tool_iterations == 5
        assert loaded.providers["deepseek"].default_model == "deepseek-chat"
        assert loaded.data_dir == str(tmp_path)

    def test_data_dir_from_environment(self, tmp_path):
        """Test the CLAWAGENT_HOME override."""
        with patch.dict("os.environ", {"CLAWAGENT_HOME": str(tmp_path / "home")}):
            assert ConfigManager().data_dir == tmp_path / "home"

    def test_api_key_from_environment(self, tmp_path):
        """Test that an empty key falls back to <NAME>_API_KEY."""
        manager = ConfigManager(tmp_path)
        manager.set_provider("openai", "")

        with patch.dict("os.environ", {"OPENAI_API_KEY": "sk-env"}):
            assert manager.get_provider().api_key == "sk-env"
        assert manager.config.providers["openai"].api_key == ""
        assert manager.get_provider("missing") is None

    def test_initialize_data_dir_keeps_existing_files(self, tmp_path):
        """Test that default sections are created without overwriting edits."""
        (tmp_path / "SOUL.md").write_text("custom soul")

        ConfigManager(tmp_path).initialize_data_dir()

        assert (tmp_path / "SOUL.md").read_text() == "custom soul"
        for file_name in DEFAULT_SECTIONS:
            assert (tmp_path / file_name).is_file()
        assert (tmp_path / "skills").is_dir()
        assert (tmp_path / "sessions").is_dir()
