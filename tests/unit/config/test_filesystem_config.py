"""Unit tests for FileSystemConfig."""

import pytest

from agent_workspace.config import FileSystemConfig, parse_writes_enabled
from agent_workspace.constants import DEFAULT_MAX_READ_BYTES, DEFAULT_MAX_WRITE_BYTES
from agent_workspace.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in [
        "AGENT_CONFIG_WORKSPACE_ROOT",
        "AGENT_FILESYSTEM_WRITES_ENABLED",
        "AGENT_FILESYSTEM_MAX_READ_BYTES",
        "AGENT_FILESYSTEM_MAX_WRITE_BYTES",
    ]:
        monkeypatch.delenv(name, raising=False)


@pytest.mark.unit
class TestFileSystemConfig:
    """Tests for FileSystemConfig defaults and environment loading."""

    def test_defaults(self):
        config = FileSystemConfig()

        assert config.workspace_root is None
        assert config.filesystem_writes_enabled is True
        assert config.filesystem_max_read_bytes == DEFAULT_MAX_READ_BYTES
        assert config.filesystem_max_write_bytes == DEFAULT_MAX_WRITE_BYTES

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("AGENT_CONFIG_WORKSPACE_ROOT", "/srv/project")
        monkeypatch.setenv("AGENT_FILESYSTEM_WRITES_ENABLED", "false")
        monkeypatch.setenv("AGENT_FILESYSTEM_MAX_READ_BYTES", "2048")
        monkeypatch.setenv("AGENT_FILESYSTEM_MAX_WRITE_BYTES", "1024")

        config = FileSystemConfig.from_env()

        assert config.workspace_root == "/srv/project"
        assert config.filesystem_writes_enabled is False
        assert config.filesystem_max_read_bytes == 2048
        assert config.filesystem_max_write_bytes == 1024

    def test_from_env_empty_values_use_defaults(self, monkeypatch):
        monkeypatch.setenv("AGENT_CONFIG_WORKSPACE_ROOT", "")
        monkeypatch.setenv("AGENT_FILESYSTEM_MAX_READ_BYTES", "")

        config = FileSystemConfig.from_env()

        assert config.workspace_root is None
        assert config.filesystem_max_read_bytes == DEFAULT_MAX_READ_BYTES

    def test_from_env_invalid_integer(self, monkeypatch):
        monkeypatch.setenv("AGENT_FILESYSTEM_MAX_READ_BYTES", "lots")

        with pytest.raises(ConfigurationError, match="must be an integer"):
            FileSystemConfig.from_env()

    @pytest.mark.parametrize(
        "value, expected",
        [(None, True), ("", True), ("true", True), ("yes", True), ("False", False), ("0", False)],
    )
    def test_parse_writes_enabled(self, value, expected):
        assert parse_writes_enabled(value) is expected
