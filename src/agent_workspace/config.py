"""Configuration for the workspace filesystem tools."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from agent_workspace.constants import (
    DEFAULT_MAX_READ_BYTES,
    DEFAULT_MAX_WRITE_BYTES,
    ENV_CONFIG_WORKSPACE_ROOT,
    ENV_MAX_READ_BYTES,
    ENV_MAX_WRITE_BYTES,
    ENV_WRITES_ENABLED,
)
from agent_workspace.exceptions import ConfigurationError


def parse_writes_enabled(value: str | None) -> bool:
    """Interpret a writes-enabled flag.

    Unset or empty means enabled. Only "false" (any case) and "0" disable writes.

    Example:
        >>> parse_writes_enabled(None)
        True
        >>> parse_writes_enabled("FALSE")
        False
    """
    if value is None or value == "":
        return True
    return value.lower() != "false" and value != "0"


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


@dataclass
class FileSystemConfig:
    """Configuration for the filesystem toolset.

    ``workspace_root`` is the configured (not yet validated) workspace root.
    It is reconciled with the ``AGENT_WORKSPACE_ROOT`` override when a
    ``WorkspaceContext`` is initialized.
    """

    workspace_root: str | None = None
    filesystem_writes_enabled: bool = True
    filesystem_max_read_bytes: int = DEFAULT_MAX_READ_BYTES
    filesystem_max_write_bytes: int = DEFAULT_MAX_WRITE_BYTES

    @classmethod
    def from_env(cls) -> "FileSystemConfig":
        """Load configuration from environment variables (and a .env file).

        Returns:
            FileSystemConfig instance with values from environment

        Raises:
            ConfigurationError: If a numeric limit is not an integer

        Example:
            >>> config = FileSystemConfig.from_env()
            >>> config.filesystem_writes_enabled
            True
        """
        load_dotenv()

        return cls(
            workspace_root=os.getenv(ENV_CONFIG_WORKSPACE_ROOT) or None,
            filesystem_writes_enabled=parse_writes_enabled(os.getenv(ENV_WRITES_ENABLED)),
            filesystem_max_read_bytes=_int_from_env(ENV_MAX_READ_BYTES, DEFAULT_MAX_READ_BYTES),
            filesystem_max_write_bytes=_int_from_env(ENV_MAX_WRITE_BYTES, DEFAULT_MAX_WRITE_BYTES),
        )
