"""Agent Workspace - Sandboxed file tools for LLM coding agents."""

from importlib.metadata import PackageNotFoundError, version

# Read version from package metadata (pyproject.toml)
try:
    __version__ = version("agent-workspace")
except PackageNotFoundError:
    # Fallback for development environments where package isn't installed
    __version__ = "0.0.0.dev"

from agent_workspace.config import FileSystemConfig
from agent_workspace.tools import FileSystemTools, WorkspaceToolset
from agent_workspace.types import ToolErrorCode, ToolResponse
from agent_workspace.workspace import (
    WorkspaceContext,
    WorkspaceInitResult,
    get_workspace_info,
    initialize_workspace_root,
    resolve_workspace_root,
)

__all__ = [
    "FileSystemConfig",
    "FileSystemTools",
    "ToolErrorCode",
    "ToolResponse",
    "WorkspaceContext",
    "WorkspaceInitResult",
    "WorkspaceToolset",
    "get_workspace_info",
    "initialize_workspace_root",
    "resolve_workspace_root",
    "__version__",
]
