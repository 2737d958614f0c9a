"""Tool implementations for the agent workspace."""

from agent_workspace.tools.filesystem import FileSystemTools
from agent_workspace.tools.toolset import WorkspaceToolset

__all__ = ["WorkspaceToolset", "FileSystemTools"]
