"""Custom exceptions for workspace errors.

These exceptions are raised by internal helpers and caught at the tool
boundary, where they are translated into structured error responses. None of
them escapes a public tool method.
"""

from agent_workspace.types import ToolErrorCode


class WorkspaceError(Exception):
    """Base exception for all workspace errors."""

    pass


class ConfigurationError(WorkspaceError):
    """Raised when configuration values cannot be loaded."""

    pass


class FileGuardError(WorkspaceError):
    """A safety guard rejected a file before its content was used.

    Attributes:
        code: Tool error code reported to the caller
        message: Human-readable reason
    """

    def __init__(self, code: ToolErrorCode, message: str):
        """Initialize FileGuardError.

        Args:
            code: Tool error code reported to the caller
            message: Human-readable reason
        """
        self.code = code
        self.message = message
        super().__init__(message)


class AtomicWriteError(WorkspaceError):
    """Committing a staged temp file over its target failed."""

    pass
