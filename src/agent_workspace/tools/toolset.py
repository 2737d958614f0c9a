"""Base class for workspace toolsets.

This module provides the abstract base class for creating toolsets. Toolsets
encapsulate related tools with shared dependencies (here, the immutable
WorkspaceContext), avoiding global state and enabling dependency injection
for testing.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError, validate_call

from agent_workspace.types import ErrorResponse, SuccessResponse, ToolErrorCode, ToolResponse
from agent_workspace.utils.responses import (
    create_error_response,
    create_success_response,
    is_error_response,
)
from agent_workspace.workspace import WorkspaceContext

logger = logging.getLogger(__name__)


class WorkspaceToolset(ABC):
    """Base class for workspace toolsets.

    Each toolset receives a WorkspaceContext with the sandbox root and
    limits, making it easy to build isolated instances in tests.

    Example:
        >>> class MyTools(WorkspaceToolset):
        ...     def get_tools(self):
        ...         return [self.my_tool]
        ...
        ...     async def my_tool(self, arg: str) -> dict:
        ...         return self._create_success_response(
        ...             result=f"Processed: {arg}",
        ...             message="Tool executed successfully"
        ...         )
    """

    def __init__(self, context: WorkspaceContext):
        """Initialize toolset with workspace context.

        Args:
            context: Workspace root and limits shared by all tools
        """
        self.context = context

    @abstractmethod
    def get_tools(self) -> list[Callable]:
        """Get list of tool functions.

        Tools should be async callables with Annotated type hints and
        docstrings for LLM consumption.

        Returns:
            List of callable tool functions
        """
        pass

    def tool_names(self) -> list[str]:
        """Names of the tools exposed by this toolset."""
        return [tool.__name__ for tool in self.get_tools()]

    async def invoke(self, name: str, arguments: dict[str, Any] | None = None) -> ToolResponse:
        """Invoke a tool by name with untrusted arguments.

        Arguments are validated and coerced against the tool signature;
        defaults declared on the signature fill in missing values. Any
        validation failure is reported as VALIDATION_ERROR.

        Args:
            name: Tool name (e.g. "read_file")
            arguments: Keyword arguments as received from the model

        Returns:
            The tool's response, or an error response

        Example:
            >>> await tools.invoke("read_file", {"path": "README.md", "max_lines": "20"})
        """
        tools = {tool.__name__: tool for tool in self.get_tools()}
        tool = tools.get(name)
        if tool is None:
            return self._create_error_response(
                ToolErrorCode.NOT_FOUND,
                f"Unknown tool '{name}'. Available tools: {', '.join(sorted(tools))}",
            )

        try:
            if inspect.ismethod(tool):
                outcome = validate_call(tool.__func__)(tool.__self__, **(arguments or {}))
            else:
                outcome = validate_call(tool)(**(arguments or {}))
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except ValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(part) for part in err['loc']) or 'arguments'}: {err['msg']}"
                for err in e.errors()
            )
            logger.debug(f"Invalid arguments for {name}: {details}")
            return self._create_error_response(
                ToolErrorCode.VALIDATION_ERROR, f"Invalid arguments for {name}: {details}"
            )

        if is_error_response(outcome):
            logger.debug(f"Tool {name} failed: {outcome['error']}: {outcome['message']}")
        return outcome

    def _create_success_response(self, result: Any, message: str = "") -> SuccessResponse[Any]:
        """Create standardized success response.

        Args:
            result: Tool execution result (can be any type)
            message: Optional success message for logging/display

        Returns:
            Structured response dict with success=True
        """
        return create_success_response(result, message)

    def _create_error_response(self, error: ToolErrorCode, message: str) -> ErrorResponse:
        """Create standardized error response.

        Tools should use this when they encounter errors rather than raising
        exceptions.

        Args:
            error: Error code from the closed ToolErrorCode set
            message: Human-friendly error message

        Returns:
            Structured response dict with success=False
        """
        return create_error_response(error, message)
