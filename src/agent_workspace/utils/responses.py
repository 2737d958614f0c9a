"""Shared response helper functions for tools.

All tools should use these helpers so that every operation returns the same
``{success, result | error, message}`` shape for the agent to consume.
"""

from typing import Any

from agent_workspace.types import ErrorResponse, SuccessResponse, ToolErrorCode


def create_success_response(result: Any, message: str = "") -> SuccessResponse[Any]:
    """Create standardized success response.

    Args:
        result: Operation result (can be any type)
        message: Optional success message for logging/display

    Returns:
        Structured response dict with success=True

    Example:
        >>> create_success_response(result={"created": True}, message="Created directory: out")
        {'success': True, 'result': {'created': True}, 'message': 'Created directory: out'}
    """
    return {
        "success": True,
        "result": result,
        "message": message,
    }


def create_error_response(error: ToolErrorCode, message: str) -> ErrorResponse:
    """Create standardized error response.

    Tools use this instead of raising, so the agent can read the error code
    and message and adjust its next call.

    Args:
        error: Error code from the closed ToolErrorCode set
        message: Human-friendly error message

    Returns:
        Structured response dict with success=False

    Example:
        >>> response = create_error_response(
        ...     ToolErrorCode.NOT_FOUND, "File not found: data.txt"
        ... )
        >>> response["error"] == "NOT_FOUND"
        True
    """
    return {
        "success": False,
        "error": ToolErrorCode(error),
        "message": message,
    }


def is_error_response(value: Any) -> bool:
    """Return True if value is an error response dict."""
    return isinstance(value, dict) and value.get("success") is False
