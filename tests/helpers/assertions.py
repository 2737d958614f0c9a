"""Custom assertions for testing workspace tools.

This module provides reusable assertions for validating the tool response
contract: ``{success: True, result, message}`` or
``{success: False, error, message}``.
"""

from typing import Any

from agent_workspace.types import ToolErrorCode


def assert_success_response(response: dict[str, Any]) -> None:
    """Assert that a response follows the success format.

    Args:
        response: The response dictionary to validate

    Raises:
        AssertionError: If response doesn't match expected success format

    Example:
        >>> result = await tools.read_file("README.md")
        >>> assert_success_response(result)
    """
    assert isinstance(response, dict), f"Response must be dict, got {type(response)}"
    assert "success" in response, "Response missing 'success' field"
    assert (
        response["success"] is True
    ), f"Expected success=True, got {response['success']}: {response.get('message')}"
    assert "result" in response, "Success response missing 'result' field"
    assert "message" in response, "Success response missing 'message' field"
    assert "error" not in response, "Success response must not carry 'error'"


def assert_error_response(
    response: dict[str, Any], error_code: ToolErrorCode | str | None = None
) -> None:
    """Assert that a response follows the error format.

    Args:
        response: The response dictionary to validate
        error_code: Optional specific error code to check for

    Raises:
        AssertionError: If response doesn't match expected error format

    Example:
        >>> result = await tools.read_file("../etc/passwd")
        >>> assert_error_response(result, ToolErrorCode.PERMISSION_DENIED)
    """
    assert isinstance(response, dict), f"Response must be dict, got {type(response)}"
    assert "success" in response, "Response missing 'success' field"
    assert response["success"] is False, f"Expected success=False, got {response['success']}"
    assert "error" in response, "Error response missing 'error' field"
    assert "message" in response, "Error response missing 'message' field"
    assert "result" not in response, "Error response must not carry 'result'"
    assert isinstance(response["error"], ToolErrorCode), f"Unknown error code {response['error']!r}"

    if error_code is not None:
        actual_code = response.get("error")
        assert (
            actual_code == error_code
        ), f"Expected error code '{error_code}', got '{actual_code}': {response['message']}"


def assert_tool_response_format(response: dict[str, Any]) -> None:
    """Assert that a response follows the standard tool response format.

    This checks for the presence of required fields but doesn't validate
    whether it's a success or error response.

    Args:
        response: The response dictionary to validate

    Raises:
        AssertionError: If response doesn't have required fields
    """
    assert isinstance(response, dict), f"Response must be dict, got {type(response)}"
    assert "success" in response, "Response missing 'success' field"
    assert isinstance(
        response["success"], bool
    ), f"success must be bool, got {type(response['success'])}"

    if response["success"]:
        assert "result" in response, "Success response must have 'result' field"
    else:
        assert "error" in response, "Error response must have 'error' field"

    assert "message" in response, "Response must have 'message' field"
