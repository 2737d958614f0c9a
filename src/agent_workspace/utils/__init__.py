"""Utility modules for agent_workspace."""

from agent_workspace.utils.responses import (
    create_error_response,
    create_success_response,
    is_error_response,
)

__all__ = [
    "create_success_response",
    "create_error_response",
    "is_error_response",
]
