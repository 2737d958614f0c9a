"""Shared test fixtures for all tests.

Fixtures live in the fixtures/ module, organized by component, and are
re-exported here so pytest discovers them for every test.
"""

from tests.fixtures.workspace import (  # noqa: F401
    fs_tools_readonly,
    fs_tools_writable,
    readonly_context,
    sample_files,
    temp_workspace,
    writable_context,
)
