"""Type definitions for the tool response contract.

Every tool returns a ``ToolResponse``: either a ``SuccessResponse`` carrying a
result payload, or an ``ErrorResponse`` carrying one of the ``ToolErrorCode``
values. The ``success`` key is the discriminator.
"""

from enum import Enum
from typing import Any, Generic, Literal, TypedDict, TypeVar

T = TypeVar("T")


class ToolErrorCode(str, Enum):
    """Closed set of error codes reported by the filesystem tools."""

    NOT_FOUND = "NOT_FOUND"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    IO_ERROR = "IO_ERROR"
    UNKNOWN = "UNKNOWN"

    def __str__(self) -> str:
        return self.value


class SuccessResponse(TypedDict, Generic[T]):
    success: Literal[True]
    result: T
    message: str


class ErrorResponse(TypedDict):
    success: Literal[False]
    error: ToolErrorCode
    message: str


ToolResponse = SuccessResponse[Any] | ErrorResponse


# Result payloads


class PathInfoResult(TypedDict):
    exists: bool
    type: Literal["file", "directory", "symlink", "other"] | None
    size: int | None
    modified: float | None
    is_readable: bool
    is_writable: bool
    absolute_path: str


class DirectoryEntry(TypedDict):
    name: str
    relative_path: str
    type: Literal["file", "directory"]
    size: int | None


class ListDirectoryResult(TypedDict):
    entries: list[DirectoryEntry]
    truncated: bool


class ReadFileResult(TypedDict):
    path: str
    start_line: int
    end_line: int
    total_lines: int
    truncated: bool
    next_start_line: int | None
    content: str
    encoding_errors: bool


class SearchMatch(TypedDict):
    file: str
    line: int
    snippet: str
    match_start: int
    match_end: int


class SearchTextResult(TypedDict):
    query: str
    use_regex: bool
    files_searched: int
    matches: list[SearchMatch]
    truncated: bool


class WriteFileResult(TypedDict):
    path: str
    bytes_written: int
    mode: Literal["create", "overwrite", "append"]
    existed_before: bool


class ApplyTextEditResult(TypedDict):
    path: str
    bytes_written: int
    replacements: int
    original_size: int
    new_size: int
    lines_changed: int
    diff: str


class CreateDirectoryResult(TypedDict):
    path: str
    created: bool
    parents_created: int


class ApplyFilePatchResult(TypedDict):
    path: str
    dry_run: bool
    hunks_applied: int
    lines_added: int
    lines_removed: int
    original_size: int
    new_size: int
    sha256_before: str
    sha256_after: str
