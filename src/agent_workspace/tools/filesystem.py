"""Filesystem tools for safe, sandboxed file operations.

This module provides structured filesystem tools that enable agents to inspect
and modify files in a controlled workspace without exposing arbitrary OS shell
execution to the LLM.

Key Features:
- Workspace sandboxing with traversal and symlink-escape protection
- Structured directory listing, windowed file reading and text search
- Guarded write operations (create/overwrite/append) with atomic commit
- Exact-text edits and unified-diff patches with SHA-256 preconditions

All operations are sandboxed to the WorkspaceContext root and return the
standard ``{success, result | error, message}`` response; no exception
escapes a tool method.
"""

import difflib
import logging
import os
import re
from pathlib import Path
from typing import Annotated, Literal

from pydantic import Field

from agent_workspace.constants import (
    DEFAULT_MAX_ENTRIES,
    DEFAULT_MAX_LINES,
    DEFAULT_MAX_MATCHES,
    MAX_ENTRIES_CAP,
    MAX_LINES_CAP,
    SNIPPET_MAX_LENGTH,
)
from agent_workspace.exceptions import FileGuardError, WorkspaceError
from agent_workspace.patch import (
    apply_hunks,
    extract_patch_file_paths,
    parse_unified_diff,
    patch_paths_match,
)
from agent_workspace.paths import resolve_workspace_path, resolve_workspace_path_safe
from agent_workspace.safety import (
    atomic_write_text,
    check_write_size,
    compute_sha256,
    content_size,
    map_system_error,
    read_text_file,
)
from agent_workspace.tools.toolset import WorkspaceToolset
from agent_workspace.types import (
    ApplyFilePatchResult,
    ApplyTextEditResult,
    CreateDirectoryResult,
    DirectoryEntry,
    ErrorResponse,
    ListDirectoryResult,
    PathInfoResult,
    ReadFileResult,
    SearchMatch,
    SearchTextResult,
    ToolErrorCode,
    ToolResponse,
    WriteFileResult,
)
from agent_workspace.workspace import WorkspaceContext, safe_realpath

logger = logging.getLogger(__name__)

WriteMode = Literal["create", "overwrite", "append"]
VALID_WRITE_MODES = ("create", "overwrite", "append")

# Diff preview returned by apply_text_edit
EDIT_DIFF_MAX_LINES = 40

# Errors raised by filesystem calls and internal guards
_TOOL_ERRORS = (OSError, RuntimeError, UnicodeError, WorkspaceError)


def _match_glob(relative_path: str, pattern: str) -> bool:
    """Match a path relative to the search root against a glob.

    ``*`` does not cross directories, ``**`` does, and a leading ``**/``
    also matches files at the top level. Patterns without a slash are
    matched against the file name, so ``*.py`` finds Python files at any depth.
    """
    if pattern in ("*", "**", "**/*"):
        return True

    regex = ""
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            regex += "(?:.*/)?"
            i += 3
        elif pattern.startswith("**", i):
            regex += ".*"
            i += 2
        elif pattern[i] == "*":
            regex += "[^/]*"
            i += 1
        elif pattern[i] == "?":
            regex += "[^/]"
            i += 1
        else:
            regex += re.escape(pattern[i])
            i += 1

    compiled = re.compile(f"^{regex}$")
    if compiled.match(relative_path):
        return True
    return "/" not in pattern and compiled.match(relative_path.rsplit("/", 1)[-1]) is not None


def _edit_diff(original: str, updated: str) -> str:
    """Short unified-style preview of an edit (headers dropped, length capped)."""
    lines = list(
        difflib.unified_diff(original.split("\n"), updated.split("\n"), lineterm="", n=3)
    )[2:]
    if len(lines) > EDIT_DIFF_MAX_LINES:
        remaining = len(lines) - EDIT_DIFF_MAX_LINES
        lines = lines[:EDIT_DIFF_MAX_LINES] + [f"... ({remaining} more lines)"]
    return "\n".join(lines)


class FileSystemTools(WorkspaceToolset):
    """Filesystem tools for safe, sandboxed file operations.

    This toolset provides structured file operations with security guarantees:
    - All paths must resolve (symlinks followed) under the workspace root
    - Path traversal attempts are blocked
    - Symlinks, including symlinked parent directories, that escape are rejected
    - Write operations can be disabled as a whole
    - Size limits prevent resource exhaustion; binary files are refused
    - Writers stage content in a temp sibling and commit with an atomic rename

    Example:
        >>> context = WorkspaceContext.for_root("/home/user/project")
        >>> tools = FileSystemTools(context)
        >>> result = await tools.read_file("README.md")
        >>> print(result["result"]["content"])
    """

    def __init__(self, context: WorkspaceContext):
        """Initialize FileSystemTools with a workspace context.

        Args:
            context: Workspace root, writes flag and size limits
        """
        super().__init__(context)

    def get_tools(self) -> list:
        """Get list of filesystem tools.

        Returns:
            List of filesystem tool functions
        """
        return [
            self.get_path_info,
            self.list_directory,
            self.read_file,
            self.search_text,
            self.write_file,
            self.apply_text_edit,
            self.apply_file_patch,
            self.create_directory,
        ]

    @property
    def workspace_root(self) -> Path:
        return self.context.root

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _check_workspace(self) -> ErrorResponse | None:
        root = self.workspace_root
        try:
            exists = root.exists()
            is_dir = exists and root.is_dir()
        except OSError as e:
            return self._error_from_exception(e, "checking workspace root", str(root))
        if not exists:
            return self._create_error_response(
                ToolErrorCode.NOT_FOUND, f"Workspace root does not exist: {root}"
            )
        if not is_dir:
            return self._create_error_response(
                ToolErrorCode.VALIDATION_ERROR, f"Workspace root is not a directory: {root}"
            )
        return None

    async def _resolve(self, path: str, require_exists: bool = False) -> Path | ErrorResponse:
        """Resolve a caller path through the workspace sandbox.

        Returns:
            Validated Path, or error response to return as-is
        """
        workspace_error = self._check_workspace()
        if workspace_error is not None:
            return workspace_error
        return await resolve_workspace_path_safe(path, self.workspace_root, require_exists)

    def _check_writes_enabled(self) -> ErrorResponse | None:
        if not self.context.writes_enabled:
            return self._create_error_response(
                ToolErrorCode.PERMISSION_DENIED,
                "Filesystem writes are disabled. Set AGENT_FILESYSTEM_WRITES_ENABLED=true "
                "or enable filesystem_writes_enabled in configuration.",
            )
        return None

    def _error_from_exception(self, error: BaseException, action: str, path: str) -> ErrorResponse:
        code, message = map_system_error(error)
        if isinstance(error, FileGuardError):
            return self._create_error_response(code, message)
        logger.debug(f"{action} {path} failed: {error!r}")
        return self._create_error_response(code, f"Error {action} {path}: {message}")

    def _relative_to_root(self, path: Path, real_root: Path) -> str:
        return os.path.relpath(path, real_root)

    # ------------------------------------------------------------------
    # Read-only tools
    # ------------------------------------------------------------------

    async def get_path_info(
        self, path: Annotated[str, Field(description="Path relative to workspace root")] = "."
    ) -> ToolResponse:
        """Get metadata about a path without reading contents.

        Args:
            path: Path relative to workspace root (default: "." for workspace root)

        Returns:
            Success response with metadata:
            {
                "success": True,
                "result": {
                    "exists": bool,
                    "type": "file" | "directory" | "symlink" | "other" | None,
                    "size": int | None,  # bytes, only for files
                    "modified": float | None,  # Unix timestamp
                    "is_readable": bool,
                    "is_writable": bool,
                    "absolute_path": str  # resolved path
                },
                "message": "..."
            }

            A missing path inside the workspace is a success with exists=False.
        """
        resolved = await self._resolve(path)
        if isinstance(resolved, dict):
            return resolved

        try:
            if not os.path.lexists(resolved):
                info: PathInfoResult = {
                    "exists": False,
                    "type": None,
                    "size": None,
                    "modified": None,
                    "is_readable": False,
                    "is_writable": False,
                    "absolute_path": str(resolved),
                }
                return self._create_success_response(
                    result=info, message=f"Path does not exist: {path}"
                )

            # The resolved path is already symlink-free; check the path as requested
            lexical = resolve_workspace_path(path, self.workspace_root)
            is_symlink = isinstance(lexical, Path) and lexical.is_symlink()
            stats = resolved.stat()

            if is_symlink:
                path_type = "symlink"
            elif resolved.is_file():
                path_type = "file"
            elif resolved.is_dir():
                path_type = "directory"
            else:
                path_type = "other"

            info = {
                "exists": True,
                "type": path_type,
                "size": stats.st_size if resolved.is_file() else None,
                "modified": stats.st_mtime,
                "is_readable": os.access(resolved, os.R_OK),
                "is_writable": os.access(resolved, os.W_OK),
                "absolute_path": str(resolved),
            }

            return self._create_success_response(result=info, message=f"Retrieved metadata for: {path}")

        except _TOOL_ERRORS as e:
            return self._error_from_exception(e, "accessing", path)

    async def list_directory(
        self,
        path: Annotated[str, Field(description="Directory path relative to workspace")] = ".",
        recursive: Annotated[bool, Field(description="Recursively list subdirectories")] = False,
        max_entries: Annotated[int, Field(description="Maximum entries to return")] = DEFAULT_MAX_ENTRIES,
        include_hidden: Annotated[bool, Field(description="Include hidden files (dotfiles)")] = False,
    ) -> ToolResponse:
        """List directory contents with metadata.

        Symlinked entries are not listed or descended into.

        Args:
            path: Directory path relative to workspace root
            recursive: If True, walk subdirectories (depth-first)
            max_entries: Maximum number of entries to return (cap at 500)
            include_hidden: If True, include entries starting with '.'

        Returns:
            Success response with entries list:
            {
                "success": True,
                "result": {
                    "entries": [
                        {
                            "name": str,
                            "relative_path": str,
                            "type": "file" | "directory",
                            "size": int | None
                        },
                        ...
                    ],
                    "truncated": bool  # True if more entries exist
                },
                "message": "..."
            }
        """
        max_entries = max(0, min(max_entries, MAX_ENTRIES_CAP))

        resolved = await self._resolve(path, require_exists=True)
        if isinstance(resolved, dict):
            return resolved

        real_root = safe_realpath(self.workspace_root)
        entries: list[DirectoryEntry] = []
        truncated = False

        def scan(directory: Path) -> list[os.DirEntry]:
            with os.scandir(directory) as it:
                visible = [e for e in it if include_hidden or not e.name.startswith(".")]
            return sorted(visible, key=lambda e: e.name)

        try:
            if not resolved.is_dir():
                return self._create_error_response(
                    ToolErrorCode.VALIDATION_ERROR, f"Path is not a directory: {path}"
                )

            # Explicit depth-first worklist of directory iterators
            stack = [iter(scan(resolved))]
            while stack:
                entry = next(stack[-1], None)
                if entry is None:
                    stack.pop()
                    continue

                if entry.is_dir(follow_symlinks=False):
                    kind = "directory"
                    size = None
                elif entry.is_file(follow_symlinks=False):
                    kind = "file"
                    try:
                        size = entry.stat(follow_symlinks=False).st_size
                    except OSError:
                        size = None
                else:
                    continue

                if len(entries) >= max_entries:
                    truncated = True
                    break

                entries.append(
                    {
                        "name": entry.name,
                        "relative_path": self._relative_to_root(Path(entry.path), real_root),
                        "type": kind,
                        "size": size,
                    }
                )

                if recursive and kind == "directory":
                    stack.append(iter(scan(Path(entry.path))))

            listing: ListDirectoryResult = {"entries": entries, "truncated": truncated}
            return self._create_success_response(
                result=listing,
                message=f"Listed {len(entries)} entries from: {path}",
            )

        except _TOOL_ERRORS as e:
            return self._error_from_exception(e, "listing", path)

    async def read_file(
        self,
        path: Annotated[str, Field(description="File path relative to workspace")],
        start_line: Annotated[int, Field(description="Starting line number (1-based)")] = 1,
        max_lines: Annotated[int, Field(description="Maximum lines to read")] = DEFAULT_MAX_LINES,
    ) -> ToolResponse:
        """Read text file contents by line range with chunking support.

        Args:
            path: File path relative to workspace root
            start_line: Starting line number (1-based, default: 1)
            max_lines: Maximum lines to read (capped at 1000, default: 200)

        Returns:
            Success response with file content:
            {
                "success": True,
                "result": {
                    "path": str,
                    "start_line": int,
                    "end_line": int,
                    "total_lines": int,
                    "truncated": bool,
                    "next_start_line": int | None,
                    "content": str,
                    "encoding_errors": bool
                },
                "message": "..."
            }

            Or error response for validation/access errors (binary files,
            files over the read limit, start_line past the end).
        """
        max_lines = max(1, min(max_lines, MAX_LINES_CAP))
        start_line = max(1, start_line)

        resolved = await self._resolve(path, require_exists=True)
        if isinstance(resolved, dict):
            return resolved

        try:
            content = read_text_file(resolved, path, self.context.max_read_bytes)
        except _TOOL_ERRORS as e:
            return self._error_from_exception(e, "reading", path)

        lines = content.split("\n")
        total_lines = len(lines)

        if start_line > total_lines:
            return self._create_error_response(
                ToolErrorCode.VALIDATION_ERROR,
                f"start_line ({start_line}) exceeds file length ({total_lines} lines): {path}",
            )

        start_idx = start_line - 1
        end_idx = min(start_idx + max_lines, total_lines)
        selected = "\n".join(lines[start_idx:end_idx])
        truncated = end_idx < total_lines

        result: ReadFileResult = {
            "path": path,
            "start_line": start_line,
            "end_line": end_idx,
            "total_lines": total_lines,
            "truncated": truncated,
            "next_start_line": end_idx + 1 if truncated else None,
            "content": selected,
            "encoding_errors": "�" in selected,
        }

        return self._create_success_response(
            result=result,
            message=f"Read {end_idx - start_idx} lines from {path} (lines {start_line}-{end_idx})",
        )

    async def search_text(
        self,
        query: Annotated[str, Field(description="Search pattern (literal or regex)")],
        path: Annotated[str, Field(description="Directory or file to search")] = ".",
        glob: Annotated[str, Field(description="File pattern (e.g., '*.py', 'src/**/*.py')")] = "**/*",
        max_matches: Annotated[int, Field(description="Maximum matches to return")] = DEFAULT_MAX_MATCHES,
        use_regex: Annotated[bool, Field(description="Enable regex mode")] = False,
        case_sensitive: Annotated[bool, Field(description="Case-sensitive search")] = True,
    ) -> ToolResponse:
        """Search for text patterns across files.

        Supports literal string search (default) and regex search (opt-in).
        Every occurrence on a line is reported. Hidden directories, binary files
        and files over the read limit are skipped.

        Args:
            query: Search pattern (literal string or regex pattern)
            path: Directory or file to search (default: "." for workspace root)
            glob: File pattern to match (default: "**/*" for all files)
            max_matches: Maximum matches to return (default: 50)
            use_regex: Enable regex mode (default: False, literal search)
            case_sensitive: Case-sensitive search (default: True)

        Returns:
            Success response with matches:
            {
                "success": True,
                "result": {
                    "query": str,
                    "use_regex": bool,
                    "files_searched": int,
                    "matches": [
                        {
                            "file": str,
                            "line": int,
                            "snippet": str,
                            "match_start": int,
                            "match_end": int
                        },
                        ...
                    ],
                    "truncated": bool
                },
                "message": "..."
            }
        """
        if query == "":
            return self._create_error_response(
                ToolErrorCode.VALIDATION_ERROR, "query cannot be empty."
            )

        resolved = await self._resolve(path, require_exists=True)
        if isinstance(resolved, dict):
            return resolved

        regex_pattern = None
        if use_regex:
            try:
                regex_pattern = re.compile(query, 0 if case_sensitive else re.IGNORECASE)
            except re.error as e:
                return self._create_error_response(
                    ToolErrorCode.VALIDATION_ERROR, f"Invalid regex pattern '{query}': {e}"
                )

        real_root = safe_realpath(self.workspace_root)

        try:
            if resolved.is_file():
                files_to_search = [resolved]
            elif resolved.is_dir():
                files_to_search = self._collect_files(resolved, glob)
            else:
                return self._create_error_response(
                    ToolErrorCode.VALIDATION_ERROR, f"Path is neither file nor directory: {path}"
                )
        except _TOOL_ERRORS as e:
            return self._error_from_exception(e, "searching", path)

        search_query = query if case_sensitive else query.lower()
        matches: list[SearchMatch] = []
        files_searched = 0
        truncated = False

        for file_path in files_to_search:
            if len(matches) >= max_matches:
                truncated = True
                break

            files_searched += 1
            relative = self._relative_to_root(file_path, real_root)

            try:
                content = read_text_file(file_path, relative, self.context.max_read_bytes)
            except _TOOL_ERRORS:
                # Skip binary, oversized and unreadable files
                continue

            for line_number, line in enumerate(content.split("\n"), start=1):
                if regex_pattern is not None:
                    spans = [(m.start(), m.end()) for m in regex_pattern.finditer(line)]
                else:
                    haystack = line if case_sensitive else line.lower()
                    spans = []
                    start = haystack.find(search_query)
                    while start != -1:
                        spans.append((start, start + len(search_query)))
                        start = haystack.find(search_query, start + 1)

                if not spans:
                    continue

                snippet = line.strip()
                if len(snippet) > SNIPPET_MAX_LENGTH:
                    snippet = snippet[:SNIPPET_MAX_LENGTH] + "..."

                for match_start, match_end in spans:
                    if len(matches) >= max_matches:
                        truncated = True
                        break
                    matches.append(
                        {
                            "file": relative,
                            "line": line_number,
                            "snippet": snippet,
                            "match_start": match_start,
                            "match_end": match_end,
                        }
                    )

                if truncated:
                    break

        search_result: SearchTextResult = {
            "query": query,
            "use_regex": use_regex,
            "files_searched": files_searched,
            "matches": matches,
            "truncated": truncated,
        }
        return self._create_success_response(
            result=search_result,
            message=f"Found {len(matches)} matches in {files_searched} files",
        )

    def _collect_files(self, directory: Path, glob: str) -> list[Path]:
        """Files under directory matching glob, skipping hidden directories and symlinks."""
        files: list[Path] = []
        pending = [directory]
        while pending:
            current = pending.pop()
            with os.scandir(current) as it:
                entries = list(it)
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    if not entry.name.startswith("."):
                        pending.append(Path(entry.path))
                elif entry.is_file(follow_symlinks=False):
                    relative = Path(entry.path).relative_to(directory).as_posix()
                    if _match_glob(relative, glob):
                        files.append(Path(entry.path))
        return sorted(files)

    # ------------------------------------------------------------------
    # Write tools
    # ------------------------------------------------------------------

    async def write_file(
        self,
        path: Annotated[str, Field(description="File path relative to workspace")],
        content: Annotated[str, Field(description="Content to write")],
        mode: Annotated[WriteMode, Field(description="Write mode: create, overwrite, append")] = "create",
    ) -> ToolResponse:
        """Write file with safety checks and mode control.

        Modes: create (fails if the file exists), overwrite (replace or create)
        and append (add to the end, creating the file if needed). Create and
        overwrite commit atomically; parent directories are created as needed.

        Args:
            path: File path relative to workspace root
            content: Content to write to file
            mode: Write mode - "create", "overwrite", or "append" (default: "create")

        Returns:
            Success response with write statistics:
            {
                "success": True,
                "result": {
                    "path": str,
                    "bytes_written": int,
                    "mode": str,
                    "existed_before": bool
                },
                "message": "..."
            }
        """
        writes_error = self._check_writes_enabled()
        if writes_error is not None:
            return writes_error

        if mode not in VALID_WRITE_MODES:
            return self._create_error_response(
                ToolErrorCode.VALIDATION_ERROR,
                f"Invalid mode '{mode}'. Valid modes: {', '.join(VALID_WRITE_MODES)}",
            )

        resolved = await self._resolve(path)
        if isinstance(resolved, dict):
            return resolved

        try:
            content_bytes = check_write_size(content, self.context.max_write_bytes)

            existed_before = os.path.lexists(resolved)
            if mode == "create" and existed_before:
                return self._create_error_response(
                    ToolErrorCode.VALIDATION_ERROR,
                    f"File already exists (mode=create): {path}. Use mode='overwrite' or 'append'.",
                )

            resolved.parent.mkdir(parents=True, exist_ok=True)

            if mode == "append":
                with open(resolved, "a", encoding="utf-8", newline="") as f:
                    f.write(content)
            else:
                atomic_write_text(resolved, content)

        except _TOOL_ERRORS as e:
            return self._error_from_exception(e, "writing", path)

        logger.debug(f"Wrote {content_bytes} bytes to {resolved} (mode={mode})")
        write_result: WriteFileResult = {
            "path": path,
            "bytes_written": content_bytes,
            "mode": mode,
            "existed_before": existed_before,
        }
        return self._create_success_response(
            result=write_result,
            message=f"Wrote {content_bytes} bytes to {path} (mode={mode})",
        )

    async def apply_text_edit(
        self,
        path: Annotated[str, Field(description="File path relative to workspace")],
        expected_text: Annotated[str, Field(description="Exact text to find and replace")],
        replacement_text: Annotated[str, Field(description="Replacement text")],
        replace_all: Annotated[bool, Field(description="Replace all occurrences")] = False,
    ) -> ToolResponse:
        """Apply surgical text edits with safety checks.

        Performs exact text replacement. Requires an exact match of
        expected_text - no fuzzy matching or whitespace normalization. For
        structured multi-line edits prefer apply_file_patch.

        Args:
            path: File path relative to workspace root
            expected_text: Exact text to find (must be non-empty and match exactly)
            replacement_text: Replacement text (can be empty for deletion)
            replace_all: If False, error on multiple matches; if True, replace all

        Returns:
            Success response with edit statistics:
            {
                "success": True,
                "result": {
                    "path": str,
                    "bytes_written": int,
                    "replacements": int,
                    "original_size": int,
                    "new_size": int,
                    "lines_changed": int,
                    "diff": str
                },
                "message": "..."
            }

        Example:
            >>> result = await tools.apply_text_edit("config.py", "DEBUG = True", "DEBUG = False")
            >>> print(result["result"]["replacements"])
            1
        """
        writes_error = self._check_writes_enabled()
        if writes_error is not None:
            return writes_error

        if not expected_text:
            return self._create_error_response(
                ToolErrorCode.VALIDATION_ERROR,
                "expected_text cannot be empty. Provide exact text to match.",
            )

        resolved = await self._resolve(path, require_exists=True)
        if isinstance(resolved, dict):
            return resolved

        try:
            original_content = read_text_file(resolved, path, self.context.max_read_bytes)
            original_size = content_size(original_content)

            occurrences = original_content.count(expected_text)
            if occurrences == 0:
                return self._create_error_response(
                    ToolErrorCode.NOT_FOUND,
                    f"expected_text not found in file: {path}. No changes made.",
                )

            if occurrences > 1 and not replace_all:
                return self._create_error_response(
                    ToolErrorCode.VALIDATION_ERROR,
                    f"expected_text found {occurrences} times in {path}. "
                    f"Use replace_all=true to replace all occurrences.",
                )

            if replace_all:
                new_content = original_content.replace(expected_text, replacement_text)
                replacements = occurrences
            else:
                new_content = original_content.replace(expected_text, replacement_text, 1)
                replacements = 1

            new_size = check_write_size(
                new_content, self.context.max_write_bytes, label="Resulting file size"
            )

            # Approximate: net line delta plus one per replacement
            lines_changed = (
                abs(len(new_content.split("\n")) - len(original_content.split("\n"))) + replacements
            )

            atomic_write_text(resolved, new_content)

        except _TOOL_ERRORS as e:
            return self._error_from_exception(e, "editing", path)

        result: ApplyTextEditResult = {
            "path": path,
            "bytes_written": new_size,
            "replacements": replacements,
            "original_size": original_size,
            "new_size": new_size,
            "lines_changed": lines_changed,
            "diff": _edit_diff(original_content, new_content),
        }

        return self._create_success_response(
            result=result, message=f"Applied {replacements} replacement(s) to {path}"
        )

    async def apply_file_patch(
        self,
        path: Annotated[str, Field(description="File path relative to workspace")],
        patch: Annotated[str, Field(description="Unified diff patch content")],
        dry_run: Annotated[bool, Field(description="Validate patch without writing")] = False,
        require_exact_file_match: Annotated[
            bool, Field(description="Require patch headers to name the target file")
        ] = False,
        expected_sha256: Annotated[
            str | None, Field(description="Expected SHA256 hash of file before patching")
        ] = None,
    ) -> ToolResponse:
        """Apply a unified diff patch to a single file.

        Primary edit tool. Hunks are applied in order against an in-memory
        copy; every hunk's context must match exactly or nothing is changed.
        Use dry_run to preview the effect without writing.

        Args:
            path: File path relative to workspace root (must exist)
            patch: Unified diff text (--- / +++ headers optional)
            dry_run: Validate and report without writing (allowed when writes are disabled)
            require_exact_file_match: Reject the patch if its headers name another file
            expected_sha256: Optimistic-concurrency guard; fail if the file hash differs

        Returns:
            Success response with patch statistics:
            {
                "success": True,
                "result": {
                    "path": str,
                    "dry_run": bool,
                    "hunks_applied": int,
                    "lines_added": int,
                    "lines_removed": int,
                    "original_size": int,
                    "new_size": int,
                    "sha256_before": str,
                    "sha256_after": str
                },
                "message": "..."
            }

            Or VALIDATION_ERROR describing the parse error or the first
            context mismatch (hunk number, expected and actual lines).

        Example:
            >>> patch = "@@ -1 +1 @@\\n-DEBUG = True\\n+DEBUG = False"
            >>> result = await tools.apply_file_patch("config.py", patch, dry_run=True)
            >>> result["result"]["lines_added"]
            1
        """
        if not dry_run:
            writes_error = self._check_writes_enabled()
            if writes_error is not None:
                return writes_error

        resolved = await self._resolve(path, require_exists=True)
        if isinstance(resolved, dict):
            return resolved

        try:
            original_content = read_text_file(resolved, path, self.context.max_read_bytes)
            original_size = content_size(original_content)
            sha256_before = compute_sha256(original_content)

            if expected_sha256 is not None and expected_sha256.lower() != sha256_before:
                return self._create_error_response(
                    ToolErrorCode.VALIDATION_ERROR,
                    f"SHA256 mismatch. Expected: {expected_sha256}, actual: {sha256_before}. "
                    f"File may have changed.",
                )

            hunks = parse_unified_diff(patch)
            if not isinstance(hunks, list):
                return self._create_error_response(
                    ToolErrorCode.VALIDATION_ERROR, f"Patch parse error: {hunks.describe()}"
                )

            if require_exact_file_match:
                old_path, new_path = extract_patch_file_paths(patch)
                patch_paths = [p for p in (old_path, new_path) if p]
                if patch_paths and not patch_paths_match(path, patch_paths):
                    named = " or ".join(f'"{p}"' for p in patch_paths)
                    return self._create_error_response(
                        ToolErrorCode.VALIDATION_ERROR,
                        f'Patch file path mismatch. Patch specifies {named} but target is "{path}". '
                        f"Set require_exact_file_match=false to ignore.",
                    )

            new_content = apply_hunks(original_content, hunks)
            if not isinstance(new_content, str):
                logger.debug(f"Patch rejected for {path}: {new_content.message}")
                return self._create_error_response(
                    ToolErrorCode.VALIDATION_ERROR, f"Patch apply error: {new_content.describe()}"
                )

            new_size = content_size(new_content)
            sha256_after = compute_sha256(new_content)
            lines_added = sum(len(hunk.additions) for hunk in hunks)
            lines_removed = sum(len(hunk.removals) for hunk in hunks)

            if not dry_run:
                check_write_size(new_content, self.context.max_write_bytes, label="Patched file size")
                atomic_write_text(resolved, new_content)

        except _TOOL_ERRORS as e:
            return self._error_from_exception(e, "patching", path)

        result: ApplyFilePatchResult = {
            "path": path,
            "dry_run": dry_run,
            "hunks_applied": len(hunks),
            "lines_added": lines_added,
            "lines_removed": lines_removed,
            "original_size": original_size,
            "new_size": new_size,
            "sha256_before": sha256_before,
            "sha256_after": sha256_after,
        }

        summary = f"{len(hunks)} hunks, +{lines_added}/-{lines_removed} lines"
        if dry_run:
            message = f"Dry run: patch validated ({summary})"
        else:
            message = f"Applied patch to {path} ({summary})"
        return self._create_success_response(result=result, message=message)

    async def create_directory(
        self,
        path: Annotated[str, Field(description="Directory path relative to workspace")],
        parents: Annotated[bool, Field(description="Create parent directories if needed")] = True,
    ) -> ToolResponse:
        """Create directory with optional parent creation.

        Operation is idempotent (success if directory already exists).

        Args:
            path: Directory path relative to workspace root
            parents: If True, create parent directories as needed (like mkdir -p)

        Returns:
            Success response with creation details:
            {
                "success": True,
                "result": {
                    "path": str,
                    "created": bool,  # False if already existed
                    "parents_created": int
                },
                "message": "..."
            }
        """
        writes_error = self._check_writes_enabled()
        if writes_error is not None:
            return writes_error

        resolved = await self._resolve(path)
        if isinstance(resolved, dict):
            return resolved

        try:
            if resolved.exists():
                if resolved.is_dir():
                    return self._create_success_response(
                        result={"path": path, "created": False, "parents_created": 0},
                        message=f"Directory already exists: {path}",
                    )
                return self._create_error_response(
                    ToolErrorCode.VALIDATION_ERROR, f"Path exists but is not a directory: {path}"
                )

            parents_created = 0
            if parents:
                check_path = resolved.parent
                while check_path != self.workspace_root and not check_path.exists():
                    parents_created += 1
                    check_path = check_path.parent

            resolved.mkdir(parents=parents)

        except FileNotFoundError:
            return self._create_error_response(
                ToolErrorCode.NOT_FOUND,
                f"Parent directory does not exist: {path}. Use parents=true to create.",
            )
        except _TOOL_ERRORS as e:
            return self._error_from_exception(e, "creating", path)

        created: CreateDirectoryResult = {
            "path": path,
            "created": True,
            "parents_created": parents_created,
        }
        return self._create_success_response(
            result=created,
            message=f"Created directory: {path}",
        )
