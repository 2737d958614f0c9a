"""Path resolution and validation within workspace boundaries.

This is the core security layer that enforces workspace sandboxing. All
filesystem tools MUST resolve caller paths through here before touching the
filesystem.

Two stages:
    resolve_workspace_path()       lexical checks only ('..' segments, root prefix)
    resolve_workspace_path_safe()  follows symlinks and verifies the real path,
                                   or, for paths that do not exist yet, the real
                                   path of the nearest existing ancestor
"""

import logging
import os
import re
from pathlib import Path

from agent_workspace.safety import map_system_error
from agent_workspace.types import ErrorResponse, ToolErrorCode
from agent_workspace.utils.responses import create_error_response
from agent_workspace.workspace import is_path_within, safe_realpath

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[/\\]")


def resolve_workspace_path(relative_path: str, workspace_root: Path) -> Path | ErrorResponse:
    """Resolve a path lexically and verify it stays within the workspace.

    Does NOT follow symlinks. Use resolve_workspace_path_safe() before any
    filesystem access.

    Args:
        relative_path: Path relative to workspace root, or an absolute path
        workspace_root: Workspace root directory

    Returns:
        Absolute normalized Path, or PERMISSION_DENIED error response

    Example:
        >>> resolve_workspace_path("src/main.py", Path("/work"))
        PosixPath('/work/src/main.py')
        >>> resolve_workspace_path("../etc/passwd", Path("/work"))["error"]
        <ToolErrorCode.PERMISSION_DENIED: 'PERMISSION_DENIED'>
    """
    if "\x00" in relative_path:
        return create_error_response(
            ToolErrorCode.VALIDATION_ERROR, f"Path contains a null byte: {relative_path!r}"
        )
    try:
        os.fsencode(relative_path)
    except UnicodeError:
        return create_error_response(
            ToolErrorCode.VALIDATION_ERROR, f"Path is not encodable: {relative_path!r}"
        )

    if ".." in _SEPARATORS.split(relative_path):
        logger.warning(f"Path traversal attempt detected: {relative_path}")
        return create_error_response(
            ToolErrorCode.PERMISSION_DENIED,
            f"Path contains '..' component: {relative_path}. Path traversal is not allowed.",
        )

    requested = Path(relative_path)
    if not requested.is_absolute():
        requested = workspace_root / requested
    resolved = Path(os.path.abspath(requested))
    normalized_root = Path(os.path.abspath(workspace_root))

    if not is_path_within(resolved, normalized_root):
        logger.warning(
            f"Path outside workspace: {relative_path} -> {resolved} (workspace: {normalized_root})"
        )
        return create_error_response(
            ToolErrorCode.PERMISSION_DENIED, f"Path resolves outside workspace: {relative_path}"
        )

    return resolved


async def resolve_workspace_path_safe(
    relative_path: str,
    workspace_root: Path,
    require_exists: bool = False,
) -> Path | ErrorResponse:
    """Resolve a path and verify its real (symlink-followed) location.

    Existing paths are returned as their real path, which must be inside the
    real workspace root. Paths that do not exist are rejected when
    require_exists is set; otherwise (write targets) the nearest existing
    ancestor must resolve inside the workspace and the lexical path is returned.

    Args:
        relative_path: Path relative to workspace root, or an absolute path
        workspace_root: Workspace root directory
        require_exists: Return an error if the path does not exist

    Returns:
        Validated Path, or error response (PERMISSION_DENIED, NOT_FOUND, ...)

    Example:
        >>> path = await resolve_workspace_path_safe("notes.txt", root)
        >>> if isinstance(path, dict):
        ...     return path  # Error response
    """
    basic = resolve_workspace_path(relative_path, workspace_root)
    if isinstance(basic, dict):
        return basic

    # Handles roots reached through symlinks (e.g. /var -> /private/var)
    real_root = safe_realpath(Path(os.path.abspath(workspace_root)))

    try:
        real_path = basic.resolve(strict=True)
    except (OSError, RuntimeError, ValueError) as e:
        if require_exists:
            code, _ = map_system_error(e)
            return create_error_response(code, f"Path does not exist: {relative_path}")
        return _check_missing_target(relative_path, basic, real_root)

    if not is_path_within(real_path, real_root):
        logger.warning(f"Symlink target outside workspace: {relative_path} -> {real_path}")
        return create_error_response(
            ToolErrorCode.PERMISSION_DENIED, f"Symlink resolves outside workspace: {relative_path}"
        )

    logger.debug(f"Path resolved: {relative_path} -> {real_path}")
    return real_path


def _check_missing_target(relative_path: str, basic: Path, real_root: Path) -> Path | ErrorResponse:
    # A dangling symlink would be followed by an append; its partial resolution must stay inside
    if basic.is_symlink():
        target = Path(os.path.realpath(basic))
        if not is_path_within(target, real_root):
            logger.warning(f"Dangling symlink points outside workspace: {relative_path} -> {target}")
            return create_error_response(
                ToolErrorCode.PERMISSION_DENIED,
                f"Symlink resolves outside workspace: {relative_path}",
            )

    check_path = basic
    while check_path != real_root and check_path != check_path.parent:
        parent = check_path.parent
        try:
            parent_real = parent.resolve(strict=True)
        except (OSError, RuntimeError, ValueError):
            check_path = parent
            continue

        if not is_path_within(parent_real, real_root):
            logger.warning(
                f"Parent symlink outside workspace: {relative_path} ({parent} -> {parent_real})"
            )
            return create_error_response(
                ToolErrorCode.PERMISSION_DENIED,
                f"Parent directory symlink resolves outside workspace: {relative_path}",
            )
        return basic

    return basic
