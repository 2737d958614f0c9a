"""Workspace root resolution.

The workspace root is the sandbox boundary for every filesystem tool. It is
computed from two inputs:

- the ``AGENT_WORKSPACE_ROOT`` environment override (authoritative hard cap)
- the configured workspace root (``FileSystemConfig.workspace_root``)

Precedence:
    1. Only env set: env is the root.
    2. Only config set: config is the root.
    3. Both set: config may only narrow the env root. Both are compared by
       real (symlink-followed) path. For a config path that does not exist
       yet, parents are walked up to the first existing one, and that
       ancestor's real path must be inside the env root.
    4. Neither set: current working directory.

The result is captured once in an immutable ``WorkspaceContext`` that is
injected into the toolset.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from agent_workspace.config import FileSystemConfig, parse_writes_enabled
from agent_workspace.constants import (
    DEFAULT_MAX_READ_BYTES,
    DEFAULT_MAX_WRITE_BYTES,
    ENV_WORKSPACE_ROOT,
    ENV_WRITES_ENABLED,
)

logger = logging.getLogger(__name__)

WorkspaceSource = Literal["env", "config", "cwd"]


@dataclass(frozen=True)
class WorkspaceInitResult:
    """Outcome of workspace root resolution.

    Attributes:
        workspace_root: The effective workspace root
        source: Where the root came from: "env", "config" or "cwd"
        warning: Set when a configured root was rejected
    """

    workspace_root: Path
    source: WorkspaceSource
    warning: str | None = None


def expand_path(value: str) -> Path:
    """Expand ``~`` and normalize to an absolute path without following symlinks."""
    return Path(os.path.abspath(Path(value).expanduser()))


def safe_realpath(path: Path) -> Path:
    """Real path of path, or path itself if it cannot be resolved."""
    try:
        return path.resolve(strict=True)
    except (OSError, RuntimeError, ValueError):
        return path


def is_path_within(child: Path, parent: Path) -> bool:
    """True if child equals parent or is a descendant of it (lexical check)."""
    return child == parent or child.is_relative_to(parent)


def _present(value: str | None) -> bool:
    return value is not None and value != ""


def _narrow_missing_config(
    resolved_env: Path, real_env: Path, resolved_config: Path
) -> WorkspaceInitResult:
    """Validate a config root that does not exist yet against the env root.

    Walks up from the config path to its nearest existing ancestor. That
    ancestor's real path must lie inside the real env root; the first existing
    ancestor outside it (typically a symlinked directory) rejects the config.
    """
    check_path = resolved_config

    while check_path != resolved_env and check_path != check_path.parent:
        parent = check_path.parent
        try:
            parent_real = parent.resolve(strict=True)
        except (OSError, RuntimeError, ValueError):
            check_path = parent
            continue

        if not is_path_within(parent_real, real_env):
            if parent_real != parent:
                warning = (
                    f"Configured workspace root parent ({parent} -> {parent_real}) is a symlink "
                    f"that resolves outside {ENV_WORKSPACE_ROOT} ({real_env}). Config ignored for security."
                )
            else:
                warning = (
                    f"Configured workspace root ({resolved_config}) is outside "
                    f"{ENV_WORKSPACE_ROOT} ({resolved_env}). Config ignored for security."
                )
            logger.debug(
                f"Workspace config ignored: config={resolved_config} parent={parent} "
                f"parent_real={parent_real} real_env={real_env}"
            )
            return WorkspaceInitResult(resolved_env, "env", warning)

        # Pin to the ancestor's real path so a later symlink swap cannot retarget the root
        effective_root = parent_real / resolved_config.relative_to(parent)
        logger.debug(
            f"Workspace root narrowed by config (path does not exist yet): "
            f"env={resolved_env} config={resolved_config} effective={effective_root}"
        )
        return WorkspaceInitResult(effective_root, "config")

    if not is_path_within(resolved_config, resolved_env):
        warning = (
            f"Configured workspace root ({resolved_config}) is outside "
            f"{ENV_WORKSPACE_ROOT} ({resolved_env}). Config ignored for security."
        )
        logger.debug(f"Workspace config ignored (no existing parent): config={resolved_config}")
        return WorkspaceInitResult(resolved_env, "env", warning)

    logger.debug(f"Workspace root narrowed by config (no existing parent): {resolved_config}")
    return WorkspaceInitResult(resolved_config, "config")


async def resolve_workspace_root(
    env_root: str | None,
    config_root: str | None,
    cwd: Path | None = None,
) -> WorkspaceInitResult:
    """Resolve the effective workspace root from the env override and config value.

    This function has no side effects. Empty strings count as absent.

    Args:
        env_root: Value of the AGENT_WORKSPACE_ROOT override
        config_root: Configured workspace root
        cwd: Directory used when neither is set (defaults to Path.cwd())

    Returns:
        WorkspaceInitResult with root, source and optional warning

    Example:
        >>> result = await resolve_workspace_root("/srv/work", "/srv/work/project")
        >>> result.source
        'config'
    """
    has_env = _present(env_root)
    has_config = _present(config_root)

    if has_env and not has_config:
        resolved = expand_path(env_root)
        logger.debug(f"Workspace root from env var: {resolved}")
        return WorkspaceInitResult(resolved, "env")

    if has_config and not has_env:
        resolved = expand_path(config_root)
        logger.debug(f"Workspace root from config: {resolved}")
        return WorkspaceInitResult(resolved, "config")

    if has_env and has_config:
        resolved_env = expand_path(env_root)
        resolved_config = expand_path(config_root)
        real_env = safe_realpath(resolved_env)

        try:
            real_config = resolved_config.resolve(strict=True)
        except (OSError, RuntimeError, ValueError):
            return _narrow_missing_config(resolved_env, real_env, resolved_config)

        if is_path_within(real_config, real_env):
            logger.debug(
                f"Workspace root narrowed by config: env={resolved_env} config={resolved_config} "
                f"real={real_config}"
            )
            return WorkspaceInitResult(real_config, "config")

        if real_config != resolved_config:
            warning = (
                f"Configured workspace root ({resolved_config} -> {real_config}) is a symlink "
                f"that resolves outside {ENV_WORKSPACE_ROOT} ({real_env}). Config ignored for security."
            )
        else:
            warning = (
                f"Configured workspace root ({resolved_config}) is outside "
                f"{ENV_WORKSPACE_ROOT} ({resolved_env}). Config ignored for security."
            )
        logger.debug(f"Workspace config ignored: config={resolved_config} real={real_config}")
        return WorkspaceInitResult(resolved_env, "env", warning)

    workspace = cwd if cwd is not None else Path.cwd()
    logger.debug(f"Workspace root from cwd: {workspace}")
    return WorkspaceInitResult(workspace, "cwd")


async def get_workspace_info(config_root: str | None = None) -> WorkspaceInitResult:
    """Resolve the workspace root without mutating process state.

    Read-only counterpart of initialize_workspace_root() for display and
    diagnostics.
    """
    return await resolve_workspace_root(os.getenv(ENV_WORKSPACE_ROOT), config_root)


async def initialize_workspace_root(config_root: str | None = None) -> WorkspaceInitResult:
    """Resolve the workspace root and publish an accepted config value.

    When the configured root is accepted it is written to AGENT_WORKSPACE_ROOT
    so later calls to get_workspace_root() see the narrowed root. Prefer
    WorkspaceContext.initialize(), which carries the result explicitly.
    """
    result = await resolve_workspace_root(os.getenv(ENV_WORKSPACE_ROOT), config_root)
    if result.source == "config":
        os.environ[ENV_WORKSPACE_ROOT] = str(result.workspace_root)
    if result.warning:
        logger.warning(result.warning)
    return result


def get_workspace_root() -> Path:
    """Current workspace root: AGENT_WORKSPACE_ROOT if set, else the working directory."""
    env_root = os.getenv(ENV_WORKSPACE_ROOT)
    if _present(env_root):
        return expand_path(env_root)
    return Path.cwd()


def is_filesystem_writes_enabled() -> bool:
    """Check AGENT_FILESYSTEM_WRITES_ENABLED (unset or empty means enabled)."""
    return parse_writes_enabled(os.getenv(ENV_WRITES_ENABLED))


@dataclass(frozen=True)
class WorkspaceContext:
    """Immutable sandbox settings shared by every filesystem tool.

    Built once at startup and passed to FileSystemTools, so tools never read
    process-wide state.

    Example:
        >>> context = await WorkspaceContext.initialize(FileSystemConfig.from_env())
        >>> tools = FileSystemTools(context)
    """

    root: Path
    source: WorkspaceSource = "cwd"
    warning: str | None = None
    writes_enabled: bool = True
    max_read_bytes: int = DEFAULT_MAX_READ_BYTES
    max_write_bytes: int = DEFAULT_MAX_WRITE_BYTES

    @classmethod
    async def initialize(
        cls, config: FileSystemConfig | None = None, env_root: str | None = None
    ) -> "WorkspaceContext":
        """Resolve the workspace root for config and build a context.

        Args:
            config: Filesystem configuration (defaults to FileSystemConfig())
            env_root: Env override; read from AGENT_WORKSPACE_ROOT when None

        Returns:
            WorkspaceContext for the effective root
        """
        if config is None:
            config = FileSystemConfig()
        if env_root is None:
            env_root = os.getenv(ENV_WORKSPACE_ROOT)

        result = await resolve_workspace_root(env_root, config.workspace_root)
        if result.warning:
            logger.warning(result.warning)

        root = result.workspace_root
        if root == Path.home() or root == Path(root.anchor):
            logger.warning(
                f"Workspace is set to {root}. Consider using a project directory "
                f"or setting {ENV_WORKSPACE_ROOT} for better security."
            )

        return cls(
            root=root,
            source=result.source,
            warning=result.warning,
            writes_enabled=config.filesystem_writes_enabled,
            max_read_bytes=config.filesystem_max_read_bytes,
            max_write_bytes=config.filesystem_max_write_bytes,
        )

    @classmethod
    def for_root(cls, root: Path | str, **kwargs) -> "WorkspaceContext":
        """Build a context for an explicit root (no env/config reconciliation)."""
        return cls(root=expand_path(str(root)), **kwargs)
