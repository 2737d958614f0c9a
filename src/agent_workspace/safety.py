"""Safety guards shared by every filesystem operation.

- Binary detection (null byte in the first 8 KiB)
- Size caps for reads and writes
- Translation of system errors into tool error codes
- SHA-256 content hashing
- Atomic commit of new file content (temp sibling + rename)
"""

import contextlib
import errno
import hashlib
import logging
import os
import re
import stat
import uuid
from pathlib import Path

from agent_workspace.constants import BINARY_CHECK_SIZE
from agent_workspace.exceptions import AtomicWriteError, FileGuardError
from agent_workspace.types import ToolErrorCode

logger = logging.getLogger(__name__)

_ERRNO_CODES: dict[int, ToolErrorCode] = {
    errno.ENOENT: ToolErrorCode.NOT_FOUND,
    errno.EACCES: ToolErrorCode.PERMISSION_DENIED,
    errno.EPERM: ToolErrorCode.PERMISSION_DENIED,
    errno.EISDIR: ToolErrorCode.VALIDATION_ERROR,
    errno.ENOTDIR: ToolErrorCode.VALIDATION_ERROR,
    errno.EMFILE: ToolErrorCode.IO_ERROR,
    errno.ENFILE: ToolErrorCode.IO_ERROR,
    errno.ENOSPC: ToolErrorCode.IO_ERROR,
}

_NAMED_CODES: dict[str, ToolErrorCode] = {
    errno.errorcode[number]: code for number, code in _ERRNO_CODES.items()
}

_MESSAGE_CODE_PATTERN = re.compile(r"\b(ENOENT|EACCES|EPERM|EISDIR|ENOTDIR|EMFILE|ENFILE|ENOSPC)\b")


def map_system_error(error: object) -> tuple[ToolErrorCode, str]:
    """Map an exception raised by a filesystem call to a tool error code.

    The errno attribute is checked first. Exceptions without one fall back to
    an errno name embedded in the message (e.g. "ENOENT: no such file").
    Unicode errors (unencodable text) map to VALIDATION_ERROR. Any other
    exception maps to IO_ERROR; non-exception values map to UNKNOWN.

    Args:
        error: The caught exception (or arbitrary value)

    Returns:
        Tuple of (error code, message)

    Example:
        >>> map_system_error(FileNotFoundError(2, "No such file"))[0]
        <ToolErrorCode.NOT_FOUND: 'NOT_FOUND'>
    """
    if isinstance(error, FileGuardError):
        return error.code, error.message

    if isinstance(error, UnicodeError):
        return ToolErrorCode.VALIDATION_ERROR, f"Content is not encodable as UTF-8: {error}"

    if isinstance(error, BaseException):
        message = str(error) or type(error).__name__

        number = getattr(error, "errno", None)
        if isinstance(number, int) and number in _ERRNO_CODES:
            return _ERRNO_CODES[number], message

        match = _MESSAGE_CODE_PATTERN.search(message)
        if match:
            return _NAMED_CODES[match.group(1)], message

        return ToolErrorCode.IO_ERROR, message

    return ToolErrorCode.UNKNOWN, str(error)


def is_binary_sample(sample: bytes) -> bool:
    """Return True if the sample contains a null byte."""
    return b"\x00" in sample


def content_size(content: str) -> int:
    """Size in bytes of content encoded as UTF-8."""
    return len(content.encode("utf-8"))


def compute_sha256(content: str) -> str:
    """Lowercase hex SHA-256 digest of content encoded as UTF-8."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def check_write_size(content: str, max_bytes: int, label: str = "Content size") -> int:
    """Raise FileGuardError if content exceeds the write cap.

    Returns:
        Encoded size of content in bytes
    """
    size = content_size(content)
    if size > max_bytes:
        raise FileGuardError(
            ToolErrorCode.VALIDATION_ERROR,
            f"{label} ({size} bytes) exceeds max write limit ({max_bytes} bytes)",
        )
    return size


def read_text_file(path: Path, display_path: str, max_bytes: int) -> str:
    """Read a text file after verifying it is a regular, small, non-binary file.

    A single handle is used for the stat, the binary sample and the content
    read, so a file swapped between the checks and the read is not picked up.

    Args:
        path: Resolved path to read
        display_path: Path as given by the caller, used in messages
        max_bytes: Maximum file size accepted

    Returns:
        File content decoded as UTF-8 (invalid bytes replaced)

    Raises:
        FileGuardError: If the path is not a file, too large, or binary
        OSError: On any underlying I/O failure
    """
    try:
        f = open(path, "rb")
    except IsADirectoryError as e:
        raise FileGuardError(
            ToolErrorCode.VALIDATION_ERROR, f"Path is not a file: {display_path}"
        ) from e

    with f:
        stats = os.fstat(f.fileno())
        if not stat.S_ISREG(stats.st_mode):
            raise FileGuardError(ToolErrorCode.VALIDATION_ERROR, f"Path is not a file: {display_path}")

        if stats.st_size > max_bytes:
            raise FileGuardError(
                ToolErrorCode.VALIDATION_ERROR,
                f"File size ({stats.st_size} bytes) exceeds max read limit "
                f"({max_bytes} bytes): {display_path}",
            )

        sample = f.read(BINARY_CHECK_SIZE)
        if is_binary_sample(sample):
            raise FileGuardError(
                ToolErrorCode.VALIDATION_ERROR,
                f"File appears to be binary (contains null bytes): {display_path}",
            )

        data = sample + f.read()

    return data.decode("utf-8", errors="replace")


def atomic_write_text(path: Path, content: str) -> None:
    """Write content to path atomically.

    Content is staged in a uniquely named hidden sibling and committed with
    os.replace, so readers see either the old or the new file, never a partial
    one. When the target already exists its permission bits are kept.

    Raises:
        AtomicWriteError: If the final rename fails (temp file is removed)
        OSError: If staging the temp file fails
    """
    temp_path = path.parent / f".{path.name}.{uuid.uuid4().hex}.tmp"

    fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o666)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)

        with contextlib.suppress(FileNotFoundError):
            os.chmod(temp_path, stat.S_IMODE(os.stat(path).st_mode))
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(temp_path)
        raise

    try:
        os.replace(temp_path, path)
    except OSError as e:
        with contextlib.suppress(OSError):
            os.unlink(temp_path)
        logger.error(f"Atomic rename failed for {path}: {e}")
        raise AtomicWriteError(f"Failed to rename temp file to {path}: {e}") from e

    logger.debug(f"Committed {path} via {temp_path.name}")
