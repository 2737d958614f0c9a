"""Unified diff parsing and hunk application.

Supports single-file unified diffs::

    --- a/src/app.py
    +++ b/src/app.py
    @@ -10,3 +10,3 @@
     context
    -old line
    +new line
     context

File headers are optional. Parse and apply failures are returned as
``PatchError`` values rather than raised, so the calling tool can report
them as validation errors with enough context for the agent to retry.
"""

import re
from dataclasses import dataclass, field
from typing import Literal

NO_NEWLINE_MARKER = "\\ No newline at end of file"

_HUNK_HEADER = re.compile(r"^@@\s+-(\d+)(?:,(\d+))?\s+\+(\d+)(?:,(\d+))?\s+@@")

PatchErrorKind = Literal["parse_error", "context_mismatch"]


@dataclass
class ParsedHunk:
    """One hunk of a unified diff.

    ``context_before + removals + context_after`` are the old-side lines and
    ``context_before + additions + context_after`` the new-side lines.
    """

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    context_before: list[str] = field(default_factory=list)
    removals: list[str] = field(default_factory=list)
    additions: list[str] = field(default_factory=list)
    context_after: list[str] = field(default_factory=list)

    @property
    def old_lines(self) -> list[str]:
        return [*self.context_before, *self.removals, *self.context_after]

    @property
    def new_lines(self) -> list[str]:
        return [*self.context_before, *self.additions, *self.context_after]


@dataclass(frozen=True)
class PatchError:
    """A patch that could not be parsed or applied.

    Attributes:
        kind: parse_error or context_mismatch
        message: Human-readable description
        hunk_index: Zero-based index of the offending hunk, if any
        excerpt: Short excerpt of the offending input
    """

    kind: PatchErrorKind
    message: str
    hunk_index: int | None = None
    excerpt: str | None = None

    def describe(self) -> str:
        if self.excerpt is None:
            return self.message
        if self.kind == "context_mismatch":
            return f"{self.message}\n{self.excerpt}"
        return f'{self.message} near: "{self.excerpt}"'


def extract_patch_file_paths(patch: str) -> tuple[str | None, str | None]:
    """Extract the old and new file paths from ``---``/``+++`` headers.

    ``a/`` and ``b/`` prefixes are stripped; ``/dev/null`` becomes an empty
    string. Scanning stops at the first hunk header.

    Returns:
        Tuple of (old_path, new_path); None where the header is missing
    """
    old_path: str | None = None
    new_path: str | None = None

    for line in patch.split("\n"):
        if line.startswith("--- "):
            part = line[4:].strip()
            old_path = "" if part == "/dev/null" else part.removeprefix("a/")
        elif line.startswith("+++ "):
            part = line[4:].strip()
            new_path = "" if part == "/dev/null" else part.removeprefix("b/")
        elif line.startswith("@@"):
            break

    return old_path, new_path


def patch_paths_match(target_path: str, patch_paths: list[str]) -> bool:
    """Check whether any patch header path names the target file.

    Paths match when equal, or when one ends with ``/`` plus the other
    (so ``src/app.py`` matches ``project/src/app.py``). Leading ``./`` is
    ignored on both sides.
    """
    normalized_target = target_path.removeprefix("./")
    for patch_path in patch_paths:
        normalized_patch = patch_path.removeprefix("./")
        if (
            normalized_patch == normalized_target
            or normalized_patch.endswith("/" + normalized_target)
            or normalized_target.endswith("/" + normalized_patch)
        ):
            return True
    return False


def parse_unified_diff(patch: str) -> list[ParsedHunk] | PatchError:
    """Parse unified diff text into hunks.

    Each hunk body is read until ``old_count`` old-side and ``new_count``
    new-side lines have been consumed. Within a hunk the content must be
    ordered context_before -> changes -> context_after; a removal or addition
    after trailing context is a malformed hunk.

    Args:
        patch: Unified diff text

    Returns:
        List of ParsedHunk in patch order, or a parse_error PatchError

    Example:
        >>> hunks = parse_unified_diff("@@ -1 +1 @@\\n-old\\n+new")
        >>> hunks[0].removals, hunks[0].additions
        (['old'], ['new'])
    """
    lines = patch.split("\n")
    hunks: list[ParsedHunk] = []

    i = 0
    while i < len(lines):
        line = lines[i]

        # File headers and blank separators
        if line == "" or line.startswith(("---", "+++", "diff ")):
            i += 1
            continue

        header = _HUNK_HEADER.match(line)
        if header is None:
            if line.startswith((" ", "-", "+")):
                return PatchError(
                    kind="parse_error",
                    message="Diff content found outside of hunk. Missing @@ hunk header.",
                    excerpt=line[:60],
                )
            # index lines, commentary, etc.
            i += 1
            continue

        hunk = ParsedHunk(
            old_start=int(header.group(1)),
            old_count=int(header.group(2)) if header.group(2) is not None else 1,
            new_start=int(header.group(3)),
            new_count=int(header.group(4)) if header.group(4) is not None else 1,
        )
        phase: Literal["context_before", "changes", "context_after"] = "context_before"
        old_read = 0
        new_read = 0
        i += 1

        while i < len(lines) and (old_read < hunk.old_count or new_read < hunk.new_count):
            body = lines[i]

            if body.startswith(("@@", "diff ")):
                break

            if body.startswith(" "):
                text = body[1:]
                if phase == "context_before":
                    hunk.context_before.append(text)
                else:
                    phase = "context_after"
                    hunk.context_after.append(text)
                old_read += 1
                new_read += 1
            elif body.startswith("-"):
                if phase == "context_after":
                    return PatchError(
                        kind="parse_error",
                        message="Removal line after context_after. Malformed hunk.",
                        hunk_index=len(hunks),
                        excerpt=body[:60],
                    )
                phase = "changes"
                hunk.removals.append(body[1:])
                old_read += 1
            elif body.startswith("+"):
                if phase == "context_after":
                    return PatchError(
                        kind="parse_error",
                        message="Addition line after context_after. Malformed hunk.",
                        hunk_index=len(hunks),
                        excerpt=body[:60],
                    )
                phase = "changes"
                hunk.additions.append(body[1:])
                new_read += 1
            elif body == NO_NEWLINE_MARKER:
                pass
            elif body == "":
                # Some generators strip the leading space from blank context lines
                if phase == "context_before":
                    hunk.context_before.append("")
                elif phase == "context_after" or (not hunk.removals and not hunk.additions):
                    phase = "context_after"
                    hunk.context_after.append("")
                old_read += 1
                new_read += 1
            else:
                break

            i += 1

        hunks.append(hunk)

    if not hunks:
        return PatchError(
            kind="parse_error",
            message="No valid hunks found in patch. Expected @@ -N,M +N,M @@ format.",
        )

    return hunks


def apply_hunks(content: str, hunks: list[ParsedHunk]) -> str | PatchError:
    """Apply parsed hunks to content, strictly in patch order.

    Each hunk's old-side lines must match the content exactly at its
    position, shifted by the net line delta of the hunks applied before it.
    The first mismatch aborts the whole apply; content is never partially
    patched.

    Args:
        content: Original file content
        hunks: Hunks from parse_unified_diff()

    Returns:
        Patched content, or a context_mismatch PatchError
    """
    result = content.split("\n")
    offset = 0

    for index, hunk in enumerate(hunks):
        # Pure insertions (old_count == 0) sit after line old_start, as "diff -U0"
        # numbers them, not at old_start - 1
        if hunk.old_count == 0:
            target_start = hunk.old_start + offset
        else:
            target_start = hunk.old_start - 1 + offset

        expected = hunk.old_lines

        if target_start < 0 or target_start > len(result):
            return _mismatch(index, max(target_start, 0), expected[0] if expected else "", "<end of file>")

        for j, expected_line in enumerate(expected):
            line_index = target_start + j
            if line_index >= len(result):
                return _mismatch(index, line_index, expected_line, "<end of file>")
            if result[line_index] != expected_line:
                return _mismatch(index, line_index, expected_line, result[line_index])

        replacement = hunk.new_lines
        result[target_start : target_start + len(expected)] = replacement
        offset += len(replacement) - len(expected)

    return "\n".join(result)


def _mismatch(hunk_index: int, line_index: int, expected: str, actual: str) -> PatchError:
    return PatchError(
        kind="context_mismatch",
        message=(
            f"Hunk {hunk_index + 1} context mismatch at line {line_index + 1}. "
            f'Expected: "{expected[:40]}", got: "{actual[:40]}"'
        ),
        hunk_index=hunk_index,
        excerpt=f"Expected: {expected[:60]}\nActual: {actual[:60]}",
    )
