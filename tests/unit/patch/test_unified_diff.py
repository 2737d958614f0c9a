"""Unit tests for unified diff parsing and hunk application (agent_workspace.patch)."""

import difflib

import pytest

from agent_workspace.patch import (
    ParsedHunk,
    PatchError,
    apply_hunks,
    extract_patch_file_paths,
    parse_unified_diff,
    patch_paths_match,
)


def unified(before: str, after: str, n: int = 3) -> str:
    return "\n".join(
        difflib.unified_diff(before.split("\n"), after.split("\n"), "a/f", "b/f", lineterm="", n=n)
    )


@pytest.mark.unit
@pytest.mark.patch
class TestParseUnifiedDiff:
    """Tests for parse_unified_diff."""

    def test_single_hunk_phases(self):
        patch = "--- a/f\n+++ b/f\n@@ -1,4 +1,4 @@\n ctx1\n-old\n+new\n ctx2\n ctx3"

        hunks = parse_unified_diff(patch)

        assert hunks == [
            ParsedHunk(
                old_start=1,
                old_count=4,
                new_start=1,
                new_count=4,
                context_before=["ctx1"],
                removals=["old"],
                additions=["new"],
                context_after=["ctx2", "ctx3"],
            )
        ]

    def test_counts_default_to_one(self):
        hunks = parse_unified_diff("@@ -3 +3 @@\n-a\n+b")

        assert hunks[0].old_count == 1
        assert hunks[0].new_count == 1

    def test_multiple_hunks(self):
        patch = "@@ -1,1 +1,1 @@\n-a\n+A\n@@ -10,1 +10,2 @@\n x\n+y"

        hunks = parse_unified_diff(patch)

        assert [h.old_start for h in hunks] == [1, 10]
        assert hunks[1].context_before == ["x"]
        assert hunks[1].additions == ["y"]

    def test_no_newline_marker_ignored(self):
        patch = "@@ -1,1 +1,1 @@\n-a\n\\ No newline at end of file\n+b\n\\ No newline at end of file"

        hunks = parse_unified_diff(patch)

        assert hunks[0].removals == ["a"]
        assert hunks[0].additions == ["b"]

    def test_git_extended_headers_skipped(self):
        patch = "diff --git a/f b/f\nindex 123..456 100644\n--- a/f\n+++ b/f\n@@ -1 +1 @@\n-a\n+b"

        assert len(parse_unified_diff(patch)) == 1

    def test_content_before_header_is_error(self):
        result = parse_unified_diff("-a\n+b")

        assert isinstance(result, PatchError)
        assert result.kind == "parse_error"
        assert "Missing @@ hunk header" in result.message
        assert result.excerpt == "-a"

    def test_no_hunks_is_error(self):
        result = parse_unified_diff("--- a/f\n+++ b/f\n")

        assert isinstance(result, PatchError)
        assert "No valid hunks found" in result.message

    def test_change_after_trailing_context_is_error(self):
        result = parse_unified_diff("@@ -1,3 +1,3 @@\n-a\n+b\n c\n-d\n+e")

        assert isinstance(result, PatchError)
        assert "Removal line after context_after" in result.message
        assert result.hunk_index == 0

    def test_addition_after_trailing_context_is_error(self):
        result = parse_unified_diff("@@ -1,2 +1,3 @@\n+b\n c\n+e\n d")

        assert isinstance(result, PatchError)
        assert "Addition line after context_after" in result.message


@pytest.mark.unit
@pytest.mark.patch
class TestBlankLineHeuristic:
    """Bare blank lines (leading space stripped by some generators)."""

    def test_blank_line_in_leading_context(self):
        hunks = parse_unified_diff("@@ -1,3 +1,3 @@\n a\n\n-b\n+B")

        assert hunks[0].context_before == ["a", ""]
        assert hunks[0].removals == ["b"]

    def test_blank_line_in_trailing_context(self):
        hunks = parse_unified_diff("@@ -1,3 +1,3 @@\n-a\n+A\n b\n\n")

        assert hunks[0].context_after == ["b", ""]

    def test_blank_line_between_changes_consumed_but_dropped(self):
        # Counts as an old and new line but is not recorded in any section
        hunks = parse_unified_diff("@@ -1,3 +1,3 @@\n-a\n\n+A\n c")

        assert hunks[0].removals == ["a"]
        assert hunks[0].additions == ["A"]
        assert hunks[0].context_before == []
        assert hunks[0].context_after == ["c"]


@pytest.mark.unit
@pytest.mark.patch
class TestApplyHunks:
    """Tests for apply_hunks."""

    def test_replace_middle_line(self):
        hunks = parse_unified_diff("@@ -2,3 +2,3 @@\n line2\n-line3\n+line3-modified\n line4")

        assert apply_hunks("line1\nline2\nline3\nline4\nline5", hunks) == (
            "line1\nline2\nline3-modified\nline4\nline5"
        )

    def test_offset_tracks_earlier_hunks(self):
        original = "\n".join(str(i) for i in range(1, 21))
        updated = original.replace("3", "3\n3a\n3b").replace("17", "seventeen")

        result = apply_hunks(original, parse_unified_diff(unified(original, updated, n=1)))

        assert result == updated

    def test_pure_insertion_after_line(self):
        hunks = parse_unified_diff("@@ -2,0 +3,2 @@\n+x\n+y")

        assert apply_hunks("a\nb\nc", hunks) == "a\nb\nx\ny\nc"

    def test_insertion_at_start(self):
        hunks = parse_unified_diff("@@ -0,0 +1 @@\n+first")

        assert apply_hunks("a\nb", hunks) == "first\na\nb"

    def test_deletion(self):
        hunks = parse_unified_diff("@@ -1,3 +1,2 @@\n a\n-b\n c")

        assert apply_hunks("a\nb\nc", hunks) == "a\nc"

    def test_context_mismatch(self):
        hunks = parse_unified_diff("@@ -1 +1 @@\n-expected content\n+new")

        result = apply_hunks("actual content", hunks)

        assert isinstance(result, PatchError)
        assert result.kind == "context_mismatch"
        assert result.hunk_index == 0
        assert result.message == (
            'Hunk 1 context mismatch at line 1. Expected: "expected content", got: "actual content"'
        )

    def test_mismatch_past_end_of_file(self):
        hunks = parse_unified_diff("@@ -2,2 +2,2 @@\n b\n-c\n+C")

        result = apply_hunks("a\nb", hunks)

        assert isinstance(result, PatchError)
        assert "<end of file>" in result.message
        assert "at line 3" in result.message

    def test_mismatch_messages_truncate_long_lines(self):
        long_line = "x" * 100
        hunks = parse_unified_diff(f"@@ -1 +1 @@\n-{long_line}\n+y")

        result = apply_hunks("z" * 100, hunks)

        assert f'Expected: "{"x" * 40}", got: "{"z" * 40}"' in result.message

    def test_negative_target_is_mismatch(self):
        hunk = ParsedHunk(old_start=0, old_count=1, new_start=0, new_count=1, removals=["a"], additions=["b"])

        assert isinstance(apply_hunks("a", [hunk]), PatchError)

    def test_trailing_newline_preserved(self):
        before = "a\nb\n"
        after = "a\nB\n"

        assert apply_hunks(before, parse_unified_diff(unified(before, after))) == after

    @pytest.mark.parametrize(
        "before, after",
        [
            ("one\ntwo\nthree", "one\n2\nthree"),
            ("one\ntwo\nthree", "zero\none\ntwo\nthree\nfour"),
            ("a\nb\nc\nd\ne\nf\ng\nh\ni\nj", "a\nc\nd\nE\nf\ng\nh\nj\nk"),
            ("def f():\n    return 1\n", "def f():\n    # doc\n    return 2\n"),
        ],
    )
    def test_applies_difflib_output(self, before, after):
        # Zero context keeps each change block in its own hunk
        assert apply_hunks(before, parse_unified_diff(unified(before, after, n=0))) == after


@pytest.mark.unit
@pytest.mark.patch
class TestPatchFilePaths:
    """Tests for header path extraction and matching."""

    def test_extract_strips_prefixes(self):
        assert extract_patch_file_paths("--- a/src/x.py\n+++ b/src/x.py\n@@ -1 +1 @@") == (
            "src/x.py",
            "src/x.py",
        )

    def test_extract_dev_null(self):
        assert extract_patch_file_paths("--- /dev/null\n+++ b/new.py\n") == ("", "new.py")

    def test_extract_missing_headers(self):
        assert extract_patch_file_paths("@@ -1 +1 @@\n-a\n+b") == (None, None)

    def test_extract_stops_at_first_hunk(self):
        patch = "@@ -1 +1 @@\n---- removed dashes\n+++ added plus"

        assert extract_patch_file_paths(patch) == (None, None)

    @pytest.mark.parametrize(
        "target, paths, expected",
        [
            ("src/app.py", ["src/app.py"], True),
            ("./src/app.py", ["src/app.py"], True),
            ("src/app.py", ["project/src/app.py"], True),
            ("project/src/app.py", ["app.py"], True),
            ("src/app.py", ["src/other.py"], False),
            ("src/app.py", ["myapp.py"], False),
        ],
    )
    def test_patch_paths_match(self, target, paths, expected):
        assert patch_paths_match(target, paths) is expected
