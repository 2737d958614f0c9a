"""Unit tests for WorkspaceToolset base class and argument validation."""

import pytest

from agent_workspace.tools.filesystem import FileSystemTools
from agent_workspace.tools.toolset import WorkspaceToolset
from agent_workspace.types import ToolErrorCode
from agent_workspace.workspace import WorkspaceContext
from tests.helpers.assertions import (
    assert_error_response,
    assert_success_response,
    assert_tool_response_format,
)


class EchoTools(WorkspaceToolset):
    """Minimal toolset used to exercise the base class."""

    def get_tools(self):
        return [self.echo]

    async def echo(self, text: str, times: int = 1) -> dict:
        return self._create_success_response(result=text * times, message="echoed")


@pytest.mark.unit
@pytest.mark.tools
class TestWorkspaceToolset:
    """Tests for WorkspaceToolset base class."""

    def test_cannot_instantiate_abstract_class(self, readonly_context):
        with pytest.raises(TypeError):
            WorkspaceToolset(readonly_context)

    def test_tool_names(self, readonly_context):
        assert EchoTools(readonly_context).tool_names() == ["echo"]

    def test_create_error_response(self, readonly_context):
        response = EchoTools(readonly_context)._create_error_response(
            ToolErrorCode.IO_ERROR, "disk full"
        )

        assert response == {"success": False, "error": ToolErrorCode.IO_ERROR, "message": "disk full"}

    @pytest.mark.asyncio
    async def test_invoke_coerces_and_defaults(self, readonly_context):
        tools = EchoTools(readonly_context)

        result = await tools.invoke("echo", {"text": "ab", "times": "2"})
        default = await tools.invoke("echo", {"text": "ab"})

        assert result["result"] == "abab"
        assert default["result"] == "ab"

    @pytest.mark.asyncio
    async def test_invoke_missing_argument(self, readonly_context):
        result = await EchoTools(readonly_context).invoke("echo", {})

        assert_error_response(result, ToolErrorCode.VALIDATION_ERROR)
        assert "text" in result["message"]

    @pytest.mark.asyncio
    async def test_invoke_unknown_tool(self, readonly_context):
        result = await EchoTools(readonly_context).invoke("nope")

        assert_error_response(result, ToolErrorCode.NOT_FOUND)
        assert "echo" in result["message"]


@pytest.mark.unit
@pytest.mark.tools
class TestFileSystemToolsInvoke:
    """Tests for invoking filesystem tools with untrusted arguments."""

    @pytest.mark.asyncio
    async def test_invoke_read_file(self, fs_tools_readonly, temp_workspace):
        (temp_workspace / "a.txt").write_text("1\n2\n3")

        result = await fs_tools_readonly.invoke("read_file", {"path": "a.txt", "max_lines": "2"})

        assert_success_response(result)
        assert result["result"]["content"] == "1\n2"

    @pytest.mark.asyncio
    async def test_invoke_invalid_write_mode(self, fs_tools_writable, temp_workspace):
        result = await fs_tools_writable.invoke(
            "write_file", {"path": "a.txt", "content": "x", "mode": "delete"}
        )

        assert_error_response(result, ToolErrorCode.VALIDATION_ERROR)
        assert "mode" in result["message"]
        assert not (temp_workspace / "a.txt").exists()

    @pytest.mark.asyncio
    async def test_invoke_wrong_type(self, fs_tools_readonly):
        result = await fs_tools_readonly.invoke("list_directory", {"recursive": "not-a-bool"})

        assert_error_response(result, ToolErrorCode.VALIDATION_ERROR)

    @pytest.mark.asyncio
    async def test_invoke_optional_sha_defaults_to_none(self, fs_tools_writable, temp_workspace):
        (temp_workspace / "f.txt").write_text("a")

        result = await fs_tools_writable.invoke(
            "apply_file_patch", {"path": "f.txt", "patch": "@@ -1 +1 @@\n-a\n+b", "dry_run": True}
        )

        assert_tool_response_format(result)
        assert_success_response(result)
        assert result["result"]["new_size"] == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "name, arguments",
        [
            ("read_file", {"path": "x\x00"}),
            ("get_path_info", {"path": "a\x00b.txt"}),
            ("list_directory", {"path": "\x00"}),
            ("search_text", {"query": "x", "path": "sub\x00dir"}),
            ("write_file", {"path": "n\x00.txt", "content": "x"}),
            ("apply_text_edit", {"path": "n\x00.txt", "expected_text": "a", "replacement_text": "b"}),
            ("create_directory", {"path": "d\x00"}),
        ],
    )
    async def test_invoke_null_byte_path_returns_error(self, fs_tools_writable, name, arguments):
        result = await fs_tools_writable.invoke(name, arguments)

        assert_tool_response_format(result)
        assert_error_response(result, ToolErrorCode.VALIDATION_ERROR)

    @pytest.mark.asyncio
    async def test_invoke_unencodable_content_returns_error(self, fs_tools_writable, temp_workspace):
        result = await fs_tools_writable.invoke("write_file", {"path": "s.txt", "content": "bad \ud800 char"})

        assert_tool_response_format(result)
        assert_error_response(result, ToolErrorCode.VALIDATION_ERROR)
        assert not (temp_workspace / "s.txt").exists()

    @pytest.mark.asyncio
    async def test_invoke_unencodable_patch_dry_run_returns_error(self, fs_tools_writable, temp_workspace):
        (temp_workspace / "f.txt").write_text("a")

        result = await fs_tools_writable.invoke(
            "apply_file_patch", {"path": "f.txt", "patch": "@@ -1 +1 @@\n-a\n+\ud800", "dry_run": True}
        )

        assert_error_response(result, ToolErrorCode.VALIDATION_ERROR)
        assert (temp_workspace / "f.txt").read_text() == "a"

    def test_tool_names(self, temp_workspace):
        tools = FileSystemTools(WorkspaceContext.for_root(temp_workspace))

        assert set(tools.tool_names()) == {
            "get_path_info",
            "list_directory",
            "read_file",
            "search_text",
            "write_file",
            "apply_text_edit",
            "apply_file_patch",
            "create_directory",
        }
