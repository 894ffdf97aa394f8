"""Accessors for the tool_input shapes of the built-in write tools."""

from typing import Any

WRITE_TOOLS = frozenset({"Write", "Edit", "MultiEdit"})
WRITE_AND_EXEC_TOOLS = WRITE_TOOLS | {"Bash"}


def is_write_tool(tool_name: str | None) -> bool:
    return tool_name in WRITE_TOOLS


def count_lines(text: str) -> int:
    """Number of lines in ``text``; a trailing newline starts a new (empty) line."""
    if not text:
        return 0
    return len(text.split("\n"))


def get_file_path(tool_input: dict[str, Any]) -> str:
    value = tool_input.get("file_path")
    return value if isinstance(value, str) else ""


def collect_write_content(tool_name: str | None, tool_input: dict[str, Any]) -> list[str]:
    """Text a write tool is about to put on disk, one chunk per edit."""
    if tool_name == "Write":
        chunks = [tool_input.get("content")]
    elif tool_name == "Edit":
        chunks = [tool_input.get("new_string")]
    elif tool_name == "MultiEdit":
        edits = tool_input.get("edits")
        if not isinstance(edits, list):
            return []
        chunks = [edit.get("new_string") for edit in edits if isinstance(edit, dict)]
    else:
        return []
    return [chunk for chunk in chunks if isinstance(chunk, str) and chunk]
