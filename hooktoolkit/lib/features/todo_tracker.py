"""Track TODO-style markers in content written by the agent."""

import json
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from hooktoolkit.hooks.schemas import HookContext, HookEvent
from hooktoolkit.lib.atomic_write import atomic_write_text
from hooktoolkit.lib.config import ToolkitConfig
from hooktoolkit.lib.guard_result import HandlerResult
from hooktoolkit.lib.jsonl import append_record, read_records
from hooktoolkit.lib.patterns import cached_regex
from hooktoolkit.lib.session_paths import resolve_dir
from hooktoolkit.lib.tool_inputs import collect_write_content, get_file_path, is_write_tool


def todos_log_path(config: ToolkitConfig, session_id: str) -> Path:
    return resolve_dir(config.todo_tracker.output_path) / f"{session_id}-todos.jsonl"


def summary_path(config: ToolkitConfig, session_id: str) -> Path:
    return resolve_dir(config.todo_tracker.output_path) / f"{session_id}-todo-summary.json"


def find_markers(text: str, markers: list[str]) -> list[str]:
    """Every occurrence of each marker, upper-cased, grouped by marker."""
    found = []
    for marker in markers:
        regex = cached_regex(re.escape(marker))
        if regex is not None:
            found.extend(match.upper() for match in regex.findall(text))
    return found


def summarize_todos(records: list[dict[str, Any]]) -> dict[str, Any]:
    by_file: dict[str, int] = {}
    markers: list[str] = []
    for record in records:
        file_path = str(record.get("file_path", ""))
        by_file[file_path] = by_file.get(file_path, 0) + int(record.get("todosFound", 0))
        markers.extend(record.get("markers", []))
    return {
        "totalTodosFound": len(markers),
        "byFile": by_file,
        "markers": list(dict.fromkeys(markers)),
    }


def track_todos(ctx: HookContext, config: ToolkitConfig) -> dict[str, Any] | None:
    settings = config.todo_tracker
    if not settings.enabled:
        return None

    if ctx.hook_event == HookEvent.POST_TOOL_USE:
        if not is_write_tool(ctx.tool_name):
            return None
        markers = [
            marker
            for chunk in collect_write_content(ctx.tool_name, ctx.tool_input)
            for marker in find_markers(chunk, settings.patterns)
        ]
        if markers:
            append_record(
                todos_log_path(config, ctx.session_id),
                {
                    "timestamp": datetime.now(UTC).isoformat(),
                    "session_id": ctx.session_id,
                    "file_path": get_file_path(ctx.tool_input),
                    "todosFound": len(markers),
                    "markers": markers,
                },
            )
        return None

    if ctx.hook_event == HookEvent.STOP:
        summary = summarize_todos(read_records(todos_log_path(config, ctx.session_id)))
        atomic_write_text(summary_path(config, ctx.session_id), json.dumps(summary, indent=2) + "\n")
        return summary
    return None


def handle(ctx: HookContext, config: ToolkitConfig) -> HandlerResult | None:
    track_todos(ctx, config)
    return None
