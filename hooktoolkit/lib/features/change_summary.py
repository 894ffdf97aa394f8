"""Record every file a write tool touches and summarize the changes on Stop."""

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from hooktoolkit.hooks.schemas import HookContext, HookEvent
from hooktoolkit.lib.atomic_write import atomic_write_text
from hooktoolkit.lib.config import ToolkitConfig
from hooktoolkit.lib.guard_result import HandlerResult
from hooktoolkit.lib.jsonl import append_record, read_records
from hooktoolkit.lib.session_paths import resolve_dir
from hooktoolkit.lib.tool_inputs import collect_write_content, count_lines, get_file_path, is_write_tool


def changes_log_path(config: ToolkitConfig, session_id: str) -> Path:
    return resolve_dir(config.change_summary.output_path) / f"{session_id}-changes.jsonl"


def summary_path(config: ToolkitConfig, session_id: str) -> Path:
    return resolve_dir(config.change_summary.output_path) / f"{session_id}-change-summary.json"


def build_change_record(ctx: HookContext) -> dict[str, Any]:
    """Write creates a file; Edit and MultiEdit modify one."""
    return {
        "timestamp": datetime.now(UTC).isoformat(),
        "tool_name": ctx.tool_name,
        "file_path": get_file_path(ctx.tool_input),
        "change_type": "create" if ctx.tool_name == "Write" else "modify",
        "lines_added": sum(
            count_lines(chunk) for chunk in collect_write_content(ctx.tool_name, ctx.tool_input)
        ),
    }


def summarize_changes(session_id: str, records: list[dict[str, Any]]) -> dict[str, Any]:
    # Files keep first-seen order; a file created in this session stays "created".
    changes_by_file: dict[str, int] = {}
    created: set[str] = set()
    for record in records:
        file_path = str(record.get("file_path", ""))
        if file_path not in changes_by_file and record.get("change_type") == "create":
            created.add(file_path)
        changes_by_file[file_path] = changes_by_file.get(file_path, 0) + 1

    lines = []
    for file_path, count in changes_by_file.items():
        if file_path in created:
            lines.append(f"Created {file_path}")
        else:
            lines.append(f"Modified {file_path} ({count} edit{'s' if count > 1 else ''})")

    return {
        "session_id": session_id,
        "totalChanges": len(records),
        "filesModified": list(changes_by_file),
        "changesByFile": changes_by_file,
        "summary": lines,
    }


def record_change(ctx: HookContext, config: ToolkitConfig) -> dict[str, Any] | None:
    if not config.change_summary.enabled:
        return None

    if ctx.hook_event == HookEvent.POST_TOOL_USE:
        if is_write_tool(ctx.tool_name):
            append_record(changes_log_path(config, ctx.session_id), build_change_record(ctx))
        return None

    if ctx.hook_event == HookEvent.STOP:
        summary = summarize_changes(
            ctx.session_id, read_records(changes_log_path(config, ctx.session_id))
        )
        atomic_write_text(summary_path(config, ctx.session_id), json.dumps(summary, indent=2) + "\n")
        return summary
    return None


def handle(ctx: HookContext, config: ToolkitConfig) -> HandlerResult | None:
    record_change(ctx, config)
    return None
