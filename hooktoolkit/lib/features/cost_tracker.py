"""Count tool usage per session and write a summary when the session stops.

PostToolUse appends to ``{outputPath}/{session}.jsonl``; Stop rolls the records
up into ``{outputPath}/{session}-summary.json``.
"""

import json
from collections import Counter
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from hooktoolkit.hooks.schemas import HookContext, HookEvent
from hooktoolkit.lib.atomic_write import atomic_write_text
from hooktoolkit.lib.config import ToolkitConfig
from hooktoolkit.lib.guard_result import HandlerResult
from hooktoolkit.lib.jsonl import append_record, read_records
from hooktoolkit.lib.session_paths import resolve_dir


def usage_log_path(config: ToolkitConfig, session_id: str) -> Path:
    return resolve_dir(config.cost_tracker.output_path) / f"{session_id}.jsonl"


def summary_path(config: ToolkitConfig, session_id: str) -> Path:
    return resolve_dir(config.cost_tracker.output_path) / f"{session_id}-summary.json"


def summarize_usage(session_id: str, records: list[dict[str, Any]]) -> dict[str, Any]:
    frequency = Counter(str(record.get("tool_name")) for record in records)
    first = records[0].get("timestamp") if records else None
    last = records[-1].get("timestamp") if records else None

    duration_ms = None
    if first and last:
        try:
            delta = datetime.fromisoformat(last) - datetime.fromisoformat(first)
            duration_ms = int(delta.total_seconds() * 1000)
        except (TypeError, ValueError):
            duration_ms = None

    return {
        "session_id": session_id,
        "totalToolCalls": len(records),
        "toolFrequency": dict(frequency),
        "firstTimestamp": first,
        "lastTimestamp": last,
        "estimatedDurationMs": duration_ms,
    }


def track_tool_usage(ctx: HookContext, config: ToolkitConfig) -> dict[str, Any] | None:
    """Record a tool call, or write the session summary on Stop (and return it)."""
    if not config.cost_tracker.enabled:
        return None

    if ctx.hook_event == HookEvent.POST_TOOL_USE:
        append_record(
            usage_log_path(config, ctx.session_id),
            {
                "timestamp": datetime.now(UTC).isoformat(),
                "session_id": ctx.session_id,
                "tool_name": ctx.tool_name,
                "hook_type": str(ctx.hook_event),
            },
        )
        return None

    if ctx.hook_event == HookEvent.STOP:
        summary = summarize_usage(ctx.session_id, read_records(usage_log_path(config, ctx.session_id)))
        atomic_write_text(summary_path(config, ctx.session_id), json.dumps(summary, indent=2) + "\n")
        return summary
    return None


def handle(ctx: HookContext, config: ToolkitConfig) -> HandlerResult | None:
    track_tool_usage(ctx, config)
    return None
