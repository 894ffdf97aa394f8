"""
Event logger.

Appends every hook event to ``{logDir}/{event}/{YYYY-MM-DD}.jsonl`` with file
content redacted and truncated. A small block of process metrics is attached
for diagnosing slow or runaway hooks.
"""

import logging
import os
import time
from datetime import UTC, datetime
from typing import Any

import psutil

from hooktoolkit.hooks.schemas import HookContext
from hooktoolkit.lib.config import ToolkitConfig
from hooktoolkit.lib.guard_result import HandlerResult
from hooktoolkit.lib.jsonl import append_record
from hooktoolkit.lib.redact import redact_sensitive_fields
from hooktoolkit.lib.session_paths import get_event_log_path

logger = logging.getLogger(__name__)


def _process_metrics() -> dict[str, Any]:
    process = psutil.Process(os.getpid())
    mem_info = process.memory_info()
    return {
        "pid": os.getpid(),
        "mem_rss_mb": round(mem_info.rss / (1024 * 1024), 2),
        "process_uptime": round(time.time() - process.create_time(), 3),
    }


def _logged_payload(ctx: HookContext) -> dict[str, Any]:
    """Raw payload with ``tool_input`` in its decoded form.

    Hosts may send it as a JSON string, or camelCase as ``toolInput``;
    redaction only sees fields of a ``tool_input`` object.
    """
    if "tool_input" not in ctx.raw_input and "toolInput" not in ctx.raw_input:
        return ctx.raw_input
    payload = {k: v for k, v in ctx.raw_input.items() if k != "toolInput"}
    payload["tool_input"] = ctx.tool_input
    return payload


def log_hook_event(ctx: HookContext, config: ToolkitConfig) -> dict[str, Any]:
    """Write one log entry for the event and return it."""
    now = datetime.now(UTC)
    path = get_event_log_path(config.log_dir, str(ctx.hook_event), now.strftime("%Y-%m-%d"))
    path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    entry = {
        "timestamp": now.isoformat(),
        "sessionId": ctx.session_id,
        "hookType": str(ctx.hook_event),
        "data": redact_sensitive_fields(_logged_payload(ctx)),
    }
    try:
        entry["debug"] = _process_metrics()
    except psutil.Error as e:
        logger.debug("Process metrics unavailable: %s", e)

    append_record(path, entry)
    return entry


def handle(ctx: HookContext, config: ToolkitConfig) -> HandlerResult | None:
    log_hook_event(ctx, config)
    return None
