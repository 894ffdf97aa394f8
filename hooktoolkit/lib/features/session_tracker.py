"""Record session start and end in ``{logDir}/sessions.jsonl``."""

from datetime import UTC, datetime

from hooktoolkit.hooks.schemas import HookContext, HookEvent
from hooktoolkit.lib.config import ToolkitConfig
from hooktoolkit.lib.guard_result import HandlerResult
from hooktoolkit.lib.jsonl import append_record
from hooktoolkit.lib.session_paths import get_sessions_log_path


def track_session(ctx: HookContext, config: ToolkitConfig) -> dict:
    """Append a start record for SessionStart, an end record for SessionEnd/Stop."""
    entry = {
        "timestamp": datetime.now(UTC).isoformat(),
        "session_id": ctx.session_id,
        "event": "start" if ctx.hook_event == HookEvent.SESSION_START else "end",
    }
    if ctx.hook_event == HookEvent.SESSION_START and ctx.source:
        entry["source"] = ctx.source
    append_record(get_sessions_log_path(config.log_dir), entry)
    return entry


def handle(ctx: HookContext, config: ToolkitConfig) -> HandlerResult | None:
    track_session(ctx, config)
    return None
