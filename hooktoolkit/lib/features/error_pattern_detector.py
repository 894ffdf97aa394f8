"""Notice when the same tool failure keeps repeating within a session."""

import json
from datetime import UTC, datetime

from hooktoolkit.hooks.schemas import HookContext
from hooktoolkit.lib.config import ToolkitConfig
from hooktoolkit.lib.guard_result import HandlerResult
from hooktoolkit.lib.jsonl import append_record, read_records
from hooktoolkit.lib.session_paths import get_error_log_path

MAX_STORED_MESSAGE = 200
MATCH_KEY_LENGTH = 100


def detect_error_pattern(ctx: HookContext, config: ToolkitConfig) -> tuple[int, str | None]:
    """Record this failure and count earlier ones with the same leading text.

    Returns (matching_count, advisory message or None).
    """
    settings = config.error_pattern_detector
    if not settings.enabled:
        return 0, None

    path = get_error_log_path(config.log_dir, ctx.session_id)
    error_message = (ctx.error or "")[:MAX_STORED_MESSAGE]
    match_key = error_message[:MATCH_KEY_LENGTH]

    append_record(
        path,
        {
            "timestamp": datetime.now(UTC).isoformat(),
            "tool_name": ctx.tool_name,
            "error_message": error_message,
            "count": 1,
        },
    )

    matching = sum(
        1
        for record in read_records(path)
        if str(record.get("error_message", ""))[:MATCH_KEY_LENGTH] == match_key
    )
    if matching >= settings.max_repeats:
        return matching, (
            f"REPEATED FAILURE DETECTED: The tool '{ctx.tool_name}' has failed {matching} "
            "times with a similar error. Consider trying a different approach."
        )
    return matching, None


def handle(ctx: HookContext, config: ToolkitConfig) -> HandlerResult | None:
    _, message = detect_error_pattern(ctx, config)
    if message is None:
        return None
    return HandlerResult(stdout=json.dumps({"additionalContext": message}))
