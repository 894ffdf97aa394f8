"""Per-session caps on tool calls and file edits.

Counters live in ``{logDir}/rate-limiter/{session}.count`` and are rewritten
atomically under a file lock on every permitted call, so concurrent hook
processes for one session cannot lose an increment. Each permitted call is
also appended to ``{session}.jsonl`` as an audit trail.

A limit of ``max`` allows exactly ``max`` calls; call ``max + 1`` is blocked.
Storage failures never block.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from filelock import FileLock
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from hooktoolkit.hooks.schemas import HookContext
from hooktoolkit.lib.atomic_write import atomic_write_text
from hooktoolkit.lib.config import ToolkitConfig
from hooktoolkit.lib.guard_result import GuardResult, HandlerResult
from hooktoolkit.lib.jsonl import append_record
from hooktoolkit.lib.session_paths import get_rate_limiter_dir
from hooktoolkit.lib.tool_inputs import is_write_tool

logger = logging.getLogger(__name__)

LOCK_TIMEOUT_SECONDS = 10


class RateLimitCounters(BaseModel):
    """Persisted counter record. Counts only ever grow within a session."""

    model_config = ConfigDict(populate_by_name=True)

    total_calls: int = Field(default=0, ge=0, alias="totalCalls")
    total_edits: int = Field(default=0, ge=0, alias="totalEdits")

    @classmethod
    def load(cls, path: Path) -> RateLimitCounters:
        """Read counters; a missing or corrupt record starts from zero."""
        if not path.exists():
            return cls()
        try:
            return cls.model_validate_json(path.read_text())
        except ValidationError as e:
            logger.warning("Corrupt rate limiter counters at %s, resetting: %s", path, e)
            return cls()

    def save(self, path: Path) -> None:
        """Replace the record atomically."""
        atomic_write_text(path, self.model_dump_json(by_alias=True))


def counter_path(config: ToolkitConfig, session_id: str) -> Path:
    return get_rate_limiter_dir(config.log_dir) / f"{session_id}.count"


def audit_log_path(config: ToolkitConfig, session_id: str) -> Path:
    return get_rate_limiter_dir(config.log_dir) / f"{session_id}.jsonl"


def _evaluate(
    counters: RateLimitCounters, is_edit: bool, max_calls: int, max_edits: int
) -> GuardResult | None:
    """Compare the counts recorded so far against the limits (0 = unlimited)."""
    if max_calls > 0 and counters.total_calls >= max_calls:
        attempted = counters.total_calls + 1
        return GuardResult.block(
            f"Rate limit exceeded: {attempted} tool calls (max {max_calls} per session)",
            details={"totalCalls": attempted, "maxToolCallsPerSession": max_calls},
        )
    if is_edit and max_edits > 0 and counters.total_edits >= max_edits:
        attempted = counters.total_edits + 1
        return GuardResult.block(
            f"Rate limit exceeded: {attempted} file edits (max {max_edits} per session)",
            details={"totalEdits": attempted, "maxFileEditsPerSession": max_edits},
        )
    return None


def check_rate_limit(ctx: HookContext, config: ToolkitConfig) -> GuardResult:
    """Check the session's limits and record the call if it is allowed."""
    settings = config.rate_limiter
    if not settings.enabled:
        return GuardResult.proceed()

    max_calls = settings.max_tool_calls_per_session
    max_edits = settings.max_file_edits_per_session
    if max_calls == 0 and max_edits == 0:
        return GuardResult.proceed()

    is_edit = is_write_tool(ctx.tool_name)
    path = counter_path(config, ctx.session_id)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with FileLock(path.with_suffix(".lock"), timeout=LOCK_TIMEOUT_SECONDS):
            counters = RateLimitCounters.load(path)

            verdict = _evaluate(counters, is_edit, max_calls, max_edits)
            if verdict is not None:
                return verdict

            counters.total_calls += 1
            if is_edit:
                counters.total_edits += 1
            counters.save(path)

        append_record(
            audit_log_path(config, ctx.session_id),
            {
                "timestamp": datetime.now(UTC).isoformat(),
                "tool_name": ctx.tool_name,
                "is_edit": is_edit,
            },
        )
    except OSError as e:
        logger.warning("Rate limiter storage unavailable, allowing call: %s", e)
        return GuardResult.proceed(details={"storage_error": str(e)})

    return GuardResult.proceed(
        details={"totalCalls": counters.total_calls, "totalEdits": counters.total_edits}
    )


def handle(ctx: HookContext, config: ToolkitConfig) -> HandlerResult | None:
    return check_rate_limit(ctx, config).to_handler_result("Rate limit exceeded")
