"""Copy the session transcript aside before the host compacts it."""

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from hooktoolkit.hooks.schemas import HookContext
from hooktoolkit.lib.atomic_write import atomic_copy
from hooktoolkit.lib.config import ToolkitConfig
from hooktoolkit.lib.guard_result import HandlerResult
from hooktoolkit.lib.session_paths import resolve_dir

logger = logging.getLogger(__name__)


def backup_transcript(ctx: HookContext, config: ToolkitConfig) -> Path | None:
    """Copy to ``{transcriptBackupDir}/{timestamp}-{session[:8]}.jsonl``."""
    if not ctx.transcript_path:
        return None
    source = Path(ctx.transcript_path)
    if not source.is_file():
        return None

    backup_dir = resolve_dir(config.transcript_backup_dir)
    timestamp = datetime.now(UTC).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
    return atomic_copy(source, backup_dir / f"{timestamp}-{ctx.session_id[:8]}.jsonl")


def handle(ctx: HookContext, config: ToolkitConfig) -> HandlerResult | None:
    context_parts = []
    try:
        backup_path = backup_transcript(ctx, config)
    except OSError as e:
        logger.warning("Transcript backup failed: %s", e)
        backup_path = None
    if backup_path:
        context_parts.append(f"Transcript backed up to: {backup_path}")

    custom_instructions = ctx.raw_input.get("custom_instructions")
    if isinstance(custom_instructions, str) and custom_instructions:
        context_parts.append(f"Custom instructions: {custom_instructions}")

    if not context_parts:
        return None
    return HandlerResult(stdout=json.dumps({"additionalContext": "\n".join(context_parts)}))
