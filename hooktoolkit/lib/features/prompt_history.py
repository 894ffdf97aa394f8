"""Keep a per-session history of submitted prompts."""

from datetime import UTC, datetime

from hooktoolkit.hooks.schemas import HookContext
from hooktoolkit.lib.config import ToolkitConfig
from hooktoolkit.lib.guard_result import HandlerResult
from hooktoolkit.lib.jsonl import append_record
from hooktoolkit.lib.session_paths import get_prompt_history_path


def log_prompt(ctx: HookContext, config: ToolkitConfig) -> None:
    if not config.prompt_history.enabled or ctx.prompt is None:
        return
    path = get_prompt_history_path(config.log_dir, ctx.session_id)
    path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    append_record(path, {"timestamp": datetime.now(UTC).isoformat(), "prompt": ctx.prompt})


def handle(ctx: HookContext, config: ToolkitConfig) -> HandlerResult | None:
    log_prompt(ctx, config)
    return None
