"""Copy a file aside before a write tool overwrites it."""

import logging
import time
from pathlib import Path

from hooktoolkit.hooks.schemas import HookContext
from hooktoolkit.lib.atomic_write import atomic_copy
from hooktoolkit.lib.config import ToolkitConfig
from hooktoolkit.lib.guard_result import HandlerResult
from hooktoolkit.lib.session_paths import get_project_dir, resolve_dir
from hooktoolkit.lib.tool_inputs import get_file_path, is_write_tool

logger = logging.getLogger(__name__)


def backup_file(ctx: HookContext, config: ToolkitConfig) -> Path | None:
    """Copy the target to ``{backupDir}/{session}/{ms}_{name}``.

    Returns the backup path, or None when there was nothing to back up.
    """
    if not config.file_backup.enabled or not is_write_tool(ctx.tool_name):
        return None

    file_path = get_file_path(ctx.tool_input)
    if not file_path:
        return None

    source = Path(file_path)
    if not source.is_absolute():
        source = get_project_dir() / source
    if not source.is_file():
        return None

    session_dir = resolve_dir(config.file_backup.backup_dir) / ctx.session_id
    return atomic_copy(source, session_dir / f"{int(time.time() * 1000)}_{source.name}")


def handle(ctx: HookContext, config: ToolkitConfig) -> HandlerResult | None:
    try:
        backup_file(ctx, config)
    except OSError as e:
        logger.warning("File backup failed: %s", e)
    return None
