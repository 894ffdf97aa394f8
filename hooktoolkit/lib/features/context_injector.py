"""Inject the contents of project context files at session start and on each prompt."""

import json
import logging
from pathlib import Path

from hooktoolkit.hooks.schemas import HookContext
from hooktoolkit.lib.config import ToolkitConfig
from hooktoolkit.lib.guard_result import HandlerResult
from hooktoolkit.lib.session_paths import get_project_dir

logger = logging.getLogger(__name__)


def inject_context(config: ToolkitConfig, project_dir: Path | None = None) -> str | None:
    """Concatenate the non-empty context files, skipping missing or unreadable ones."""
    settings = config.context_injector
    if not settings.enabled or not settings.context_files:
        return None

    project_dir = project_dir or get_project_dir()
    chunks = []
    for file_path in settings.context_files:
        path = Path(file_path)
        if not path.is_absolute():
            path = project_dir / path
        try:
            content = path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            continue
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Skipping context file %s: %s", path, e)
            continue
        if content:
            chunks.append(content)

    return "\n\n".join(chunks) or None


def handle(ctx: HookContext, config: ToolkitConfig) -> HandlerResult | None:
    content = inject_context(config)
    if not content:
        return None
    return HandlerResult(stdout=json.dumps({"additionalContext": content}))
