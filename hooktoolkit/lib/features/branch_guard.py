"""Block writes and shell commands while a protected branch is checked out."""

import logging
import re
from functools import lru_cache
from pathlib import Path

from hooktoolkit.hooks.schemas import HookContext
from hooktoolkit.lib.config import ToolkitConfig
from hooktoolkit.lib.guard_result import GuardResult, HandlerResult
from hooktoolkit.lib.patterns import cached_regex
from hooktoolkit.lib.session_paths import get_project_dir
from hooktoolkit.lib.tool_inputs import WRITE_AND_EXEC_TOOLS

logger = logging.getLogger(__name__)

REF_PREFIX = "ref: refs/heads/"


@lru_cache(maxsize=8)
def get_current_branch(project_dir: Path) -> str | None:
    """Branch name from .git/HEAD; the commit hash when HEAD is detached."""
    head_path = project_dir / ".git" / "HEAD"
    try:
        head = head_path.read_text(encoding="utf-8").strip()
    except OSError as e:
        logger.debug("No git HEAD at %s: %s", head_path, e)
        return None
    if head.startswith(REF_PREFIX):
        return head[len(REF_PREFIX):]
    return head


def matches_branch_pattern(branch: str, pattern: str) -> bool:
    """Exact match, or ``*`` as a wildcard (``release/*``)."""
    if "*" not in pattern:
        return branch == pattern
    regex = cached_regex("^" + re.escape(pattern).replace(r"\*", ".*") + "$", 0)
    return regex is not None and regex.match(branch) is not None


def check_branch(ctx: HookContext, config: ToolkitConfig) -> GuardResult:
    if ctx.tool_name not in WRITE_AND_EXEC_TOOLS or not config.guards.branch.enabled:
        return GuardResult.proceed()

    branch = get_current_branch(get_project_dir())
    if branch is None:
        return GuardResult.proceed()

    for pattern in config.guards.branch.protected_branches:
        if matches_branch_pattern(branch, pattern):
            return GuardResult.block(
                f"Branch '{branch}' is protected (matched pattern '{pattern}')",
                details={"branch": branch, "matchedPattern": pattern},
            )
    return GuardResult.proceed()


def handle(ctx: HookContext, config: ToolkitConfig) -> HandlerResult | None:
    return check_branch(ctx, config).to_handler_result("Protected branch")
