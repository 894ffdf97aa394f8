"""Describe the repository state (branch, pending changes, recent commits)."""

import json
import logging
import re
import subprocess
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from hooktoolkit.hooks.schemas import HookContext
from hooktoolkit.lib.config import ToolkitConfig
from hooktoolkit.lib.guard_result import HandlerResult
from hooktoolkit.lib.session_paths import get_project_dir

logger = logging.getLogger(__name__)

GIT_TIMEOUT_SECONDS = 5
UNAVAILABLE = "Git context unavailable"

_COMMIT_HASH_RE = re.compile(r"^[0-9a-f]{40,64}$", re.IGNORECASE)


def run_git(args: list[str], cwd: Path) -> str | None:
    """Output of ``git <args>``, or None if git failed or is missing."""
    try:
        proc = subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_SECONDS,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("git %s failed: %s", " ".join(args), e)
        return None
    if proc.returncode != 0:
        return None
    return proc.stdout.strip()


def read_branch(project_dir: Path) -> str | None:
    """Branch from .git/HEAD; short hash when detached."""
    try:
        head = (project_dir / ".git" / "HEAD").read_text(encoding="utf-8").strip()
    except OSError:
        return None
    if head.startswith("ref: refs/heads/"):
        return head[len("ref: refs/heads/"):]
    if _COMMIT_HASH_RE.match(head):
        return head[:7]
    return None


def build_context(branch: str | None, status: str | None, log: str | None) -> str:
    lines = []
    if branch:
        lines.append(f"Branch: {branch}")
    if status is not None:
        changes = [line for line in status.splitlines() if line.strip()]
        lines.append(f"Working tree changes: {len(changes)} file(s)")
    if log:
        lines.append("Recent commits:")
        lines.extend(f"  {line.strip()}" for line in log.splitlines() if line.strip())
    return "\n".join(lines) if lines else UNAVAILABLE


def get_git_context(project_dir: Path | None = None) -> str:
    """Collect git state; ``status`` and ``log`` run concurrently."""
    project_dir = project_dir or get_project_dir()
    branch = read_branch(project_dir)
    with ThreadPoolExecutor(max_workers=2) as pool:
        status_future = pool.submit(run_git, ["status", "--porcelain"], project_dir)
        log_future = pool.submit(run_git, ["log", "--oneline", "-5"], project_dir)
        status, log = status_future.result(), log_future.result()
    return build_context(branch, status, log)


def handle(ctx: HookContext, config: ToolkitConfig) -> HandlerResult | None:
    return HandlerResult(stdout=json.dumps({"additionalContext": get_git_context()}))
