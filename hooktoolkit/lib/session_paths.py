"""Session path utilities - single source of truth for on-disk locations.

All persisted state lives under the configured ``logDir`` (relative paths are
taken from the project directory) and is partitioned per session so that
concurrent hook processes for different sessions never touch the same file.
"""

import os
import re
from pathlib import Path

MAX_SESSION_ID_LENGTH = 128

_UNSAFE_SESSION_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


def get_project_dir() -> Path:
    """Get the project root for the current hook invocation.

    Uses CLAUDE_PROJECT_DIR if set (available during hook execution),
    otherwise falls back to cwd.
    """
    project_dir = os.environ.get("CLAUDE_PROJECT_DIR")
    if project_dir:
        return Path(project_dir)
    return Path.cwd()


def sanitize_session_id(session_id: str) -> str:
    """Make a session id safe to use as a file name.

    Anything outside ``[A-Za-z0-9_-]`` becomes ``_`` and the result is capped
    at 128 characters, so ``../../etc`` cannot escape the log directory.
    """
    return _UNSAFE_SESSION_CHARS.sub("_", session_id)[:MAX_SESSION_ID_LENGTH]


def resolve_dir(configured: str) -> Path:
    """Resolve a configured directory against the project root."""
    path = Path(configured).expanduser()
    if path.is_absolute():
        return path
    return get_project_dir() / path


def get_rate_limiter_dir(log_dir: str) -> Path:
    return resolve_dir(log_dir) / "rate-limiter"


def get_event_log_path(log_dir: str, hook_event: str, date: str) -> Path:
    """``{logDir}/{event}/{YYYY-MM-DD}.jsonl``"""
    return resolve_dir(log_dir) / hook_event / f"{date}.jsonl"


def get_sessions_log_path(log_dir: str) -> Path:
    return resolve_dir(log_dir) / "sessions.jsonl"


def get_prompt_history_path(log_dir: str, session_id: str) -> Path:
    return resolve_dir(log_dir) / "prompts" / f"{sanitize_session_id(session_id)}.jsonl"


def get_error_log_path(log_dir: str, session_id: str) -> Path:
    return resolve_dir(log_dir) / "error-patterns" / f"{sanitize_session_id(session_id)}.jsonl"
