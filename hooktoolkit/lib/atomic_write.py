"""Whole-file writes that never leave a half-written file behind.

Content goes to a temp file in the destination directory which then replaces
the target in one rename. A reader sees the old file or the new one.
"""

import os
import shutil
import tempfile
from pathlib import Path


def _temp_sibling(path: Path) -> tuple[int, Path]:
    fd, temp_path = tempfile.mkstemp(suffix=".tmp", prefix=path.stem + "_", dir=path.parent)
    return fd, Path(temp_path)


def atomic_write_text(path: Path, text: str) -> None:
    """Replace ``path`` with ``text``, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = _temp_sibling(path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        temp_path.replace(path)
    except Exception:
        temp_path.unlink(missing_ok=True)
        raise


def atomic_copy(source: Path, dest: Path) -> Path:
    """Copy ``source`` to ``dest`` (content and metadata) via a temp file."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = _temp_sibling(dest)
    os.close(fd)
    try:
        shutil.copy2(source, temp_path)
        temp_path.replace(dest)
    except Exception:
        temp_path.unlink(missing_ok=True)
        raise
    return dest
