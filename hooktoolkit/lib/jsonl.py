"""Append-only JSONL records.

Each record is written with a single ``write`` call on a file opened in
append mode, so concurrent hook processes interleave whole lines.
"""

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def _json_serializer(obj: Any) -> str:
    """Convert non-serializable objects to strings for JSON serialization."""
    return str(obj)


def append_record(path: Path, record: dict[str, Any]) -> None:
    """Append one record, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    line = json.dumps(record, separators=(",", ":"), default=_json_serializer) + "\n"
    with path.open("a", encoding="utf-8") as f:
        f.write(line)


def read_records(path: Path) -> list[dict[str, Any]]:
    """Read all well-formed object records. Malformed lines are skipped."""
    if not path.exists():
        return []

    records = []
    for line in path.read_text(encoding="utf-8").splitlines():
        if not line.strip():
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError:
            logger.debug("Skipping malformed line in %s", path)
            continue
        if isinstance(record, dict):
            records.append(record)
    return records
