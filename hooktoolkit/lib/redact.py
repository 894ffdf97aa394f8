"""Masking of secrets and bulky file content before payloads are logged."""

import copy
import re
from typing import Any

SENSITIVE_FIELDS = ("content", "new_string", "old_string")
MAX_FIELD_LENGTH = 200
TRUNCATED_MARKER = " [TRUNCATED]"
REDACTED_MARKER = "[REDACTED]"

SECRET_PATTERNS = [
    re.compile(r"(?:sk|pk)[-_](?:live|test|prod)[-_]\w{20,}", re.IGNORECASE),
    re.compile(r"(?:ghp|gho|ghs|ghr|github_pat)_\w{30,}", re.IGNORECASE),
    re.compile(r"(?:AKIA|ABIA|ACCA|ASIA)[A-Z0-9]{16}"),
    re.compile(r"eyJ[A-Za-z0-9_-]{20,}\.[A-Za-z0-9_-]{20,}"),
    re.compile(r"xox[bposa]-[A-Za-z0-9-]{20,}"),
    re.compile(
        r"(?:key|token|secret|password|apikey|api_key|access_key)\s*[=:]\s*['\"]?[A-Za-z0-9+/=_-]{16,}['\"]?",
        re.IGNORECASE,
    ),
]


def redact_secrets(value: str) -> str:
    for pattern in SECRET_PATTERNS:
        value = pattern.sub(REDACTED_MARKER, value)
    return value


def _redact_fields(obj: dict[str, Any]) -> None:
    for field in SENSITIVE_FIELDS:
        value = obj.get(field)
        if isinstance(value, str):
            value = redact_secrets(value)
            if len(value) > MAX_FIELD_LENGTH:
                value = value[:MAX_FIELD_LENGTH] + TRUNCATED_MARKER
            obj[field] = value


def redact_sensitive_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of a raw payload with tool_input content masked and truncated."""
    cloned = copy.deepcopy(data)
    tool_input = cloned.get("tool_input")
    if not isinstance(tool_input, dict):
        return cloned

    _redact_fields(tool_input)
    edits = tool_input.get("edits")
    if isinstance(edits, list):
        for edit in edits:
            if isinstance(edit, dict):
                _redact_fields(edit)
    return cloned
