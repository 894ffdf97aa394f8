"""Pattern helpers shared by the guards: cached regexes and glob translation."""

import re
from functools import lru_cache

# Regex metacharacters that carry no glob meaning. Brackets pass through as
# character classes.
_REGEX_SPECIALS = frozenset(".(){}|+^$\\")


@lru_cache(maxsize=512)
def cached_regex(pattern: str, flags: int = re.IGNORECASE) -> re.Pattern[str] | None:
    """Compile ``pattern`` once per process; None if it does not compile."""
    try:
        return re.compile(pattern, flags)
    except re.error:
        return None


@lru_cache(maxsize=256)
def glob_to_regex(pattern: str, cross_directories: bool = False) -> re.Pattern[str]:
    """Translate a glob into an anchored, case-insensitive regex.

    ``**`` always spans directories (a following ``/`` is absorbed). ``*`` and
    ``?`` stop at ``/`` unless ``cross_directories`` is set, which is what
    basename matching wants.
    """
    out = ["^"]
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if pattern.startswith("**", i):
            out.append(".*")
            i += 2
            if i < len(pattern) and pattern[i] == "/":
                i += 1
            continue
        if ch == "*":
            out.append(".*" if cross_directories else "[^/]*")
        elif ch == "?":
            out.append("." if cross_directories else "[^/]")
        elif ch in _REGEX_SPECIALS:
            out.append("\\" + ch)
        else:
            out.append(ch)
        i += 1
    out.append("$")
    return re.compile("".join(out), re.IGNORECASE)


def matches_glob(value: str, pattern: str, cross_directories: bool = False) -> bool:
    try:
        regex = glob_to_regex(pattern, cross_directories)
    except re.error:
        return False
    return regex.match(value) is not None


# --- ReDoS heuristic ---

_OPEN_REPEAT_RE = re.compile(r"\{\d+,\d*\}")
_ANY_BRACE_QUANTIFIER_RE = re.compile(r"\{\d+,?\d*\}")
_GROUP_PREFIX_RE = re.compile(r"^\?[:=!]|^\?<[!=]")

NESTED_QUANTIFIER_REASON = "nested quantifiers detected, potential catastrophic backtracking"


def _strip_escapes_and_classes(pattern: str) -> str:
    """Replace escaped characters and ``[...]`` classes with ``_``."""
    out = []
    i, n = 0, len(pattern)
    while i < n:
        ch = pattern[i]
        if ch == "\\":
            out.append("_")
            i += 2
            continue
        if ch == "[":
            i += 1
            if i < n and pattern[i] == "^":
                i += 1
            if i < n and pattern[i] == "]":
                i += 1
            while i < n and pattern[i] != "]":
                if pattern[i] == "\\":
                    i += 1
                i += 1
            i += 1
            out.append("_")
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def _is_repetition(s: str, pos: int) -> bool:
    """``+``, ``*`` or an open-ended ``{n,m}`` at ``pos``. A lone ``?`` is harmless."""
    if pos >= len(s):
        return False
    if s[pos] in "+*":
        return True
    return s[pos] == "{" and _OPEN_REPEAT_RE.match(s, pos) is not None


def _body_repeats(body: str) -> bool:
    i, n = 0, len(body)
    while i < n:
        ch = body[i]
        if ch == "(":
            depth, start = 1, i
            i += 1
            while i < n and depth > 0:
                if body[i] == "(":
                    depth += 1
                elif body[i] == ")":
                    depth -= 1
                i += 1
            if _is_repetition(body, i):
                return True
            if _body_repeats(_GROUP_PREFIX_RE.sub("", body[start + 1 : i - 1])):
                return True
            continue
        if ch in "|)+*?":
            i += 1
            continue
        if ch == "{":
            match = _ANY_BRACE_QUANTIFIER_RE.match(body, i)
            if match:
                i = match.end()
                continue
        i += 1
        if _is_repetition(body, i):
            return True
    return False


def check_regex_safety(pattern: str) -> str | None:
    """Heuristic ReDoS check: a reason string when a quantified group contains
    a quantified atom (``(a+)+``, ``(a|b*){2,}``), else None.

    False positives are possible, so callers only warn.
    """
    cleaned = _strip_escapes_and_classes(pattern)
    stack: list[int] = []
    for i, ch in enumerate(cleaned):
        if ch == "(":
            stack.append(i)
        elif ch == ")" and stack:
            start = stack.pop()
            if _is_repetition(cleaned, i + 1):
                body = _GROUP_PREFIX_RE.sub("", cleaned[start + 1 : i])
                if _body_repeats(body):
                    return NESTED_QUANTIFIER_REASON
    return None
