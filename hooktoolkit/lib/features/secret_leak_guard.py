"""Block writes whose content looks like a credential."""

import re
from typing import NamedTuple

from hooktoolkit.hooks.schemas import HookContext
from hooktoolkit.lib.config import ToolkitConfig
from hooktoolkit.lib.guard_result import GuardResult, HandlerResult
from hooktoolkit.lib.patterns import cached_regex
from hooktoolkit.lib.tool_inputs import collect_write_content, is_write_tool


class SecretPattern(NamedTuple):
    name: str
    regex: re.Pattern[str]


BUILT_IN_PATTERNS = (
    SecretPattern("AWS access key", re.compile(r"AKIA[0-9A-Z]{16}")),
    SecretPattern(
        "AWS secret key",
        re.compile(
            r"(?:aws_secret_access_key|secret_key|aws_secret)\s*[:=]\s*['\"]?[0-9a-zA-Z/+]{40}"
        ),
    ),
    SecretPattern("GitHub token", re.compile(r"gh[ps]_[A-Za-z0-9_]{36,}")),
    SecretPattern("OpenAI key", re.compile(r"sk-[A-Za-z0-9]{32,}")),
    SecretPattern(
        "Generic API key",
        re.compile(r"(?:api[_-]?key|apikey|secret[_-]?key)\s*[:=]\s*['\"][A-Za-z0-9]{16,}['\"]"),
    ),
    SecretPattern(
        "Private key block", re.compile(r"-----BEGIN (?:RSA |EC |DSA )?PRIVATE KEY-----")
    ),
    SecretPattern(
        "Connection string with password",
        re.compile(r"(?:postgres|mysql|mongodb)://[^:]+:[^@]+@"),
    ),
)


def _is_allowed(text: str, allowed_patterns: list[str]) -> bool:
    for pattern in allowed_patterns:
        regex = cached_regex(pattern, 0)
        if regex is not None and regex.search(text):
            return True
    return False


def _custom_patterns(patterns: list[str]) -> list[SecretPattern]:
    custom = []
    for index, pattern in enumerate(patterns, start=1):
        regex = cached_regex(pattern, 0)
        if regex is not None:
            custom.append(SecretPattern(f"Custom pattern #{index}", regex))
    return custom


def check_secret_leak(ctx: HookContext, config: ToolkitConfig) -> GuardResult:
    settings = config.guards.secret_leak
    if not is_write_tool(ctx.tool_name) or not settings.enabled:
        return GuardResult.proceed()

    chunks = collect_write_content(ctx.tool_name, ctx.tool_input)
    if not chunks:
        return GuardResult.proceed()

    all_patterns = [*BUILT_IN_PATTERNS, *_custom_patterns(settings.custom_patterns)]
    for chunk in chunks:
        if _is_allowed(chunk, settings.allowed_patterns):
            continue
        for pattern in all_patterns:
            match = pattern.regex.search(chunk)
            if match and not _is_allowed(match.group(0), settings.allowed_patterns):
                return GuardResult.block(
                    f"Potential secret detected: {pattern.name}",
                    details={"patternName": pattern.name, "toolName": ctx.tool_name},
                )
    return GuardResult.proceed()


def handle(ctx: HookContext, config: ToolkitConfig) -> HandlerResult | None:
    return check_secret_leak(ctx, config).to_handler_result("Secret leak detected")
