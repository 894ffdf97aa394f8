"""Block shell commands matching dangerous patterns.

Pattern blocking is advisory: quoting, variable expansion and encoding tricks
can get past it. Use OS-level sandboxing where that matters.
"""

from hooktoolkit.hooks.schemas import HookContext
from hooktoolkit.lib.config import ToolkitConfig
from hooktoolkit.lib.guard_result import GuardResult, HandlerResult
from hooktoolkit.lib.patterns import cached_regex

# Reads and writes of .env files through common shell utilities.
ENV_ACCESS_PATTERNS = (
    r"cat\s+.*\.env\b",
    r"less\s+.*\.env\b",
    r"more\s+.*\.env\b",
    r"head\s+.*\.env\b",
    r"tail\s+.*\.env\b",
    r"cp\s+.*\.env\b",
    r"mv\s+.*\.env\b",
    r">>?\s*.*\.env\b",
    r"sed\s+.*-i.*\.env\b",
    r"tee\s+.*\.env\b",
)


def _first_match(command: str, patterns) -> str | None:
    for pattern in patterns:
        regex = cached_regex(pattern)
        if regex is not None and regex.search(command):
            return pattern
    return None


def check_command(ctx: HookContext, config: ToolkitConfig) -> GuardResult:
    if ctx.tool_name != "Bash" or not config.guards.command.enabled:
        return GuardResult.proceed()

    command = ctx.tool_input.get("command")
    if not isinstance(command, str) or not command:
        return GuardResult.proceed()

    settings = config.guards.command
    if _first_match(command, settings.allowed_patterns):
        return GuardResult.proceed()

    pattern = _first_match(command, settings.blocked_patterns)
    if pattern:
        return GuardResult.block(
            f"Blocked dangerous command matching pattern: {pattern}",
            details={"command": command, "pattern": pattern},
        )

    pattern = _first_match(command, ENV_ACCESS_PATTERNS)
    if pattern:
        return GuardResult.block(
            f"Blocked .env file access: {command}",
            details={"command": command, "pattern": pattern},
        )

    return GuardResult.proceed()


def handle(ctx: HookContext, config: ToolkitConfig) -> HandlerResult | None:
    return check_command(ctx, config).to_handler_result("Command blocked")
