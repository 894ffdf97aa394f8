"""Block writes to protected files such as .env files and private keys."""

from pathlib import PurePath

from hooktoolkit.hooks.schemas import HookContext
from hooktoolkit.lib.config import ToolkitConfig
from hooktoolkit.lib.guard_result import GuardResult, HandlerResult
from hooktoolkit.lib.patterns import matches_glob
from hooktoolkit.lib.tool_inputs import get_file_path, is_write_tool

EXAMPLE_ENV_SUFFIXES = (".env.example", ".env.sample")


def _is_env_file(basename: str) -> bool:
    if basename.lower().endswith(EXAMPLE_ENV_SUFFIXES):
        return False
    return basename == ".env" or basename.startswith(".env.")


def match_protected_pattern(file_path: str, patterns: list[str]) -> str | None:
    """Return the first pattern the file's basename matches.

    ``.env`` is special-cased to also cover ``.env.local`` and friends while
    leaving example templates writable.
    """
    basename = PurePath(file_path).name
    for pattern in patterns:
        if pattern == ".env":
            if _is_env_file(basename):
                return pattern
            continue
        if matches_glob(basename, pattern, cross_directories=True):
            return pattern
    return None


def check_file_access(ctx: HookContext, config: ToolkitConfig) -> GuardResult:
    if not is_write_tool(ctx.tool_name) or not config.guards.file.enabled:
        return GuardResult.proceed()

    file_path = get_file_path(ctx.tool_input)
    if not file_path:
        return GuardResult.proceed()

    matched = match_protected_pattern(file_path, config.guards.file.protected_patterns)
    if matched:
        return GuardResult.block(
            f"Blocked write to protected file: {PurePath(file_path).name} "
            f"(matches pattern: {matched})",
            details={"filePath": file_path, "matchedPattern": matched},
        )
    return GuardResult.proceed()


def handle(ctx: HookContext, config: ToolkitConfig) -> HandlerResult | None:
    return check_file_access(ctx, config).to_handler_result("File access blocked")
