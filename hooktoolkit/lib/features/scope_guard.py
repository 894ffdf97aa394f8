"""Restrict writes to an allow-list of glob patterns."""

from hooktoolkit.hooks.schemas import HookContext
from hooktoolkit.lib.config import ToolkitConfig
from hooktoolkit.lib.guard_result import GuardResult, HandlerResult
from hooktoolkit.lib.patterns import matches_glob
from hooktoolkit.lib.tool_inputs import get_file_path, is_write_tool


def check_scope(ctx: HookContext, config: ToolkitConfig) -> GuardResult:
    settings = config.guards.scope
    # No allowed paths configured means no restriction.
    if not is_write_tool(ctx.tool_name) or not settings.enabled or not settings.allowed_paths:
        return GuardResult.proceed()

    file_path = get_file_path(ctx.tool_input)
    if not file_path:
        return GuardResult.proceed()

    normalized = file_path.replace("\\", "/")
    for pattern in settings.allowed_paths:
        if matches_glob(normalized, pattern.replace("\\", "/")):
            return GuardResult.proceed()

    return GuardResult.block(
        f"File outside allowed scope: {file_path}",
        details={"filePath": file_path, "allowedPaths": list(settings.allowed_paths)},
    )


def handle(ctx: HookContext, config: ToolkitConfig) -> HandlerResult | None:
    return check_scope(ctx, config).to_handler_result("File outside allowed scope")
