"""Block writes that add more lines than the configured maximum."""

from hooktoolkit.hooks.schemas import HookContext
from hooktoolkit.lib.config import ToolkitConfig
from hooktoolkit.lib.guard_result import GuardResult, HandlerResult
from hooktoolkit.lib.tool_inputs import collect_write_content, count_lines, is_write_tool


def check_diff_size(ctx: HookContext, config: ToolkitConfig) -> GuardResult:
    if not is_write_tool(ctx.tool_name) or not config.guards.diff_size.enabled:
        return GuardResult.proceed()

    max_lines = config.guards.diff_size.max_lines
    total_lines = sum(
        count_lines(chunk) for chunk in collect_write_content(ctx.tool_name, ctx.tool_input)
    )

    if total_lines > max_lines:
        return GuardResult.block(
            f"Diff size {total_lines} lines exceeds maximum of {max_lines} lines",
            details={"totalLines": total_lines, "maxLines": max_lines, "toolName": ctx.tool_name},
        )
    return GuardResult.proceed()


def handle(ctx: HookContext, config: ToolkitConfig) -> HandlerResult | None:
    return check_diff_size(ctx, config).to_handler_result("Diff size exceeded")
