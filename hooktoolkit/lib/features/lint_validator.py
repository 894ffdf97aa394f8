"""Lint a file right after a write tool changed it."""

from pathlib import Path, PurePath

from hooktoolkit.hooks.schemas import HookContext
from hooktoolkit.lib.command_runner import ValidatorResult, run_validator_command
from hooktoolkit.lib.config import ToolkitConfig
from hooktoolkit.lib.guard_result import ExitCode, HandlerResult
from hooktoolkit.lib.session_paths import get_project_dir
from hooktoolkit.lib.tool_inputs import get_file_path, is_write_tool

SUPPORTED_EXTENSIONS = frozenset({".ts", ".tsx", ".js", ".jsx", ".py"})

LINT_TIMEOUT_SECONDS = 30


def run_lint_validator(
    file_path: str, config: ToolkitConfig, project_dir: Path | None = None
) -> ValidatorResult:
    extension = PurePath(file_path).suffix.lower()
    if extension not in SUPPORTED_EXTENSIONS:
        return ValidatorResult.skipped(f"Skipped: unsupported extension {extension}")
    if not config.validators.lint.enabled:
        return ValidatorResult.skipped("Lint validator disabled")

    return run_validator_command(
        config.validators.lint.command,
        [file_path],
        timeout=LINT_TIMEOUT_SECONDS,
        cwd=project_dir or get_project_dir(),
        unavailable_message="Linter not available",
        failure_message="Lint check failed",
    )


def handle(ctx: HookContext, config: ToolkitConfig) -> HandlerResult | None:
    if not is_write_tool(ctx.tool_name):
        return None
    file_path = get_file_path(ctx.tool_input)
    if not file_path:
        return None

    result = run_lint_validator(file_path, config)
    if not result.passed:
        return HandlerResult(
            exit_code=ExitCode.BLOCK, stderr=f"Lint failed for {file_path}:\n{result.output}"
        )
    return None
