"""Type-check the project after a write tool changed a file."""

from pathlib import Path

from hooktoolkit.hooks.schemas import HookContext
from hooktoolkit.lib.command_runner import ValidatorResult, run_validator_command
from hooktoolkit.lib.config import ToolkitConfig
from hooktoolkit.lib.guard_result import ExitCode, HandlerResult
from hooktoolkit.lib.session_paths import get_project_dir
from hooktoolkit.lib.tool_inputs import is_write_tool

TYPECHECK_TIMEOUT_SECONDS = 60


def run_typecheck_validator(config: ToolkitConfig, project_dir: Path | None = None) -> ValidatorResult:
    if not config.validators.typecheck.enabled:
        return ValidatorResult.skipped("Typecheck validator disabled")

    project_dir = project_dir or get_project_dir()
    if not (project_dir / "tsconfig.json").exists():
        return ValidatorResult.skipped("No tsconfig.json found, skipping typecheck")

    return run_validator_command(
        config.validators.typecheck.command,
        timeout=TYPECHECK_TIMEOUT_SECONDS,
        cwd=project_dir,
        unavailable_message="TypeScript compiler not available",
        failure_message="Typecheck failed",
    )


def handle(ctx: HookContext, config: ToolkitConfig) -> HandlerResult | None:
    if not is_write_tool(ctx.tool_name):
        return None

    result = run_typecheck_validator(config)
    if not result.passed:
        return HandlerResult(exit_code=ExitCode.BLOCK, stderr=f"Typecheck failed:\n{result.output}")
    return None
