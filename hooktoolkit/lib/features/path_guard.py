"""Block file operations that resolve outside the project root."""

import os
from pathlib import Path

from hooktoolkit.hooks.schemas import HookContext
from hooktoolkit.lib.config import ToolkitConfig
from hooktoolkit.lib.guard_result import GuardResult, HandlerResult
from hooktoolkit.lib.session_paths import get_project_dir
from hooktoolkit.lib.tool_inputs import get_file_path


def _normalize(path: str | Path) -> str:
    return os.path.normpath(os.path.abspath(path)).replace("\\", "/").lower()


def _is_within(path: str, root: str) -> bool:
    root_with_sep = root if root.endswith("/") else root + "/"
    return path == root or path.startswith(root_with_sep)


def check_path_traversal(
    ctx: HookContext, config: ToolkitConfig, project_root: Path | None = None
) -> GuardResult:
    if not config.guards.path.enabled:
        return GuardResult.proceed()

    file_path = get_file_path(ctx.tool_input)
    if not file_path:
        return GuardResult.proceed()

    root = _normalize(project_root or get_project_dir())
    resolved = _normalize(os.path.join(root, file_path))

    if _is_within(resolved, root):
        return GuardResult.proceed()
    for allowed in config.guards.path.allowed_roots:
        if _is_within(resolved, _normalize(Path(allowed).expanduser())):
            return GuardResult.proceed()

    return GuardResult.block(
        f"Blocked path traversal: {file_path} resolves outside project root",
        details={"filePath": file_path, "resolvedPath": resolved, "projectRoot": root},
    )


def handle(ctx: HookContext, config: ToolkitConfig) -> HandlerResult | None:
    return check_path_traversal(ctx, config).to_handler_result("Path traversal blocked")
