"""Shared fixtures for hooktoolkit tests."""

import json
from pathlib import Path
from typing import Any

import pytest

from hooktoolkit.hooks.feature_registry import FeatureRegistry
from hooktoolkit.hooks.router import HookRouter
from hooktoolkit.hooks.schemas import HookContext, HookEvent
from hooktoolkit.lib.config import ToolkitConfig, merge_config


@pytest.fixture
def project_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run each test inside its own empty project directory."""
    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.setenv("CLAUDE_PROJECT_DIR", str(project))
    monkeypatch.delenv("HOOKTOOLKIT_CONFIG", raising=False)
    monkeypatch.chdir(project)
    return project


@pytest.fixture
def make_config():
    """Build a ToolkitConfig from a camelCase partial override."""

    def _make(override: dict[str, Any] | None = None) -> ToolkitConfig:
        return merge_config(override or {})

    return _make


@pytest.fixture
def make_ctx():
    """Build a HookContext the way the router would."""
    router = HookRouter(registry=FeatureRegistry(()))

    def _make(event: HookEvent | str = HookEvent.PRE_TOOL_USE, **raw: Any) -> HookContext:
        raw.setdefault("session_id", "test-session")
        return router.normalize_input(raw, event)

    return _make


@pytest.fixture
def write_config(project_dir: Path):
    """Write claude-hooks.config.json into the project and return its path."""

    def _write(data: Any, name: str = "claude-hooks.config.json") -> Path:
        path = project_dir / name
        path.write_text(data if isinstance(data, str) else json.dumps(data))
        return path

    return _write
