"""Configuration resolver: defaults, presets and per-field fallback.

The configuration is a tree of frozen pydantic models. On disk it is a JSON
document with camelCase keys (``claude-hooks.config.json``) that only needs to
contain the fields the user wants to change.

Resolution never fails. A field that does not validate (wrong type, out of
range, uncompilable regex) is reset to its default while every sibling field
keeps the user's value.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import re
from importlib import resources
from pathlib import Path
from typing import Annotated, Any

import yaml
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel, to_snake

from hooktoolkit.lib.patterns import check_regex_safety
from hooktoolkit.lib.session_paths import get_project_dir

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "claude-hooks.config.json"
CONFIG_ENV_VAR = "HOOKTOOLKIT_CONFIG"
MAX_EXTENDS_DEPTH = 10

# =============================================================================
# DEFAULT VALUES
# =============================================================================

DEFAULT_BLOCKED_COMMANDS: tuple[str, ...] = (
    r"rm\s+.*-[a-z]*r[a-z]*f",
    r"rm\s+-rf\s+/",
    r"rm\s+-rf\s+~",
    r"rm\s+-rf\s+\.",
    r"chmod\s+777",
    r"mkfs",
    r"dd\s+if=",
    r">\s*/dev/sda",
    r"shutdown",
    r"reboot",
    r":\(\)\{\s*:\|:\s*&\s*\};:",
    r"eval\s+",
    r"\|\s*(ba)?sh",
    r"\|\s*source",
    r"base64.*\|",
)

DEFAULT_PROTECTED_FILES: tuple[str, ...] = (".env", "*.pem", "*.key", "id_rsa*", "*.secret*")

DEFAULT_PROTECTED_BRANCHES: tuple[str, ...] = ("main", "master", "production", "release/*")

DEFAULT_TODO_MARKERS: tuple[str, ...] = ("TODO", "FIXME", "HACK", "XXX")


def _check_patterns(patterns: list[str]) -> list[str]:
    """Reject lists containing a pattern that does not compile.

    Patterns prone to catastrophic backtracking are kept but logged.
    """
    for pattern in patterns:
        try:
            re.compile(pattern)
        except re.error as e:
            raise ValueError(f"invalid regular expression {pattern!r}: {e}") from e
        reason = check_regex_safety(pattern)
        if reason:
            logger.warning("Regex %r may be slow on some inputs: %s", pattern, reason)
    return patterns


RegexList = Annotated[list[str], AfterValidator(_check_patterns)]


# =============================================================================
# MODELS
# =============================================================================


class ConfigSection(BaseModel):
    """Base for every config node: camelCase on the wire, immutable once built."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class CommandGuardConfig(ConfigSection):
    blocked_patterns: RegexList = Field(default_factory=lambda: list(DEFAULT_BLOCKED_COMMANDS))
    allowed_patterns: RegexList = Field(default_factory=list)
    enabled: bool = True


class FileGuardConfig(ConfigSection):
    protected_patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_PROTECTED_FILES))
    enabled: bool = True


class PathGuardConfig(ConfigSection):
    allowed_roots: list[str] = Field(default_factory=list)
    enabled: bool = True


class DiffSizeGuardConfig(ConfigSection):
    max_lines: int = Field(default=500, ge=1)
    enabled: bool = False


class BranchGuardConfig(ConfigSection):
    protected_branches: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PROTECTED_BRANCHES)
    )
    enabled: bool = False


class SecretLeakGuardConfig(ConfigSection):
    custom_patterns: RegexList = Field(default_factory=list)
    allowed_patterns: RegexList = Field(default_factory=list)
    enabled: bool = True


class ScopeGuardConfig(ConfigSection):
    allowed_paths: list[str] = Field(default_factory=list)
    enabled: bool = False


class GuardsConfig(ConfigSection):
    command: CommandGuardConfig = Field(default_factory=CommandGuardConfig)
    file: FileGuardConfig = Field(default_factory=FileGuardConfig)
    path: PathGuardConfig = Field(default_factory=PathGuardConfig)
    diff_size: DiffSizeGuardConfig = Field(default_factory=DiffSizeGuardConfig)
    branch: BranchGuardConfig = Field(default_factory=BranchGuardConfig)
    secret_leak: SecretLeakGuardConfig = Field(default_factory=SecretLeakGuardConfig)
    scope: ScopeGuardConfig = Field(default_factory=ScopeGuardConfig)


class CommandValidatorConfig(ConfigSection):
    command: str
    enabled: bool = False


class ValidatorTestConfig(ConfigSection):
    command: str = ""
    # Milliseconds.
    timeout: int = Field(default=60000, ge=1)
    enabled: bool = False


class ValidatorsConfig(ConfigSection):
    lint: CommandValidatorConfig = Field(
        default_factory=lambda: CommandValidatorConfig(command="npx eslint --no-warn-ignored")
    )
    typecheck: CommandValidatorConfig = Field(
        default_factory=lambda: CommandValidatorConfig(command="npx tsc --noEmit")
    )
    test: ValidatorTestConfig = Field(default_factory=ValidatorTestConfig)


class PermissionsConfig(ConfigSection):
    auto_allow: RegexList = Field(default_factory=lambda: ["Read", "Glob", "Grep"])
    auto_deny: RegexList = Field(default_factory=list)
    auto_ask: RegexList = Field(default_factory=list)


class PromptHistoryConfig(ConfigSection):
    enabled: bool = True


class FileBackupConfig(ConfigSection):
    backup_dir: str = "logs/claude-hooks/file-backups"
    enabled: bool = False


class WebhooksConfig(ConfigSection):
    url: str = ""
    events: list[str] = Field(default_factory=lambda: ["Stop", "Notification"])
    enabled: bool = False
    include_full_input: bool = False


class RateLimiterConfig(ConfigSection):
    # 0 means unlimited.
    max_tool_calls_per_session: int = Field(default=0, ge=0)
    max_file_edits_per_session: int = Field(default=0, ge=0)
    enabled: bool = False


class CostTrackerConfig(ConfigSection):
    output_path: str = "logs/claude-hooks/cost-reports"
    enabled: bool = False


class ChangeSummaryConfig(ConfigSection):
    output_path: str = "logs/claude-hooks/change-summaries"
    enabled: bool = False


class TodoTrackerConfig(ConfigSection):
    output_path: str = "logs/claude-hooks/todo-reports"
    # Literal markers, matched case-insensitively.
    patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_TODO_MARKERS))
    enabled: bool = False


class ErrorPatternDetectorConfig(ConfigSection):
    max_repeats: int = Field(default=3, ge=1)
    enabled: bool = False


class ContextInjectorConfig(ConfigSection):
    context_files: list[str] = Field(default_factory=lambda: [".claude/context.md"])
    enabled: bool = False


class ToolkitConfig(ConfigSection):
    """Fully resolved configuration. Every field always holds a typed value."""

    log_dir: str = "logs/claude-hooks"
    transcript_backup_dir: str = "logs/claude-hooks/transcript-backups"
    guards: GuardsConfig = Field(default_factory=GuardsConfig)
    validators: ValidatorsConfig = Field(default_factory=ValidatorsConfig)
    permissions: PermissionsConfig = Field(default_factory=PermissionsConfig)
    prompt_history: PromptHistoryConfig = Field(default_factory=PromptHistoryConfig)
    file_backup: FileBackupConfig = Field(default_factory=FileBackupConfig)
    cost_tracker: CostTrackerConfig = Field(default_factory=CostTrackerConfig)
    webhooks: WebhooksConfig = Field(default_factory=WebhooksConfig)
    change_summary: ChangeSummaryConfig = Field(default_factory=ChangeSummaryConfig)
    rate_limiter: RateLimiterConfig = Field(default_factory=RateLimiterConfig)
    todo_tracker: TodoTrackerConfig = Field(default_factory=TodoTrackerConfig)
    error_pattern_detector: ErrorPatternDetectorConfig = Field(
        default_factory=ErrorPatternDetectorConfig
    )
    context_injector: ContextInjectorConfig = Field(default_factory=ContextInjectorConfig)

    def section(self, dotted_path: str) -> Any:
        """Return the node at a camelCase dotted path, or None if it does not exist.

        ``config.section("guards.diffSize")`` is ``config.guards.diff_size``.
        """
        node: Any = self
        for part in dotted_path.split("."):
            if not isinstance(node, BaseModel):
                return None
            node = getattr(node, to_snake(part), None)
            if node is None:
                return None
        return node


DEFAULT_CONFIG = ToolkitConfig()


def default_config_dict() -> dict[str, Any]:
    """Fresh JSON-shaped copy of the defaults (camelCase keys)."""
    return DEFAULT_CONFIG.model_dump(mode="json", by_alias=True)


# =============================================================================
# PRESETS AND EXTENDS
# =============================================================================

_presets_cache: dict[str, dict[str, Any]] | None = None


def load_presets() -> dict[str, dict[str, Any]]:
    """Load the named presets shipped in ``presets.yaml``."""
    global _presets_cache
    if _presets_cache is None:
        text = resources.files("hooktoolkit.lib").joinpath("presets.yaml").read_text()
        _presets_cache = yaml.safe_load(text) or {}
    return copy.deepcopy(_presets_cache)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``.

    Objects merge key by key; everything else (arrays included) replaces.
    Neither argument is modified.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _read_json_object(path: Path) -> dict[str, Any] | None:
    try:
        data = json.loads(path.read_text())
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.info("Ignoring config %s: %s", path, e)
        return None
    if not isinstance(data, dict):
        logger.info("Ignoring config %s: top level is not an object", path)
        return None
    return data


def resolve_extends(
    raw: dict[str, Any], source: Path, seen: set[Path] | None = None, depth: int = 0
) -> dict[str, Any]:
    """Build the base layer named by ``raw["extends"]`` (empty if none).

    ``extends`` is either a preset name or a path to another config file,
    relative to ``source``. Referenced files may extend further.
    """
    extends = raw.get("extends")
    if not isinstance(extends, str) or not extends:
        return {}

    if depth >= MAX_EXTENDS_DEPTH:
        logger.info("Maximum extends depth (%d) reached at %s", MAX_EXTENDS_DEPTH, source)
        return {}

    presets = load_presets()
    if extends in presets:
        return presets[extends]

    seen = set(seen or ()) | {source.resolve()}
    target = (source.parent / extends).resolve()
    if target in seen:
        logger.info("Circular extends detected: %s", target)
        return {}

    parent = _read_json_object(target)
    if parent is None:
        return {}

    base = resolve_extends(parent, target, seen, depth + 1)
    parent.pop("extends", None)
    return deep_merge(base, parent)


# =============================================================================
# RESOLUTION
# =============================================================================


def _restore_default(merged: dict[str, Any], defaults: dict[str, Any], loc: tuple) -> bool:
    """Put the default back at the deepest config field named by ``loc``.

    Returns False when the location cannot be mapped to a field.
    """
    node, default_node = merged, defaults
    for key in loc:
        if not isinstance(key, str) or key not in default_node:
            return False
        if isinstance(default_node[key], dict) and isinstance(node.get(key), dict):
            node, default_node = node[key], default_node[key]
            continue
        logger.info("Invalid config value at %s, using default", ".".join(map(str, loc)))
        node[key] = copy.deepcopy(default_node[key])
        return True
    return False


def merge_config(override: dict[str, Any]) -> ToolkitConfig:
    """Layer a partial JSON-shaped override over the defaults, field by field."""
    defaults = default_config_dict()
    merged = deep_merge(defaults, override)

    unknown = sorted(set(override) - set(defaults))
    if unknown:
        logger.info("Ignoring unknown config keys: %s", ", ".join(unknown))

    # Each pass resets every field that failed; fields only ever move toward
    # their defaults, so the loop ends once the document validates.
    while True:
        try:
            return ToolkitConfig.model_validate_json(json.dumps(merged), strict=True)
        except ValidationError as e:
            restored = [_restore_default(merged, defaults, tuple(err["loc"])) for err in e.errors()]
            if not any(restored):
                logger.info("Config could not be repaired, using defaults: %s", e)
                return ToolkitConfig()


def default_config_path() -> Path:
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return get_project_dir() / CONFIG_FILENAME


def resolve(override_path: str | Path | None = None) -> ToolkitConfig:
    """Resolve the effective configuration.

    Args:
        override_path: Config file to read. Defaults to ``$HOOKTOOLKIT_CONFIG``
            or ``claude-hooks.config.json`` in the project directory.

    Returns:
        A fully populated ToolkitConfig. A missing or unreadable file yields
        the defaults.
    """
    path = Path(override_path) if override_path else default_config_path()
    if not path.is_file():
        return ToolkitConfig()

    raw = _read_json_object(path)
    if raw is None:
        return ToolkitConfig()

    base = resolve_extends(raw, path)
    user = {k: v for k, v in raw.items() if k != "extends"}
    return merge_config(deep_merge(base, user))
