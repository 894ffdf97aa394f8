"""
Feature Catalog: single source of truth for feature metadata.

This module defines:
1. The closed set of feature categories
2. One descriptor per built-in feature (events, priority, config location)
3. The failure policy each feature documents

Execution order is derived from priority here; nothing else in the package
should hard-code which feature runs before which.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Literal

from hooktoolkit.hooks.schemas import ALL_HOOK_EVENTS, HookEvent

# =============================================================================
# CATEGORIES
# =============================================================================


class FeatureCategory(StrEnum):
    SECURITY = "security"
    QUALITY = "quality"
    TRACKING = "tracking"
    INTEGRATION = "integration"


# "proceed": an exception inside the handler is logged and treated as no
# result. "raise": the run aborts with FeatureError (exit code 1).
OnError = Literal["proceed", "raise"]


@dataclass(frozen=True)
class FeatureDescriptor:
    """Static metadata for one feature. The handler itself is loaded lazily."""

    name: str
    hook_types: frozenset[HookEvent]
    priority: int
    category: FeatureCategory
    # camelCase dotted path into the config; "" means always on.
    config_path: str
    # Module exposing handle(ctx, config).
    module: str
    description: str = ""
    on_error: OnError = "proceed"

    def __post_init__(self):
        if not self.hook_types:
            raise ValueError(f"Feature '{self.name}' must declare at least one hook type")

    @property
    def sort_key(self) -> tuple[int, str]:
        return (self.priority, self.name)


def _feature(
    name: str,
    hook_types: tuple[HookEvent, ...],
    priority: int,
    category: FeatureCategory,
    config_path: str,
    description: str,
    on_error: OnError = "proceed",
) -> FeatureDescriptor:
    return FeatureDescriptor(
        name=name,
        hook_types=frozenset(hook_types),
        priority=priority,
        category=category,
        config_path=config_path,
        module=f"hooktoolkit.lib.features.{name.replace('-', '_')}",
        description=description,
        on_error=on_error,
    )


E = HookEvent
SECURITY = FeatureCategory.SECURITY
QUALITY = FeatureCategory.QUALITY
TRACKING = FeatureCategory.TRACKING
INTEGRATION = FeatureCategory.INTEGRATION

# =============================================================================
# BUILT-IN FEATURES
# =============================================================================
# Lower priority runs earlier. Guards sit below 100, validators at 100-199,
# trackers at 200+, integrations last.

BUILTIN_FEATURES: tuple[FeatureDescriptor, ...] = (
    # --- PreToolUse guards ---
    _feature(
        "rate-limiter", (E.PRE_TOOL_USE,), 3, SECURITY, "rateLimiter",
        "Cap tool calls and file edits per session",
    ),
    _feature(
        "file-backup", (E.PRE_TOOL_USE,), 5, TRACKING, "fileBackup",
        "Copy files before they are overwritten",
    ),
    _feature(
        "branch-guard", (E.PRE_TOOL_USE,), 8, SECURITY, "guards.branch",
        "Block writes on protected git branches",
    ),
    _feature(
        "command-guard", (E.PRE_TOOL_USE,), 10, SECURITY, "guards.command",
        "Block dangerous shell commands",
    ),
    _feature(
        "file-guard", (E.PRE_TOOL_USE,), 20, SECURITY, "guards.file",
        "Block writes to protected files",
    ),
    _feature(
        "secret-leak-guard", (E.PRE_TOOL_USE,), 25, SECURITY, "guards.secretLeak",
        "Block content containing credentials",
    ),
    _feature(
        "path-guard", (E.PRE_TOOL_USE,), 30, SECURITY, "guards.path",
        "Block file access outside the project",
    ),
    _feature(
        "scope-guard", (E.PRE_TOOL_USE,), 35, SECURITY, "guards.scope",
        "Restrict writes to allowed paths",
    ),
    _feature(
        "diff-size-guard", (E.PRE_TOOL_USE,), 40, SECURITY, "guards.diffSize",
        "Block oversized writes",
    ),
    # --- Permission requests ---
    _feature(
        "permission-handler", (E.PERMISSION_REQUEST,), 10, SECURITY, "",
        "Auto-allow, ask or deny tools by name",
    ),
    # --- PostToolUse validators ---
    _feature(
        "lint-validator", (E.POST_TOOL_USE,), 100, QUALITY, "validators.lint",
        "Lint files after they are written", on_error="raise",
    ),
    _feature(
        "typecheck-validator", (E.POST_TOOL_USE,), 110, QUALITY, "validators.typecheck",
        "Type-check after writes", on_error="raise",
    ),
    _feature(
        "test-runner", (E.POST_TOOL_USE,), 120, QUALITY, "validators.test",
        "Run the test suite after writes", on_error="raise",
    ),
    _feature(
        "error-pattern-detector", (E.POST_TOOL_USE_FAILURE,), 120, QUALITY,
        "errorPatternDetector", "Spot the same tool failure repeating",
    ),
    # --- Trackers ---
    _feature(
        "transcript-backup", (E.PRE_COMPACT,), 200, TRACKING, "",
        "Back up the transcript before compaction",
    ),
    _feature(
        "context-injector", (E.SESSION_START, E.USER_PROMPT_SUBMIT), 205, TRACKING,
        "contextInjector", "Inject project context files",
    ),
    _feature(
        "git-context", (E.SESSION_START, E.SETUP), 210, TRACKING, "",
        "Inject branch and recent commits",
    ),
    _feature(
        "session-tracker", (E.SESSION_START, E.SESSION_END, E.STOP), 220, TRACKING, "",
        "Record session start and end",
    ),
    _feature(
        "prompt-history", (E.USER_PROMPT_SUBMIT,), 230, TRACKING, "promptHistory",
        "Record submitted prompts",
    ),
    _feature(
        "change-summary", (E.POST_TOOL_USE, E.STOP), 250, TRACKING, "changeSummary",
        "Summarize files changed in the session",
    ),
    _feature(
        "todo-tracker", (E.POST_TOOL_USE, E.STOP), 260, TRACKING, "todoTracker",
        "Track TODO markers in written content",
    ),
    _feature(
        "cost-tracker", (E.POST_TOOL_USE, E.STOP), 800, TRACKING, "costTracker",
        "Count tool calls per session",
    ),
    _feature(
        "logger", ALL_HOOK_EVENTS, 900, TRACKING, "",
        "Log every event as JSONL",
    ),
    # --- Integrations ---
    _feature(
        "notification-webhook", (E.STOP, E.NOTIFICATION), 950, INTEGRATION, "webhooks",
        "POST events to a webhook",
    ),
)
