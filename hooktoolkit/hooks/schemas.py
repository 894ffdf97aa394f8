from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# --- Events ---


class HookEvent(StrEnum):
    """Lifecycle events a host can raise."""

    PRE_TOOL_USE = "PreToolUse"
    POST_TOOL_USE = "PostToolUse"
    POST_TOOL_USE_FAILURE = "PostToolUseFailure"
    USER_PROMPT_SUBMIT = "UserPromptSubmit"
    NOTIFICATION = "Notification"
    STOP = "Stop"
    SUBAGENT_START = "SubagentStart"
    SUBAGENT_STOP = "SubagentStop"
    PRE_COMPACT = "PreCompact"
    SETUP = "Setup"
    SESSION_START = "SessionStart"
    SESSION_END = "SessionEnd"
    PERMISSION_REQUEST = "PermissionRequest"


ALL_HOOK_EVENTS: tuple[HookEvent, ...] = tuple(HookEvent)


# --- Errors ---


class StdinParseError(Exception):
    """Hook input could not be read as a single JSON object."""


class FeatureError(Exception):
    """An authoritative feature failed and asked for the run to abort."""

    def __init__(self, feature: str, cause: BaseException):
        super().__init__(f"Feature '{feature}' failed: {cause}")
        self.feature = feature
        self.cause = cause


# --- Input Schemas (Context) ---


class HookContext(BaseModel):
    """
    Normalized input context for all features.

    Both host wire shapes converge on this model in router.normalize_input()
    before any feature sees the event.
    """

    model_config = ConfigDict(frozen=True)

    # Core Identity
    session_id: str = Field(..., description="Session id, sanitized for use in file names.")
    hook_event: HookEvent = Field(..., description="The event being handled.")

    # Tool events
    tool_name: str | None = None
    tool_input: dict[str, Any] = Field(default_factory=dict)
    tool_output: Any = None
    error: str | None = None

    # Other event shapes
    prompt: str | None = None
    message: str | None = None
    transcript_path: str | None = None
    cwd: str | None = None
    trigger: str | None = None
    source: str | None = None
    agent_id: str | None = None

    # Raw Input (for fallback/passthrough)
    raw_input: dict[str, Any] = Field(default_factory=dict)


# --- Internal Result ---


class AggregatedResult(BaseModel):
    """
    Accumulated outcome of one pipeline run.

    The formatter derives both wire protocols from this single object.
    """

    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0
    blocked_by: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def blocked(self) -> bool:
        return self.exit_code != 0


# --- Alternate protocol (VS Code) output ---


class VSCodeHookSpecificOutput(BaseModel):
    """Nested per-event output; hookEventName is always present."""

    hookEventName: str
    permissionDecision: Literal["allow", "deny", "ask"] | None = None
    permissionDecisionReason: str | None = None
    updatedInput: dict[str, Any] | None = None
    additionalContext: str | None = None
    decision: Literal["block"] | None = None
    reason: str | None = None


class VSCodeHookOutput(BaseModel):
    """
    Envelope emitted on stdout for the alternate host.

    Serialize with model_dump_json(by_alias=True, exclude_none=True) so that
    ``continue_`` goes out as ``continue``.
    """

    model_config = ConfigDict(populate_by_name=True)

    continue_: bool | None = Field(default=None, alias="continue")
    stopReason: str | None = None
    systemMessage: str | None = None
    decision: Literal["block"] | None = None
    reason: str | None = None
    hookSpecificOutput: VSCodeHookSpecificOutput
