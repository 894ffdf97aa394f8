"""
Output formatting for the two host protocols.

Primary (Claude Code): stdout carries whatever the features produced, with no
envelope; blocking text goes to stderr and the exit code carries the verdict.

Alternate (VS Code): stdout is always one JSON envelope with a
``hookSpecificOutput`` object. Blocks are expressed inside the envelope
(``permissionDecision: "deny"``, ``decision: "block"``) so the host can show
the same UI whichever feature blocked.

Both are derived from the same AggregatedResult; nothing here re-runs features.
"""

import json
from collections.abc import Callable
from typing import Any

from hooktoolkit.hooks.schemas import (
    AggregatedResult,
    HookEvent,
    VSCodeHookOutput,
    VSCodeHookSpecificOutput,
)
from hooktoolkit.lib.guard_result import ExitCode

DEFAULT_BLOCK_MESSAGE = "Operation blocked by hook"

PERMISSION_DECISIONS = ("allow", "deny", "ask")


def parse_stdout_object(raw: str) -> dict[str, Any] | None:
    """Parse feature stdout as a JSON object; None for anything else."""
    if not raw:
        return None
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def extract_message(parsed: dict[str, Any] | None, stderr: str) -> str:
    message = (parsed or {}).get("message")
    if isinstance(message, str) and message:
        return message
    if stderr:
        return stderr
    return DEFAULT_BLOCK_MESSAGE


def extract_stop_reason(parsed: dict[str, Any] | None, stderr: str) -> str:
    reason = (parsed or {}).get("reason")
    if isinstance(reason, str) and reason:
        return reason
    return extract_message(parsed, stderr)


def _additional_context(hso: VSCodeHookSpecificOutput, parsed: dict[str, Any] | None) -> None:
    context = (parsed or {}).get("additionalContext")
    if context:
        hso.additionalContext = str(context)


# --- Per-event alternate formatting ---


def _format_pre_tool_use(
    out: VSCodeHookOutput, hso: VSCodeHookSpecificOutput, parsed: dict | None, stderr: str, blocked: bool
) -> None:
    decision = (parsed or {}).get("decision")
    if blocked or decision == "deny":
        hso.permissionDecision = "deny"
        hso.permissionDecisionReason = extract_message(parsed, stderr)
        out.continue_ = False
        out.stopReason = hso.permissionDecisionReason
        _additional_context(hso, parsed)
        return

    if decision == "ask":
        hso.permissionDecision = "ask"
        hso.permissionDecisionReason = extract_message(parsed, stderr)
    elif decision == "allow":
        hso.permissionDecision = "allow"
    out.continue_ = True

    updated_input = (parsed or {}).get("updatedInput")
    if isinstance(updated_input, dict):
        hso.updatedInput = updated_input
    _additional_context(hso, parsed)


def _format_post_tool_use(
    out: VSCodeHookOutput, hso: VSCodeHookSpecificOutput, parsed: dict | None, stderr: str, blocked: bool
) -> None:
    if blocked:
        out.decision = "block"
        out.reason = extract_message(parsed, stderr)
        out.continue_ = False
    else:
        out.continue_ = True
    _additional_context(hso, parsed)


def _format_stop(
    out: VSCodeHookOutput, hso: VSCodeHookSpecificOutput, parsed: dict | None, stderr: str, blocked: bool
) -> None:
    if blocked or (parsed or {}).get("decision") == "block":
        hso.decision = "block"
        hso.reason = extract_stop_reason(parsed, stderr)
        out.continue_ = False
        out.stopReason = hso.reason
    else:
        out.continue_ = True
    _additional_context(hso, parsed)


def _format_permission_request(
    out: VSCodeHookOutput, hso: VSCodeHookSpecificOutput, parsed: dict | None, stderr: str, blocked: bool
) -> None:
    decision = (parsed or {}).get("decision")
    if decision in PERMISSION_DECISIONS:
        hso.permissionDecision = decision
        hso.permissionDecisionReason = extract_message(parsed, stderr)

    if decision == "deny" or blocked:
        out.continue_ = False
        out.stopReason = extract_message(parsed, stderr)
    else:
        out.continue_ = True


def _format_default(
    out: VSCodeHookOutput, hso: VSCodeHookSpecificOutput, parsed: dict | None, stderr: str, blocked: bool
) -> None:
    if blocked:
        out.continue_ = False
        out.stopReason = extract_message(parsed, stderr)
    else:
        out.continue_ = True
    _additional_context(hso, parsed)


_EVENT_FORMATTERS: dict[str, Callable[..., None]] = {
    HookEvent.PRE_TOOL_USE: _format_pre_tool_use,
    HookEvent.POST_TOOL_USE: _format_post_tool_use,
    HookEvent.STOP: _format_stop,
    HookEvent.PERMISSION_REQUEST: _format_permission_request,
}


def output_for_vscode(event: HookEvent | str, result: AggregatedResult) -> VSCodeHookOutput:
    """Build the alternate-protocol envelope for an aggregated result."""
    parsed = parse_stdout_object(result.stdout)
    hso = VSCodeHookSpecificOutput(hookEventName=str(event))
    out = VSCodeHookOutput(hookSpecificOutput=hso)
    blocked = result.exit_code == ExitCode.BLOCK

    formatter = _EVENT_FORMATTERS.get(event, _format_default)
    formatter(out, hso, parsed, result.stderr, blocked)
    out.hookSpecificOutput = hso
    return out


def format_output(event: HookEvent | str, result: AggregatedResult, use_alternate: bool) -> str:
    """Render stdout text for the selected protocol."""
    if not use_alternate:
        return result.stdout
    return output_for_vscode(event, result).model_dump_json(by_alias=True, exclude_none=True)


def stderr_for(result: AggregatedResult, use_alternate: bool) -> str:
    """Text for the error stream: primary protocol only, and only when blocked."""
    if use_alternate or not result.blocked:
        return ""
    return result.stderr


def exit_code_for(result: AggregatedResult) -> int:
    return result.exit_code
