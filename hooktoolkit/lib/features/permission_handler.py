"""Answer permission requests from the autoDeny / autoAsk / autoAllow lists.

Deny wins over ask, ask over allow. Tools on no list are left to the user.
"""

import json
from typing import Literal

from hooktoolkit.hooks.schemas import HookContext
from hooktoolkit.lib.config import ToolkitConfig
from hooktoolkit.lib.guard_result import HandlerResult
from hooktoolkit.lib.patterns import cached_regex

Decision = Literal["allow", "deny", "ask"]

MESSAGES: dict[str, str] = {
    "deny": "Auto-denied tool: {tool}",
    "ask": "Requires user confirmation: {tool}",
    "allow": "Auto-allowed tool: {tool}",
}


def matches_pattern(tool_name: str, patterns: list[str]) -> bool:
    """Exact name, or a regex matched against the whole name."""
    for pattern in patterns:
        if pattern == tool_name:
            return True
        regex = cached_regex(f"^(?:{pattern})$")
        if regex is not None and regex.match(tool_name):
            return True
    return False


def resolve_permission(tool_name: str, config: ToolkitConfig) -> Decision | None:
    permissions = config.permissions
    if matches_pattern(tool_name, permissions.auto_deny):
        return "deny"
    if matches_pattern(tool_name, permissions.auto_ask):
        return "ask"
    if matches_pattern(tool_name, permissions.auto_allow):
        return "allow"
    return None


def handle(ctx: HookContext, config: ToolkitConfig) -> HandlerResult | None:
    if not ctx.tool_name:
        return None
    decision = resolve_permission(ctx.tool_name, config)
    if decision is None:
        return None
    output = {"decision": decision, "message": MESSAGES[decision].format(tool=ctx.tool_name)}
    return HandlerResult(stdout=json.dumps(output))
