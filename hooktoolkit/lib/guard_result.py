"""Guard outcomes and the process-level result they map onto."""

import json
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any


class ExitCode(IntEnum):
    """Process exit codes understood by the host."""

    PROCEED = 0
    ERROR = 1
    BLOCK = 2


@dataclass(frozen=True)
class HandlerResult:
    """What a feature handler hands back to the pipeline.

    A handler returns None to proceed silently.
    """

    exit_code: int = ExitCode.PROCEED
    stdout: str | None = None
    stderr: str | None = None


class GuardAction(Enum):
    """Outcome of a guard check."""

    PROCEED = "proceed"
    WARN = "warn"
    BLOCK = "block"


@dataclass
class GuardResult:
    """Provider-agnostic result of a policy check."""

    action: GuardAction
    message: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def proceed(cls, details: dict[str, Any] | None = None) -> "GuardResult":
        """Factory method for PROCEED."""
        return cls(action=GuardAction.PROCEED, details=details or {})

    @classmethod
    def warn(cls, message: str, details: dict[str, Any] | None = None) -> "GuardResult":
        """Factory method for WARN."""
        return cls(action=GuardAction.WARN, message=message, details=details or {})

    @classmethod
    def block(cls, message: str, details: dict[str, Any] | None = None) -> "GuardResult":
        """Factory method for BLOCK."""
        return cls(action=GuardAction.BLOCK, message=message, details=details or {})

    @property
    def blocked(self) -> bool:
        return self.action is GuardAction.BLOCK

    def to_handler_result(self, fallback_message: str) -> HandlerResult | None:
        """Convert to the process-level signal.

        - block: exit 2, message on stderr
        - warn: exit 0, message on stderr and as ``additionalContext`` on stdout
        - proceed: None
        """
        message = self.message or fallback_message
        if self.action is GuardAction.BLOCK:
            return HandlerResult(exit_code=ExitCode.BLOCK, stderr=message)
        if self.action is GuardAction.WARN:
            return HandlerResult(
                exit_code=ExitCode.PROCEED,
                stderr=message,
                stdout=json.dumps({"additionalContext": message}),
            )
        return None

    def to_json(self) -> dict[str, Any]:
        """Serialize to canonical JSON format."""
        return {
            "action": self.action.value,
            "message": self.message,
            "details": self.details,
        }
