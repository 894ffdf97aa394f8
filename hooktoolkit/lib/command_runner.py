"""Run an external validator command and classify the outcome."""

import logging
import re
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

COMMAND_NOT_FOUND_EXIT = 127

_NOT_FOUND_RE = re.compile(r"not found|not recognized", re.IGNORECASE)


@dataclass(frozen=True)
class ValidatorResult:
    passed: bool
    output: str
    command: str = ""
    exit_code: int = 0

    @classmethod
    def skipped(cls, reason: str, command: str = "") -> "ValidatorResult":
        return cls(passed=True, output=reason, command=command)


def run_validator_command(
    command: str,
    extra_args: list[str] | None = None,
    timeout: float = 60,
    cwd: Path | None = None,
    unavailable_message: str = "Validator not available",
    failure_message: str = "Validation failed",
) -> ValidatorResult:
    """Run ``command`` (plus ``extra_args``) and report pass/fail.

    A missing executable counts as a pass: validators degrade to no-ops on
    machines without the tool installed.
    """
    argv = shlex.split(command) + list(extra_args or [])
    if not argv:
        return ValidatorResult.skipped("No command configured")
    display = shlex.join(argv)

    try:
        proc = subprocess.run(
            argv, capture_output=True, text=True, timeout=timeout, cwd=cwd, stdin=subprocess.DEVNULL
        )
    except FileNotFoundError:
        logger.debug("%s: executable not found", display)
        return ValidatorResult.skipped(unavailable_message, display)
    except subprocess.TimeoutExpired:
        return ValidatorResult(
            passed=False,
            output=f"{display} timed out after {timeout:g}s",
            command=display,
            exit_code=1,
        )

    if proc.returncode == 0:
        return ValidatorResult(passed=True, output=proc.stdout.strip(), command=display)

    if proc.returncode == COMMAND_NOT_FOUND_EXIT or _NOT_FOUND_RE.search(proc.stderr or ""):
        return ValidatorResult.skipped(unavailable_message, display)

    output = "\n".join(part for part in (proc.stdout, proc.stderr) if part).strip()
    return ValidatorResult(
        passed=False,
        output=output or failure_message,
        command=display,
        exit_code=proc.returncode,
    )
