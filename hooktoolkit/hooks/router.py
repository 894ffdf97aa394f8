#!/usr/bin/env python3
"""
Hook Router.

One process per host event: read the JSON payload from stdin, normalize it,
resolve the configuration, run the enabled features for the event in
(priority, name) order, and write a single decision for the host.

Architecture:
- Features are looked up in the FeatureRegistry and imported lazily.
- Features return HandlerResult objects (or None); JSON is produced only at
  final output.
- The first non-zero exit code stops the pipeline.
"""

import argparse
import json
import logging
import os
import selectors
import sys
import time
from typing import IO, Any

from hooktoolkit.hooks.feature_registry import FeatureRegistry, get_registry
from hooktoolkit.hooks.output_formatter import (
    exit_code_for,
    format_output,
    parse_stdout_object,
    stderr_for,
)
from hooktoolkit.hooks.schemas import (
    AggregatedResult,
    FeatureError,
    HookContext,
    HookEvent,
    StdinParseError,
)
from hooktoolkit.lib import config as config_module
from hooktoolkit.lib.config import ToolkitConfig
from hooktoolkit.lib.guard_result import ExitCode
from hooktoolkit.lib.session_paths import sanitize_session_id

logger = logging.getLogger(__name__)

# --- Configuration ---

MAX_STDIN_BYTES = 10 * 1024 * 1024

STDIN_TIMEOUT_SECONDS = 5

READ_CHUNK_BYTES = 64 * 1024

CONTEXT_SEPARATOR = "\n\n---\n\n"

# Alternate (VS Code) wire keys -> internal snake_case keys
CAMEL_TO_SNAKE_KEYS = {
    "sessionId": "session_id",
    "hookEventName": "hook_event_name",
    "toolName": "tool_name",
    "toolInput": "tool_input",
    "toolResponse": "tool_response",
    "transcriptPath": "transcript_path",
}


# --- Input ---


def _read_stream(stream: IO[str]) -> str:
    try:
        return stream.read(MAX_STDIN_BYTES + 1)
    except (OSError, ValueError) as e:
        raise StdinParseError(f"Failed to read stdin: {e}") from e


def _read_with_deadline(stream: IO[str], timeout: float) -> str:
    """Read up to MAX_STDIN_BYTES + 1 bytes, giving up after ``timeout`` seconds.

    Pipes are polled with a selector so a host that never closes stdin cannot
    hang the process. Streams without a pollable descriptor (regular files,
    in-memory streams) always reach EOF and are read directly.
    """
    try:
        fd = stream.fileno()
    except (OSError, ValueError):
        return _read_stream(stream)

    deadline = time.monotonic() + timeout
    chunks: list[bytes] = []
    size = 0
    with selectors.DefaultSelector() as selector:
        try:
            selector.register(fd, selectors.EVENT_READ)
        except (OSError, ValueError):
            return _read_stream(stream)

        while size <= MAX_STDIN_BYTES:
            remaining = deadline - time.monotonic()
            if remaining <= 0 or not selector.select(remaining):
                raise StdinParseError(f"Stdin read timed out after {timeout:g} seconds")
            try:
                chunk = os.read(fd, READ_CHUNK_BYTES)
            except OSError as e:
                raise StdinParseError(f"Failed to read stdin: {e}") from e
            if not chunk:
                break
            chunks.append(chunk)
            size += len(chunk)

    return b"".join(chunks).decode("utf-8", errors="replace")


def read_stdin(
    stream: IO[str] | None = None, timeout: float = STDIN_TIMEOUT_SECONDS
) -> dict[str, Any]:
    """Read exactly one JSON object from stdin.

    Raises:
        StdinParseError: TTY stdin, a read that fails or does not finish
            within ``timeout`` seconds, empty or oversized input, invalid
            JSON, or a JSON value that is not an object.
    """
    stream = stream if stream is not None else sys.stdin
    if stream.isatty():
        raise StdinParseError("No piped input available (stdin is a TTY)")

    data = _read_with_deadline(stream, timeout)
    if len(data.encode("utf-8", errors="replace")) > MAX_STDIN_BYTES:
        raise StdinParseError(
            f"Stdin payload exceeds {MAX_STDIN_BYTES // (1024 * 1024)} MB limit"
        )

    data = data.replace("\r\n", "\n").strip()
    if not data:
        raise StdinParseError("Empty input received on stdin")

    try:
        parsed = json.loads(data)
    except json.JSONDecodeError as e:
        raise StdinParseError(f"Failed to parse stdin as JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise StdinParseError("Stdin input must be a JSON object")
    return parsed


def is_vscode_format(raw_input: dict[str, Any]) -> bool:
    """The alternate host sends camelCase ``sessionId`` and no ``session_id``."""
    return "sessionId" in raw_input and "session_id" not in raw_input


def merge_stdout(context_parts: list[str], last_raw_stdout: str) -> str:
    """Combine feature stdout into one document.

    Non-JSON stdout is passed through (last writer wins). When features
    contributed ``additionalContext``, the last JSON object is kept and its
    context replaced by all contexts joined in execution order.
    """
    if not context_parts:
        return last_raw_stdout

    merged = dict(parse_stdout_object(last_raw_stdout) or {})
    merged["additionalContext"] = CONTEXT_SEPARATOR.join(context_parts)
    return json.dumps(merged)


# --- Router Logic ---


class HookRouter:
    def __init__(self, registry: FeatureRegistry | None = None):
        self.registry = registry or get_registry()

    @staticmethod
    def _normalize_json_field(value: Any) -> Any:
        """Normalize a field that may be a JSON string to its parsed form."""
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                return value
        return value

    def normalize_input(self, raw_input: dict[str, Any], event: HookEvent | str) -> HookContext:
        """Create a normalized HookContext from either host wire shape."""
        if is_vscode_format(raw_input):
            raw_input = {CAMEL_TO_SNAKE_KEYS.get(k, k): v for k, v in raw_input.items()}

        session_id = raw_input.get("session_id")
        if not isinstance(session_id, str) or not session_id:
            session_id = "unknown"

        tool_input = self._normalize_json_field(raw_input.get("tool_input", {}))
        if not isinstance(tool_input, dict):
            tool_input = {}

        tool_output = raw_input.get("tool_response")
        if tool_output is None:
            tool_output = raw_input.get("tool_output", raw_input.get("tool_result"))

        def text(key: str) -> str | None:
            value = raw_input.get(key)
            return value if isinstance(value, str) else None

        return HookContext(
            session_id=sanitize_session_id(session_id),
            hook_event=HookEvent(event),
            tool_name=text("tool_name"),
            tool_input=tool_input,
            tool_output=self._normalize_json_field(tool_output),
            error=text("error"),
            prompt=text("prompt"),
            message=text("message"),
            transcript_path=text("transcript_path"),
            cwd=text("cwd"),
            trigger=text("trigger"),
            source=text("source"),
            agent_id=text("agent_id"),
            raw_input=raw_input,
        )

    def execute_hooks(self, ctx: HookContext, config: ToolkitConfig) -> AggregatedResult:
        """Run every enabled feature for the event and aggregate the results.

        Raises:
            FeatureError: a feature declared ``on_error="raise"`` failed.
        """
        result = AggregatedResult()
        context_parts: list[str] = []
        last_raw_stdout = ""

        for descriptor in self.registry.enabled_for(ctx.hook_event, config):
            start_time = time.monotonic()
            try:
                handler = self.registry.load(descriptor)
                handler_result = handler(ctx, config)
            except Exception as e:
                if descriptor.on_error == "raise":
                    raise FeatureError(descriptor.name, e) from e
                error_msg = f"Feature '{descriptor.name}' failed: {e}"
                logger.warning(error_msg)
                result.metadata.setdefault("errors", []).append(error_msg)
                continue
            finally:
                duration = time.monotonic() - start_time
                result.metadata.setdefault("feature_times", {})[descriptor.name] = duration

            if handler_result is None:
                continue

            if handler_result.stdout:
                parsed = parse_stdout_object(handler_result.stdout)
                if parsed and parsed.get("additionalContext"):
                    context_parts.append(str(parsed["additionalContext"]))
                last_raw_stdout = handler_result.stdout
            if handler_result.stderr:
                result.stderr += handler_result.stderr
            result.exit_code = int(handler_result.exit_code)

            if handler_result.exit_code != ExitCode.PROCEED:
                result.blocked_by = descriptor.name
                logger.debug("Feature '%s' stopped the pipeline", descriptor.name)
                break

        result.stdout = merge_stdout(context_parts, last_raw_stdout)
        return result


# --- Main Entry Point ---


def configure_logging(verbose: bool) -> None:
    """Send diagnostics to stderr; stdout is reserved for the host protocol."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
        force=True,
    )


def run(
    event: HookEvent | str,
    raw_input: dict[str, Any],
    config: ToolkitConfig,
    router: HookRouter | None = None,
) -> tuple[str, str, int]:
    """Process one event. Returns (stdout, stderr, exit_code)."""
    router = router or HookRouter()
    use_alternate = is_vscode_format(raw_input)
    ctx = router.normalize_input(raw_input, event)
    result = router.execute_hooks(ctx, config)

    logger.debug(
        "%s: exit=%d blocked_by=%s times=%s",
        ctx.hook_event,
        result.exit_code,
        result.blocked_by,
        result.metadata.get("feature_times"),
    )
    return (
        format_output(ctx.hook_event, result, use_alternate),
        stderr_for(result, use_alternate),
        exit_code_for(result),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hooktoolkit", description="Run the enabled hook features for one host event"
    )
    parser.add_argument("event", choices=[e.value for e in HookEvent], help="Hook event name")
    parser.add_argument("--config", help="Path to a claude-hooks.config.json file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log diagnostics to stderr")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        raw_input = read_stdin()
    except StdinParseError as e:
        print(f"[{args.event}] {e}", file=sys.stderr)
        sys.exit(ExitCode.ERROR)

    config = config_module.resolve(args.config)

    try:
        stdout, stderr, exit_code = run(args.event, raw_input, config)
    except FeatureError as e:
        print(f"[{args.event}] Handler error: {e}", file=sys.stderr)
        sys.exit(ExitCode.ERROR)

    if stdout:
        sys.stdout.write(stdout)
    if stderr:
        sys.stderr.write(stderr)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
