"""
Webhook Notifications.

POSTs a small JSON document for configured events. Non-blocking: the request
runs on a background thread with a 5 second timeout and failures are only
logged.

Loopback, link-local and private-range hosts are refused.
"""

from __future__ import annotations

import json
import logging
import re
import threading
import urllib.error
import urllib.request
from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlparse

from hooktoolkit.hooks.schemas import HookContext
from hooktoolkit.lib.config import ToolkitConfig
from hooktoolkit.lib.guard_result import HandlerResult

logger = logging.getLogger(__name__)

WEBHOOK_TIMEOUT_SECONDS = 5

ALLOWED_SCHEMES = ("http", "https")

BLOCKED_HOST_PATTERNS = (
    re.compile(r"^localhost$", re.IGNORECASE),
    re.compile(r"^127\.\d{1,3}\.\d{1,3}\.\d{1,3}$"),
    re.compile(r"^0\.0\.0\.0$"),
    re.compile(r"^\[?::1\]?$"),
    re.compile(r"^169\.254\.\d{1,3}\.\d{1,3}$"),
    re.compile(r"^10\.\d{1,3}\.\d{1,3}\.\d{1,3}$"),
    re.compile(r"^172\.(1[6-9]|2\d|3[01])\.\d{1,3}\.\d{1,3}$"),
    re.compile(r"^192\.168\.\d{1,3}\.\d{1,3}$"),
)


def is_webhook_url_safe(raw_url: str) -> bool:
    try:
        parsed = urlparse(raw_url)
        hostname = parsed.hostname
    except ValueError:
        return False
    if parsed.scheme not in ALLOWED_SCHEMES or not hostname:
        return False
    return not any(pattern.match(hostname) for pattern in BLOCKED_HOST_PATTERNS)


def build_payload(ctx: HookContext, include_full_input: bool) -> dict[str, Any]:
    body: dict[str, Any] = {
        "hookType": str(ctx.hook_event),
        "timestamp": datetime.now(UTC).isoformat(),
        "session_id": ctx.session_id,
    }
    if include_full_input:
        body["data"] = ctx.raw_input
    return body


def _post_sync(url: str, body: dict[str, Any]) -> bool:
    """
    Synchronous POST. Internal use only - use send_webhook() for non-blocking calls.
    """
    data = json.dumps(body, default=str).encode("utf-8")
    req = urllib.request.Request(
        url, data=data, headers={"Content-Type": "application/json"}, method="POST"
    )
    try:
        with urllib.request.urlopen(req, timeout=WEBHOOK_TIMEOUT_SECONDS) as response:
            logger.debug("Webhook delivered: %s", response.status)
            return True
    except (urllib.error.URLError, OSError) as e:
        logger.warning("Webhook delivery failed: %s", e)
        return False


def send_webhook(ctx: HookContext, config: ToolkitConfig) -> threading.Thread | None:
    """Start delivery on a background thread; None when nothing is sent.

    The thread is not a daemon so the short-lived hook process waits for the
    request (bounded by the timeout) before exiting.
    """
    settings = config.webhooks
    if not settings.enabled or not settings.url or ctx.hook_event not in settings.events:
        return None
    if not is_webhook_url_safe(settings.url):
        logger.warning("Refusing webhook URL %s", settings.url)
        return None

    if urlparse(settings.url).scheme == "http" and settings.include_full_input:
        logger.warning(
            "Webhook uses HTTP with includeFullInput enabled; data is sent in plaintext"
        )

    thread = threading.Thread(
        target=_post_sync,
        args=(settings.url, build_payload(ctx, settings.include_full_input)),
        daemon=False,
    )
    thread.start()
    return thread


def handle(ctx: HookContext, config: ToolkitConfig) -> HandlerResult | None:
    send_webhook(ctx, config)
    return None
