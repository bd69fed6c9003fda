"""Error reporting through the Sentry SDK.

Only active when SENTRY_DSN is set. Events pass through `_scrub_secrets`
before leaving the process: the webhook secret, the Supabase service role
key and the X-Hub-Signature-256 header of the failing delivery must never
reach Sentry.
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"

# Matched as substrings of the lower-cased key.
_SENSITIVE_FRAGMENTS = (
    "secret",
    "signature",
    "token",
    "password",
    "dsn",
    "authorization",
)

# Matched as suffixes, so "api_key" and "x-api-key" redact but "monkey" does not.
_SENSITIVE_SUFFIXES = ("_key", "-key")

_REQUEST_SECTIONS = ("data", "headers", "cookies")


def _is_sensitive(key: str) -> bool:
    lowered = key.lower()
    if lowered.endswith(_SENSITIVE_SUFFIXES):
        return True
    return any(fragment in lowered for fragment in _SENSITIVE_FRAGMENTS)


def _scrub_dict(d: dict[str, Any]) -> None:
    """Replace sensitive values in place, descending into nested dicts."""
    for key, value in d.items():
        if isinstance(key, str) and _is_sensitive(key):
            d[key] = REDACTED
        elif isinstance(value, dict):
            _scrub_dict(value)


def _scrub_secrets(event: dict[str, Any], hint: Any) -> dict[str, Any]:
    """`before_send` hook covering `extra` and the request sections."""
    extra = event.get("extra")
    if isinstance(extra, dict):
        _scrub_dict(extra)

    request = event.get("request") or {}
    for section in _REQUEST_SECTIONS:
        value = request.get(section)
        if isinstance(value, dict):
            _scrub_dict(value)
    return event


def init_sentry(dsn: str, environment: str = "development") -> None:
    if not dsn or not dsn.strip():
        logger.debug("Sentry DSN not configured, error reporting disabled")
        return

    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        integrations=[FastApiIntegration()],
        traces_sample_rate=0.1,
        send_default_pii=False,
        before_send=_scrub_secrets,
    )
    logger.info("Sentry initialised (environment=%s)", environment)
