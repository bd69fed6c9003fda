"""GitHub webhook signature verification.

The webhook secret is shared between GitHub and this service; it must
never be logged or exposed. Verification is a pure function of the raw
body, the X-Hub-Signature-256 header and the secret. Callers own logging.

Signature format, as specified by GitHub:
https://docs.github.com/en/webhooks/using-webhooks/validating-webhook-deliveries
"""

import hashlib
import hmac
from typing import Optional

SIGNATURE_PREFIX = "sha256="

MISSING = "missing"
MISMATCH = "mismatch"


def compute_signature(payload_body: bytes, secret: str) -> str:
    """Return the X-Hub-Signature-256 value GitHub would send for this body."""
    digest = hmac.new(
        secret.encode("utf-8"),
        payload_body,
        hashlib.sha256,
    ).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def signature_failure_reason(
    payload_body: bytes,
    signature_header: Optional[str],
    secret: str,
) -> Optional[str]:
    """Classify a verification attempt.

    Returns:
        None when the signature is valid, MISSING when the header is absent
        or empty, MISMATCH for anything else.
    """
    if not signature_header:
        return MISSING

    expected = compute_signature(payload_body, secret).encode("ascii")
    try:
        received = signature_header.encode("ascii")
    except UnicodeEncodeError:
        return MISMATCH

    # compare_digest accepts unequal lengths, but the result is only
    # constant-time for equal-length inputs; short-circuit explicitly.
    if len(received) != len(expected):
        return MISMATCH

    if not hmac.compare_digest(expected, received):
        return MISMATCH
    return None


def verify_signature(
    payload_body: bytes,
    signature_header: Optional[str],
    secret: str,
) -> bool:
    """Verify that a webhook payload was signed by GitHub.

    Args:
        payload_body: Raw request body bytes, exactly as received.
        signature_header: Value of the X-Hub-Signature-256 header.
        secret: The shared webhook secret.

    Returns:
        True if the signature is valid, False otherwise. Never raises for
        malformed or wrong-length headers.
    """
    return signature_failure_reason(payload_body, signature_header, secret) is None
