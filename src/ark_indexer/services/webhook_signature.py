"""HMAC signature validation for transfer webhooks.

Producers sign the raw request body with the shared ``WEBHOOK_SECRET`` and
send the hex digest in the ``X-Ark-Signature`` header.
"""

import hashlib
import hmac


def compute_signature(raw_body: bytes, signing_key: str) -> str:
    """Hex-encoded HMAC-SHA256 of ``raw_body``."""
    return hmac.new(
        key=signing_key.encode("utf-8"), msg=raw_body, digestmod=hashlib.sha256
    ).hexdigest()


def validate_signature(raw_body: bytes, signature: str, signing_key: str) -> bool:
    """Validate a webhook signature using HMAC-SHA256.

    Args:
        raw_body: Raw request body bytes, exactly as received
        signature: Hex digest from the X-Ark-Signature header (any case)
        signing_key: Shared webhook secret

    Returns:
        True if the signature matches, False otherwise
    """
    if not signing_key:
        return False

    expected = compute_signature(raw_body, signing_key)

    # Constant-time comparison
    return hmac.compare_digest(expected.lower(), signature.lower())
