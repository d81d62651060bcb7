"""Webhook payload verification."""

import hashlib
import hmac


def verify(signature: str, payload: str, key: str) -> bool:
    """
    Check the signature sent along with a webhook payload.

    Args:
        signature: Hex signature from the request header
        payload: Raw request body
        key: Webhook encryption key

    Returns:
        True if the signature matches the payload
    """
    expected = hmac.new(
        key.encode('utf-8'),
        payload.encode('utf-8'),
        hashlib.sha256
    ).hexdigest()
    return hmac.compare_digest(expected, signature)
