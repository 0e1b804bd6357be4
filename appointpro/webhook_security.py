"""
Webhook Security Module

Signature verification for inbound payment webhooks:
- HMAC-SHA256 over the raw request body
- Constant-time signature comparison
"""

import hashlib
import hmac
import logging
from typing import Optional

from fastapi import Request

from .shared.errors import AuthenticationError

logger = logging.getLogger(__name__)

ZIINA_SIGNATURE_HEADERS = ("x-hmac-signature", "x-ziina-signature")


def constant_time_compare(a: str, b: str) -> bool:
    """Compare two strings in constant time"""
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)


def compute_hmac_sha256(secret: str, payload: bytes) -> str:
    """Compute HMAC-SHA256 signature of payload as lowercase hex"""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def _received_signature(request: Request) -> Optional[str]:
    for header in ZIINA_SIGNATURE_HEADERS:
        value = request.headers.get(header)
        if value:
            value = value.strip()
            # Accept an optional "sha256=" prefix
            return value[7:] if value.lower().startswith("sha256=") else value
    return None


async def verify_ziina_webhook(request: Request, secret: Optional[str]) -> bytes:
    """
    Verify a Ziina webhook when a secret is configured.

    Returns:
        The raw request body

    Raises:
        AuthenticationError: If a secret is configured and the signature is missing or wrong
    """
    raw_body = await request.body()

    if not secret:
        logger.debug("Ziina webhook secret not configured - skipping signature verification")
        return raw_body

    signature = _received_signature(request)
    if not signature:
        logger.error("❌ Missing Ziina webhook signature header")
        raise AuthenticationError("Missing webhook signature", error_code="INVALID_SIGNATURE")

    expected = compute_hmac_sha256(secret, raw_body)
    if not constant_time_compare(expected, signature.lower()):
        logger.warning(f"🚫 Ziina webhook signature mismatch (body {len(raw_body)} bytes)")
        raise AuthenticationError("Invalid webhook signature", error_code="INVALID_SIGNATURE")

    logger.info("✅ Ziina webhook signature verified")
    return raw_body
