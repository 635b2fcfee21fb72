"""
Webhook Security Module

Signature verification for the hosted checkout's payment callback:
- Constant-time signature comparison
- Timestamp validation against replays
- Raw body is verified before it is parsed
"""

import hashlib
import hmac
import logging
import time
from typing import Optional

from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

# Maximum age of webhook in seconds (5 minutes)
MAX_WEBHOOK_AGE_SECONDS = 300

SIGNATURE_HEADER = "X-Payment-Signature"
TIMESTAMP_HEADER = "X-Payment-Timestamp"


def constant_time_compare(a: str, b: str) -> bool:
    """Compare two strings in constant time"""
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)


def compute_hmac_sha256(secret: str, payload: bytes) -> str:
    """Compute HMAC-SHA256 signature of payload"""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def sign_payment_callback(secret: str, timestamp: str, body: bytes) -> str:
    """Signature over "<timestamp>.<raw body>" as sent by the checkout provider"""
    return compute_hmac_sha256(secret, timestamp.encode("utf-8") + b"." + body)


def verify_timestamp(timestamp: Optional[str], max_age: int = MAX_WEBHOOK_AGE_SECONDS) -> bool:
    """Reject callbacks older (or newer) than max_age seconds"""
    if not timestamp:
        return False

    try:
        webhook_time = int(timestamp)
    except (ValueError, TypeError):
        logger.warning(f"🚫 Invalid webhook timestamp format: {timestamp}")
        return False

    age = abs(int(time.time()) - webhook_time)
    if age > max_age:
        logger.warning(f"🚫 Webhook timestamp too old: {age}s (max: {max_age}s)")
        return False
    return True


async def verify_payment_callback(request: Request, secret: Optional[str]) -> bytes:
    """
    Verify the payment callback signature and return the raw body.

    Raises:
        HTTPException: 500 when the secret is not configured, 401 on a bad signature
    """
    if not secret:
        logger.error("❌ PAYMENT_WEBHOOK_SECRET not configured")
        raise HTTPException(status_code=500, detail="Payment callback not configured")

    body = await request.body()
    timestamp = request.headers.get(TIMESTAMP_HEADER)
    signature = request.headers.get(SIGNATURE_HEADER, "")

    if not verify_timestamp(timestamp):
        raise HTTPException(status_code=401, detail="Invalid webhook timestamp")

    expected = sign_payment_callback(secret, timestamp, body)
    if not constant_time_compare(signature, expected):
        logger.warning("🚫 Payment callback signature mismatch")
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    logger.debug("✅ Payment callback signature verified")
    return body
