"""
Request verification for webhook and API callers.

Platform webhooks are signed with an HMAC of the raw body; the on-demand
API is protected with a shared key header.
"""

import base64
import hashlib
import hmac
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from letterpress.config import Settings, get_settings

logger = logging.getLogger(__name__)


def compute_webhook_hmac(body: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


async def verify_shopify_webhook(
    request: Request,
    x_shopify_hmac_sha256: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> bytes:
    """
    Verify the X-Shopify-Hmac-Sha256 header and return the raw body.

    Raises:
        HTTPException: 401 if the secret is not configured or the signature
            does not match.
    """
    body = await request.body()

    if not settings.shopify_api_secret:
        logger.warning("SHOPIFY_API_SECRET is not configured; rejecting webhook")
        raise HTTPException(status_code=401, detail="Webhook secret not configured")

    expected = compute_webhook_hmac(body, settings.shopify_api_secret)
    if not x_shopify_hmac_sha256 or not hmac.compare_digest(expected, x_shopify_hmac_sha256):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    return body


async def verify_api_key(
    x_api_key: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Verify the X-Api-Key header against LETTERS_API_KEY.

    Raises:
        HTTPException: 401 if the key is not configured, missing, or wrong.
    """
    if not settings.letters_api_key:
        logger.warning("LETTERS_API_KEY is not configured; rejecting request")
        raise HTTPException(status_code=401, detail="API key not configured")

    if not x_api_key or not hmac.compare_digest(x_api_key, settings.letters_api_key):
        raise HTTPException(status_code=401, detail="Invalid API key")
