"""
Security Headers Middleware for the JSON API

Every response gets anti-framing, no-sniff and referrer headers plus a CSP that
allows nothing (the API never serves HTML). HSTS is added in production.

Caching: public catalog reads may be cached by browsers for the catalog cache
TTL; carts, drafts, bookings and admin data are per-user and are never stored.
"""

import logging
import os
from typing import Callable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from .config import CATALOG_CACHE_TTL

logger = logging.getLogger(__name__)

IS_PRODUCTION = os.getenv("ENVIRONMENT", "development").lower() == "production"

CSP_POLICY = "default-src 'none'; frame-ancestors 'none'; base-uri 'none'; form-action 'none'"

PUBLIC_PREFIXES = ("/catalog", "/coupons")
NO_STORE = "no-store, no-cache, must-revalidate"


def base_headers(production: bool = IS_PRODUCTION) -> dict[str, str]:
    headers = {
        "X-Frame-Options": "DENY",
        "X-Content-Type-Options": "nosniff",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "Content-Security-Policy": CSP_POLICY,
        "X-Permitted-Cross-Domain-Policies": "none",
    }
    if production:
        headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains; preload"
    return headers


def cache_control(request: Request) -> str:
    if request.method == "GET" and request.url.path.startswith(PUBLIC_PREFIXES):
        return f"public, max-age={CATALOG_CACHE_TTL}"
    return NO_STORE


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds security and cache headers to API responses"""

    def __init__(self, app, exclude_paths: Optional[list[str]] = None):
        super().__init__(app)
        self.exclude_paths = tuple(exclude_paths or ())
        self.headers = base_headers()
        logger.debug(f"🔒 Security headers enabled (HSTS: {IS_PRODUCTION}, excluded: {self.exclude_paths})")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        if request.url.path.startswith(self.exclude_paths):
            return response

        response.headers.update(self.headers)
        if response.status_code < 400:
            response.headers.setdefault("Cache-Control", cache_control(request))
        else:
            response.headers["Cache-Control"] = NO_STORE
        return response
