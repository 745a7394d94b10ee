"""Inbound API-key check for the inspection routes."""

from __future__ import annotations

import hmac

from fastapi import HTTPException, Request

from .config import settings


def _extract_token(request: Request) -> str:
    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip()
    return request.headers.get("x-api-key", "").strip()


def require_routes_api_key(request: Request) -> None:
    """Enforce the routes key when configured.

    With no key configured the routes are open, unless the deployment is
    production or fail-closed, in which case they are refused outright.
    """
    expected = settings.routes_api_key.strip()
    if not expected:
        if settings.is_production or settings.security_fail_closed:
            raise HTTPException(status_code=503, detail="Routes API key is not configured")
        return

    provided = _extract_token(request)
    if not provided or not hmac.compare_digest(provided, expected):
        raise HTTPException(status_code=401, detail="Invalid API key")
