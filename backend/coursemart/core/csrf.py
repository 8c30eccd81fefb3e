from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from coursemart.core.security import csrf_tokens_match
from coursemart.core.settings import get_settings

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "TRACE"})


def install_csrf_protection(app: FastAPI) -> None:
    """Double-submit cookie check: unsafe requests must echo the CSRF cookie in a header."""

    @app.middleware("http")
    async def _csrf_guard(request: Request, call_next):
        settings = get_settings()
        if not settings.csrf_enabled or request.method in SAFE_METHODS:
            return await call_next(request)

        cookie_token = request.cookies.get(settings.csrf_cookie_name)
        header_token = request.headers.get(settings.csrf_header_name)
        if not csrf_tokens_match(cookie_token, header_token):
            return JSONResponse({"detail": "CSRF token missing or invalid"}, status_code=status.HTTP_403_FORBIDDEN)

        return await call_next(request)
