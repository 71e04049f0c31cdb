from __future__ import annotations

from cachetools import TTLCache
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, RedirectResponse
from loguru import logger

from backoffice.auth import Principal
from backoffice.config import settings
from backoffice.errors import UpstreamError, UpstreamHTTPError
from backoffice.services.upstream_client import AUTH, UpstreamClient


AUTH_EXEMPT_PATHS = {'/login', '/robots.txt', '/healthz'}
AUTH_EXEMPT_PREFIXES = ('/static/',)

_PRINCIPAL_CACHE: TTLCache[str, Principal] = TTLCache(maxsize=1024, ttl=settings.principal_cache_ttl_seconds)


def is_exempt(path: str) -> bool:
    return path in AUTH_EXEMPT_PATHS or path.startswith(AUTH_EXEMPT_PREFIXES)


def fetch_principal(token: str) -> Principal | None:
    try:
        data = UpstreamClient(token).get(settings.principal_path, base=AUTH) or {}
    except UpstreamHTTPError as exc:
        if exc.status in {401, 403}:
            return None
        raise
    username = data.get('username')
    if not username:
        return None
    return Principal(username=username, permissions=frozenset(data.get('permissions') or []), token=token)


def load_principal_from_token(token: str | None) -> Principal | None:
    if not token:
        return None
    principal = _PRINCIPAL_CACHE.get(token)
    if principal is not None:
        return principal
    principal = fetch_principal(token)
    if principal is not None:
        _PRINCIPAL_CACHE[token] = principal
    return principal


def install_auth_session_middleware(app: FastAPI) -> None:
    @app.middleware('http')
    async def auth_session_middleware(request: Request, call_next):
        request.state.principal = None
        if is_exempt(request.url.path):
            return await call_next(request)

        token = request.cookies.get(settings.session_cookie_name)
        try:
            request.state.principal = load_principal_from_token(token)
        except UpstreamError as exc:
            logger.warning('Could not resolve session: {}', exc)
            return PlainTextResponse('Authentication service unavailable', status_code=503)

        if request.state.principal is None:
            return RedirectResponse('/login', status_code=303)

        return await call_next(request)
