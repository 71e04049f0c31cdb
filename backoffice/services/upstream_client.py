from __future__ import annotations

import http.client
import json
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from bs4 import BeautifulSoup
from loguru import logger

from backoffice.config import settings
from backoffice.errors import CsrfTokenError, UpstreamError, UpstreamHTTPError

API = 'api'
AUTH = 'auth'


def extract_csrf_token(html: str) -> str:
    soup = BeautifulSoup(html or '', 'html.parser')
    field = soup.find('input', attrs={'name': '_csrf'})
    if field is None:
        raise CsrfTokenError('CSRF token input field not found')
    token = (field.get('value') or '').strip()
    if not token:
        raise CsrfTokenError('CSRF token value is empty')
    return token


class UpstreamClient:
    """JSON client for the data backend and the auth service.

    One instance serves one console session: it forwards that session's
    cookie and remembers the last CSRF token scraped from the auth service.
    """

    def __init__(self, session_token: str | None = None, *, timeout: int | None = None) -> None:
        self.session_token = session_token
        self.csrf_token: str | None = None
        self.timeout = timeout or settings.upstream_timeout_seconds

    def _url(self, base: str, path: str, params: dict | None) -> str:
        root = settings.auth_base_url_normalized if base == AUTH else settings.api_base_url_normalized
        url = f'{root}{path}'
        query = {key: value for key, value in (params or {}).items() if value is not None}
        if query:
            url = f'{url}?{urlencode(query)}'
        return url

    def _headers(self, base: str, *, accept: str) -> dict[str, str]:
        headers = {'Accept': accept}
        if base == API:
            headers['X-TenantID'] = settings.tenant_id
        if self.session_token:
            headers['Cookie'] = f'{settings.session_cookie_name}={self.session_token}'
        if base == AUTH and self.csrf_token:
            headers['x-csrf-token'] = self.csrf_token
        return headers

    def _send(self, req: Request, path: str) -> bytes:
        logger.debug('{} {}', req.get_method(), req.full_url)
        try:
            with urlopen(req, timeout=self.timeout) as response:
                return response.read()
        except HTTPError as exc:
            body = exc.read().decode('utf-8', errors='ignore') if exc.fp else ''
            logger.warning('Upstream {} {} failed with {}', req.get_method(), path, exc.code)
            raise UpstreamHTTPError(exc.code, path, body) from exc
        except URLError as exc:
            logger.warning('Upstream {} {} unreachable: {}', req.get_method(), path, exc.reason)
            raise UpstreamError(f'Upstream network error on {path}: {exc.reason}') from exc
        except TimeoutError as exc:
            logger.warning('Upstream {} {} timed out', req.get_method(), path)
            raise UpstreamError(f'Upstream timeout on {path}') from exc
        except (http.client.HTTPException, OSError) as exc:
            logger.warning('Upstream {} {} dropped: {!r}', req.get_method(), path, exc)
            raise UpstreamError(f'Upstream connection failed on {path}') from exc

    def request(
        self,
        method: str,
        path: str,
        *,
        base: str = API,
        params: dict | None = None,
        payload: Any = None,
    ) -> Any:
        headers = self._headers(base, accept='application/json')
        data = None
        if payload is not None:
            headers['Content-Type'] = 'application/json'
            data = json.dumps(payload).encode('utf-8')
        req = Request(url=self._url(base, path, params), data=data, headers=headers, method=method)
        raw = self._send(req, path)
        if not raw.strip():
            return None
        try:
            return json.loads(raw.decode('utf-8'))
        except ValueError as exc:
            raise UpstreamError(f'Upstream returned invalid JSON on {path}') from exc

    def get(self, path: str, **kwargs: Any) -> Any:
        return self.request('GET', path, **kwargs)

    def post(self, path: str, payload: Any = None, **kwargs: Any) -> Any:
        return self.request('POST', path, payload=payload if payload is not None else {}, **kwargs)

    def put(self, path: str, payload: Any = None, **kwargs: Any) -> Any:
        return self.request('PUT', path, payload=payload if payload is not None else {}, **kwargs)

    def get_text(self, path: str, *, base: str = AUTH) -> str:
        req = Request(url=self._url(base, path, None), headers=self._headers(base, accept='text/html'), method='GET')
        return self._send(req, path).decode('utf-8', errors='ignore')

    def refresh_csrf(self, scope: str) -> str:
        """Fetch a fresh CSRF token from an auth-service page before a write."""
        self.csrf_token = extract_csrf_token(self.get_text(scope))
        return self.csrf_token
