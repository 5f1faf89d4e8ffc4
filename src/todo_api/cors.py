"""
Cross-origin allow-list.

Browsers send an ``Origin`` header on cross-origin calls. A request is let
through when the origin is missing (same-origin tools, curl), matches one of
the exact origins, or is an http(s) origin whose host ends with one of the
configured suffixes (hosting platforms that hand out per-deploy subdomains).
Same-origin requests from pages the app serves itself also pass. Everything
else is rejected before routing.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence
from urllib.parse import urlsplit

from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send


def _normalize_suffix(suffix: str) -> str:
    s = suffix.strip().lower()
    return s if s.startswith(".") else f".{s}"


# PUBLIC_INTERFACE
def is_origin_allowed(
    origin: Optional[str],
    exact: Iterable[str] = (),
    suffixes: Iterable[str] = (),
) -> bool:
    """Return True when `origin` may call the API."""
    if origin is None:
        return True
    if origin in set(exact):
        return True

    parts = urlsplit(origin)
    if parts.scheme not in {"http", "https"} or not parts.hostname:
        return False
    host = parts.hostname.lower()
    return any(host.endswith(_normalize_suffix(s)) for s in suffixes if s.strip())


def _is_same_origin(origin: Optional[str], scope: Scope, headers: Headers) -> bool:
    # Browsers also send Origin on same-origin writes from a page this app serves.
    host = headers.get("host")
    if origin is None or not host:
        return False
    return origin.lower() == f"{scope.get('scheme', 'http')}://{host}".lower()


class AllowListCORSMiddleware(CORSMiddleware):
    """
    CORSMiddleware driven by `is_origin_allowed`.

    Requests from a disallowed origin are answered with 403 and never reach a
    handler; allowed origins are mirrored back with credentials enabled.
    """

    def __init__(
        self,
        app: ASGIApp,
        exact_origins: Sequence[str] = (),
        origin_suffixes: Sequence[str] = (),
    ) -> None:
        super().__init__(
            app,
            allow_origins=(),
            allow_methods=["*"],
            allow_headers=["*"],
            allow_credentials=True,
        )
        self.exact_origins = list(exact_origins)
        self.origin_suffixes = list(origin_suffixes)

    def is_allowed_origin(self, origin: str) -> bool:
        return is_origin_allowed(origin, self.exact_origins, self.origin_suffixes)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            headers = Headers(scope=scope)
            origin = headers.get("origin")
            if not self.is_allowed_origin(origin=origin) and not _is_same_origin(origin, scope, headers):
                response = JSONResponse(status_code=403, content={"error": "Origin not allowed"})
                await response(scope, receive, send)
                return
        await super().__call__(scope, receive, send)
