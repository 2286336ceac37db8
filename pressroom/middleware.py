"""HTTP middleware: request IDs with an access log line, and response headers.

Rendered post HTML travels inside JSON and is never served as a page by this
API, so every response gets a deny-all CSP. Authoring responses (drafts,
previews, editor forms and every write) are additionally marked uncacheable
and unindexable so unpublished text does not leak through caches or crawlers.
"""

import logging
import re
import time
import uuid
from collections.abc import Iterable
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

# Current request ID, readable from handlers for log context
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Client-supplied IDs end up in log lines: accept only short, plain tokens
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

_SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})

CONTENT_SECURITY_POLICY = "default-src 'none'; frame-ancestors 'none'"


def current_request_id() -> str:
    return request_id_var.get() or "-"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag each request with an ID and log one line when it completes.

    A well-formed ``X-Request-ID`` header is reused; anything else is replaced
    by a fresh UUID4. The ID is echoed back on the response.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        incoming = request.headers.get("X-Request-ID", "")
        rid = incoming if _REQUEST_ID_RE.match(incoming) else str(uuid.uuid4())
        token = request_id_var.set(rid)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            logger.info(
                "%s %s -> %d in %.1f ms [%s]",
                request.method,
                request.url.path,
                response.status_code,
                (time.perf_counter() - started) * 1000,
                rid,
            )
        finally:
            request_id_var.reset(token)
        response.headers["X-Request-ID"] = rid
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers; keep authoring responses out of caches and indexes."""

    def __init__(
        self,
        app: ASGIApp,
        private_paths: Iterable[str] = (),
        private_suffixes: Iterable[str] = (),
    ) -> None:
        super().__init__(app)
        self.private_paths = frozenset(private_paths)
        self.private_suffixes = tuple(private_suffixes)

    def is_private(self, request: Request) -> bool:
        path = request.url.path
        return (
            request.method not in _SAFE_METHODS
            or path in self.private_paths
            or path.endswith(self.private_suffixes)
        )

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = CONTENT_SECURITY_POLICY
        if self.is_private(request):
            response.headers["Cache-Control"] = "no-store"
            response.headers["X-Robots-Tag"] = "noindex, nofollow"
        return response
