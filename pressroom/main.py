"""
Pressroom API

Thin FastAPI backend over the file-backed post store: public post reads,
plus the local authoring API (create, edit, publish, delete, preview).
"""

import logging
import os
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pressroom.config import Settings, get_settings
from pressroom.middleware import RequestIDMiddleware, SecurityHeadersMiddleware
from pressroom.routers import posts, preview
from pressroom.services.highlighter import CodeHighlighter
from pressroom.services.markdown import MarkdownRenderer
from pressroom.services.post_store import PostStore

logger = logging.getLogger(__name__)

API_PREFIX = "/api"
VERSION = "0.1.0"

_HEALTH_CACHE_TTL = 30  # seconds


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: warm the highlighter before the first request."""
    app.state.renderer.highlighter.load()
    yield


def _nearest_existing(path: Path) -> Path:
    while not path.exists() and path.parent != path:
        path = path.parent
    return path


def _check_storage(settings: Settings) -> str:
    """Content directory must be a readable directory, or not created yet."""
    path = settings.content_dir
    if not path.exists():
        return "ok"
    return "ok" if path.is_dir() and os.access(path, os.R_OK | os.X_OK) else "fail"


def _check_writable(settings: Settings) -> str:
    """Authoring needs the content directory, or the parent it is created in, writable."""
    if not settings.authoring_enabled:
        return "skipped"
    target = _nearest_existing(settings.content_dir)
    return "ok" if target.is_dir() and os.access(target, os.W_OK | os.X_OK) else "fail"


def _run_health_checks(app: FastAPI) -> dict[str, Any]:
    """Run all health checks, returning the full response body.

    An unreadable content directory makes the service unhealthy. Losing
    write access only degrades it: published posts can still be read.
    """
    now = time.time()
    cached = app.state.health_cache
    if cached is not None:
        cached_result, cached_at = cached
        if now - cached_at < _HEALTH_CACHE_TTL:
            return cached_result

    settings: Settings = app.state.settings
    checks = {
        "storage": _check_storage(settings),
        "writable": _check_writable(settings),
    }
    failed = [k for k, v in checks.items() if v == "fail"]

    if checks["storage"] == "fail":
        overall = "unhealthy"
    elif failed:
        overall = "degraded"
    else:
        overall = "ok"
    if failed:
        logger.warning("Health check %s, failed: %s", overall, ", ".join(failed))

    result: dict[str, Any] = {
        "status": overall,
        "service": "pressroom-api",
        "version": VERSION,
        "checks": checks,
    }
    app.state.health_cache = (result, now)
    return result


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the API with one shared highlighter, renderer and store."""
    settings = settings or get_settings()

    highlighter = CodeHighlighter(
        light_style=settings.code_theme_light,
        dark_style=settings.code_theme_dark,
    )
    renderer = MarkdownRenderer(highlighter)
    store = PostStore(
        settings.content_dir,
        renderer,
        slug_max_length=settings.slug_max_length,
        words_per_minute=settings.words_per_minute,
    )

    app = FastAPI(
        title="Pressroom API",
        description="Personal publishing: Markdown posts on disk, rendered to HTML",
        version=VERSION,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.settings = settings
    app.state.renderer = renderer
    app.state.post_store = store
    app.state.health_cache = None

    # Last added runs outermost: CORS, then request ID, then security headers
    app.add_middleware(
        SecurityHeadersMiddleware,
        private_paths=[f"{API_PREFIX}/drafts", f"{API_PREFIX}/preview"],
        private_suffixes=["/form"],
    )
    app.add_middleware(RequestIDMiddleware)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    # Routers
    app.include_router(posts.router, prefix=API_PREFIX)
    app.include_router(preview.router, prefix=API_PREFIX)

    @app.get(f"{API_PREFIX}/health")
    def health_check(request: Request) -> JSONResponse:
        """Health check on the content directory; 503 when posts cannot be read."""
        result = _run_health_checks(request.app)
        status_code = 503 if result["status"] == "unhealthy" else 200
        return JSONResponse(content=result, status_code=status_code)

    return app


app = create_app()
