"""FastAPI dependencies resolving the objects built by ``create_app``."""

from fastapi import HTTPException, Request

from pressroom.config import Settings
from pressroom.services.markdown import MarkdownRenderer
from pressroom.services.post_store import PostStore


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_post_store(request: Request) -> PostStore:
    return request.app.state.post_store


def get_renderer(request: Request) -> MarkdownRenderer:
    return request.app.state.renderer


def require_authoring(request: Request) -> None:
    """Hide authoring endpoints unless authoring is enabled (development by default)."""
    settings: Settings = request.app.state.settings
    if not settings.authoring_enabled:
        raise HTTPException(
            status_code=404,
            detail="Authoring API is only available in development",
        )
