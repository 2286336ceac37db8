"""Authoring helpers: drafts list, live Markdown preview, code stylesheet."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from pressroom.config import Settings
from pressroom.dependencies import (
    get_app_settings,
    get_post_store,
    get_renderer,
    require_authoring,
)
from pressroom.exceptions import StorageError
from pressroom.middleware import current_request_id
from pressroom.models.post import PostIndex, RenderRequest, RenderResult
from pressroom.services.markdown import MarkdownRenderer
from pressroom.services.post_store import PostStore
from pressroom.services.reading_time import estimate_reading_time
from pressroom.services.toc import extract_outline

logger = logging.getLogger(__name__)

router = APIRouter(tags=["authoring"])


@router.get(
    "/drafts",
    response_model=PostIndex,
    dependencies=[Depends(require_authoring)],
)
def list_drafts(store: PostStore = Depends(get_post_store)):
    """Drafts, most recently updated first."""
    try:
        drafts = store.list_drafts()
    except StorageError as e:
        logger.error(
            "Storage error listing drafts (request %s): %s",
            current_request_id(),
            e,
            exc_info=e,
        )
        raise HTTPException(status_code=500, detail="Failed to read drafts") from e
    return PostIndex(posts=[store.summarize(p) for p in drafts], total=len(drafts))


@router.post(
    "/preview",
    response_model=RenderResult,
    dependencies=[Depends(require_authoring)],
)
def preview(
    payload: RenderRequest,
    renderer: MarkdownRenderer = Depends(get_renderer),
    settings: Settings = Depends(get_app_settings),
):
    """Render unsaved Markdown exactly as a published post would be."""
    html = renderer.render(payload.markdown)
    reading = estimate_reading_time(payload.markdown, settings.words_per_minute)
    return RenderResult(
        html=html,
        reading_time=reading.text,
        read_time_minutes=reading.minutes,
        outline=extract_outline(html, payload.title),
    )


@router.get("/preview/styles.css", response_class=PlainTextResponse)
def code_stylesheet(renderer: MarkdownRenderer = Depends(get_renderer)):
    """Light and dark palettes for highlighted code blocks."""
    return PlainTextResponse(
        renderer.highlighter.stylesheet(), media_type="text/css"
    )
