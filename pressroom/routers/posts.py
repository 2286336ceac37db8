"""Post endpoints: public reads plus the local authoring API."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response

from pressroom.dependencies import get_post_store, require_authoring
from pressroom.exceptions import (
    AlreadyPublishedError,
    MalformedPostFileError,
    PostAlreadyExistsError,
    PostError,
    PostNotFoundError,
    PostValidationError,
    StorageError,
)
from pressroom.middleware import current_request_id
from pressroom.models.post import (
    PostCreate,
    PostDetail,
    PostForm,
    PostIndex,
    PostStatus,
    PostSummary,
    PostUpdate,
)
from pressroom.services.post_store import PostStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["posts"])

_ID_PATTERN = r"^[A-Za-z0-9_-]+$"

_STATUS_CODES: dict[type[PostError], int] = {
    PostValidationError: 400,
    PostNotFoundError: 404,
    PostAlreadyExistsError: 409,
    AlreadyPublishedError: 409,
    MalformedPostFileError: 422,
}


def _to_http(exc: PostError) -> HTTPException:
    """Map a domain error onto an HTTP error with the same message."""
    for error_type, status_code in _STATUS_CODES.items():
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def _storage_failure(exc: StorageError, action: str) -> HTTPException:
    logger.error(
        "Storage error while trying to %s (request %s): %s",
        action,
        current_request_id(),
        exc,
        exc_info=exc,
    )
    return HTTPException(status_code=500, detail=f"Failed to {action}")


@router.get("", response_model=PostIndex)
def list_posts(
    status: PostStatus | None = Query(default=None, description="Filter by status"),
    tag: str | None = Query(default=None, description="Filter by tag"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    store: PostStore = Depends(get_post_store),
):
    """List posts, newest first."""
    try:
        posts = store.list_by_tag(tag) if tag else store.list_posts()
    except StorageError as e:
        raise _storage_failure(e, "read posts") from e

    if status is not None:
        posts = [p for p in posts if p.status is status]

    total = len(posts)
    page = posts[offset : offset + limit]
    return PostIndex(posts=[store.summarize(p) for p in page], total=total)


@router.get("/tags", response_model=list[str])
def list_tags(store: PostStore = Depends(get_post_store)):
    """All tags used by any post, sorted."""
    try:
        return store.all_tags()
    except StorageError as e:
        raise _storage_failure(e, "read posts") from e


@router.get("/by-slug/{slug}", response_model=PostDetail)
def get_post_by_slug(
    slug: str = Path(..., min_length=1, max_length=200),
    store: PostStore = Depends(get_post_store),
):
    """Get a single rendered post by its slug."""
    try:
        post = store.get_by_slug(slug)
    except StorageError as e:
        raise _storage_failure(e, "read post") from e
    if post is None:
        raise HTTPException(status_code=404, detail="Post not found")
    return store.render_post(post)


@router.get("/{post_id}", response_model=PostDetail)
def get_post(
    post_id: str = Path(..., pattern=_ID_PATTERN, max_length=200),
    store: PostStore = Depends(get_post_store),
):
    """Get a single rendered post by id."""
    try:
        post = store.get_by_id(post_id)
    except PostError as e:
        raise _to_http(e) from e
    except StorageError as e:
        raise _storage_failure(e, "read post") from e
    if post is None:
        raise HTTPException(status_code=404, detail="Post not found")
    return store.render_post(post)


@router.get(
    "/{post_id}/form",
    response_model=PostForm,
    dependencies=[Depends(require_authoring)],
)
def get_post_form(
    post_id: str = Path(..., pattern=_ID_PATTERN, max_length=200),
    store: PostStore = Depends(get_post_store),
):
    """Load an existing post into the editor."""
    try:
        form = store.load_form(post_id)
    except PostError as e:
        raise _to_http(e) from e
    except StorageError as e:
        raise _storage_failure(e, "read post") from e
    if form is None:
        raise HTTPException(status_code=404, detail="Post not found")
    return form


@router.post(
    "",
    response_model=PostSummary,
    status_code=201,
    dependencies=[Depends(require_authoring)],
)
def create_post(payload: PostCreate, store: PostStore = Depends(get_post_store)):
    """Create a post (draft by default)."""
    try:
        post = store.create(
            title=payload.title,
            content=payload.content,
            description=payload.description,
            status=payload.status,
            tags=payload.tags,
        )
    except PostError as e:
        raise _to_http(e) from e
    except StorageError as e:
        raise _storage_failure(e, "create post") from e
    return store.summarize(post)


@router.put(
    "/{post_id}",
    response_model=PostSummary,
    dependencies=[Depends(require_authoring)],
)
def update_post(
    payload: PostUpdate,
    post_id: str = Path(..., pattern=_ID_PATTERN, max_length=200),
    store: PostStore = Depends(get_post_store),
):
    """Update title, description, content or tags. Status is left unchanged."""
    try:
        post = store.update(post_id, payload)
    except PostError as e:
        raise _to_http(e) from e
    except StorageError as e:
        raise _storage_failure(e, "update post") from e
    return store.summarize(post)


@router.post(
    "/{post_id}/publish",
    response_model=PostSummary,
    dependencies=[Depends(require_authoring)],
)
def publish_post(
    post_id: str = Path(..., pattern=_ID_PATTERN, max_length=200),
    store: PostStore = Depends(get_post_store),
):
    """Publish a draft."""
    try:
        post = store.publish(post_id)
    except PostError as e:
        raise _to_http(e) from e
    except StorageError as e:
        raise _storage_failure(e, "publish post") from e
    return store.summarize(post)


@router.delete(
    "/{post_id}",
    status_code=204,
    dependencies=[Depends(require_authoring)],
)
def delete_post(
    post_id: str = Path(..., pattern=_ID_PATTERN, max_length=200),
    store: PostStore = Depends(get_post_store),
):
    """Delete a post by id."""
    try:
        store.delete(post_id)
    except PostError as e:
        raise _to_http(e) from e
    except StorageError as e:
        raise _storage_failure(e, "delete post") from e
    return Response(status_code=204)
