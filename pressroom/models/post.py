"""Post data models."""

from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from pressroom.models.outline import OutlineNode


class PostStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Post(BaseModel):
    """A post as stored on disk, normalized from either metadata shape."""

    id: str | None = None
    slug: str
    title: str = Field(..., min_length=1)
    description: str = ""
    status: PostStatus = PostStatus.DRAFT
    content: str = ""
    created_at: datetime
    updated_at: datetime
    published_at: datetime | None = None
    tags: list[str] = []
    is_legacy: bool = Field(default=False, exclude=True)

    @model_validator(mode="before")
    @classmethod
    def _migrate_old_fields(cls, data: Any) -> Any:
        """Backward compat: map the legacy frontmatter shape onto current fields."""
        if not isinstance(data, dict):
            return data
        data = dict(data)

        # camelCase timestamps written by older tooling
        for old, new in (("createdAt", "created_at"), ("updatedAt", "updated_at")):
            if old in data and data.get(new) is None:
                data[new] = data.pop(old)

        # date → created_at
        if data.get("created_at") is None and data.get("date") is not None:
            data["created_at"] = data["date"]
        data.pop("date", None)

        # draft: bool → status (no flag and no status means published)
        draft = data.pop("draft", None)
        if data.get("status") is None:
            if draft is None:
                data["status"] = PostStatus.PUBLISHED
            else:
                data["status"] = PostStatus.DRAFT if draft else PostStatus.PUBLISHED

        if data.get("updated_at") is None:
            data["updated_at"] = data.get("created_at")

        if data.get("tags") is None:
            data["tags"] = []
        if data.get("description") is None:
            data["description"] = ""
        return data

    @field_validator("created_at", "updated_at", "published_at", mode="before")
    @classmethod
    def _coerce_dates(cls, value: Any) -> Any:
        # YAML loads an unquoted 2024-01-01 as a date
        if isinstance(value, date) and not isinstance(value, datetime):
            return datetime.combine(value, time(), tzinfo=timezone.utc)
        return value

    @field_validator("created_at", "updated_at", "published_at")
    @classmethod
    def _ensure_timezone(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value) if value is not None else None

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [t.strip() for t in value.split(",") if t.strip()]
        return value

    @model_validator(mode="after")
    def _fill_published_at(self) -> "Post":
        """Published posts without a publish date fall back to created_at."""
        if self.status is PostStatus.PUBLISHED and self.published_at is None:
            self.published_at = self.created_at
        return self

    def to_metadata(self) -> dict[str, Any]:
        """Frontmatter mapping in the current shape (None values are dropped on write)."""
        return {
            "id": self.id,
            "slug": self.slug,
            "title": self.title,
            "description": self.description or None,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "tags": list(self.tags) or None,
        }


class PostSummary(BaseModel):
    """Post metadata for index display."""

    id: str | None
    slug: str
    title: str
    description: str
    status: PostStatus
    created_at: datetime
    updated_at: datetime
    published_at: datetime | None = None
    tags: list[str] = []
    read_time_minutes: int | None = None

    @classmethod
    def from_post(cls, post: Post, read_time_minutes: int | None = None) -> "PostSummary":
        return cls(
            **post.model_dump(exclude={"content"}),
            read_time_minutes=read_time_minutes,
        )


class PostDetail(PostSummary):
    """Full post with derived fields, computed on every read."""

    content: str
    html: str
    reading_time: str
    outline: list[OutlineNode] = []


class PostIndex(BaseModel):
    """Post listing."""

    posts: list[PostSummary]
    total: int


class PostCreate(BaseModel):
    """Input for creating a post."""

    title: str
    content: str
    description: str | None = None
    status: PostStatus = PostStatus.DRAFT
    tags: list[str] | None = None


class PostUpdate(BaseModel):
    """Partial update: only fields that are set are merged."""

    title: str | None = None
    description: str | None = None
    content: str | None = None
    tags: list[str] | None = None


class PostForm(BaseModel):
    """Editor form data for an existing post."""

    id: str | None
    title: str
    description: str
    content: str
    status: PostStatus
    tags: list[str] = []


class RenderRequest(BaseModel):
    markdown: str
    title: str = ""


class RenderResult(BaseModel):
    html: str
    reading_time: str
    read_time_minutes: int
    outline: list[OutlineNode] = []
