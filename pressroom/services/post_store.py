"""File-backed post storage.

Each post is exactly one ``*.md`` file in a flat content directory. Canonical
files are named ``{id}-{slug}.md``; legacy files (no id in the name) are still
read and can be migrated. There is no index: lookups scan the directory,
which is fine at personal-site scale.

The store assumes it is the only writer. When a rename is needed the new
file is written before the old one is removed, so a crash in between leaves
the post readable rather than lost.
"""

import logging
import os
import tempfile
from collections.abc import Callable, Iterator
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from pressroom.exceptions import (
    AlreadyPublishedError,
    MalformedPostFileError,
    PostAlreadyExistsError,
    PostNotFoundError,
    PostValidationError,
    StorageError,
)
from pressroom.models.post import (
    Post,
    PostDetail,
    PostForm,
    PostStatus,
    PostSummary,
    PostUpdate,
)
from pressroom.services.filenames import (
    PostFilename,
    decode_filename,
    encode_filename,
    is_post_filename,
)
from pressroom.services.frontmatter import parse_post_file, serialize_post_file
from pressroom.services.identity import is_valid_id, new_id, slugify
from pressroom.services.markdown import MarkdownRenderer
from pressroom.services.reading_time import (
    DEFAULT_WORDS_PER_MINUTE,
    estimate_reading_time,
)
from pressroom.services.toc import extract_outline

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PostStore:
    """Create, read, update, publish and delete posts in *content_dir*."""

    def __init__(
        self,
        content_dir: Path | str,
        renderer: MarkdownRenderer | None = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
        slug_max_length: int = 80,
        words_per_minute: int = DEFAULT_WORDS_PER_MINUTE,
    ) -> None:
        self.content_dir = Path(content_dir)
        self.renderer = renderer
        self._clock = clock
        self.slug_max_length = slug_max_length
        self.words_per_minute = words_per_minute

    # -- reads ---------------------------------------------------------------

    def list_posts(self) -> list[Post]:
        """Return every readable post, newest ``created_at`` first.

        Files with malformed frontmatter are logged and skipped.
        """
        posts: list[Post] = []
        for path in self._iter_files():
            try:
                posts.append(self._read(path))
            except MalformedPostFileError as e:
                logger.warning("Skipping malformed post file %s: %s", path.name, e.reason)
        posts.sort(key=lambda p: p.created_at, reverse=True)
        return posts

    def list_published(self) -> list[Post]:
        return [p for p in self.list_posts() if p.status is PostStatus.PUBLISHED]

    def list_drafts(self) -> list[Post]:
        """Drafts, most recently updated first."""
        drafts = [p for p in self.list_posts() if p.status is PostStatus.DRAFT]
        drafts.sort(key=lambda p: p.updated_at, reverse=True)
        return drafts

    def list_by_tag(self, tag: str) -> list[Post]:
        return [p for p in self.list_posts() if tag in p.tags]

    def all_tags(self) -> list[str]:
        tags: set[str] = set()
        for post in self.list_posts():
            tags.update(post.tags)
        return sorted(tags)

    def get_by_id(self, post_id: str) -> Post | None:
        """Return the post with *post_id*, or None.

        Raises MalformedPostFileError if the matching file cannot be parsed.
        """
        path = self._find_path(post_id)
        if path is None:
            return None
        return self._read(path)

    def get_by_slug(self, slug: str) -> Post | None:
        for post in self.list_posts():
            if post.slug == slug:
                return post
        return None

    def load_form(self, post_id: str) -> PostForm | None:
        """Editor form data for *post_id*, or None if it does not exist."""
        post = self.get_by_id(post_id)
        if post is None:
            return None
        return PostForm(
            id=post.id,
            title=post.title,
            description=post.description,
            content=post.content,
            status=post.status,
            tags=post.tags,
        )

    # -- writes --------------------------------------------------------------

    def create(
        self,
        title: str,
        content: str,
        description: str | None = None,
        status: PostStatus = PostStatus.DRAFT,
        tags: list[str] | None = None,
    ) -> Post:
        """Create a new post file and return the stored post."""
        title = (title or "").strip()
        if not title:
            raise PostValidationError("title", "title is required")
        if not content or not content.strip():
            raise PostValidationError("content", "content is required")
        slug = self._slug_for(title)

        now = self._clock()
        status = PostStatus(status)
        post = Post(
            id=new_id(),
            slug=slug,
            title=title,
            description=description or "",
            status=status,
            content=content,
            created_at=now,
            updated_at=now,
            published_at=now if status is PostStatus.PUBLISHED else None,
            tags=tags or [],
        )

        path = self.content_dir / encode_filename(post.id, post.slug)
        self._ensure_dir()
        text = serialize_post_file(post.to_metadata(), post.content)
        try:
            with open(path, "x", encoding="utf-8") as f:
                f.write(text)
        except FileExistsError:
            raise PostAlreadyExistsError(path.name) from None
        except OSError as e:
            raise StorageError("write", str(path)) from e

        logger.info("Created post %s (%s)", post.id, path.name)
        return post

    def update(self, post_id: str, changes: PostUpdate) -> Post:
        """Merge the set fields of *changes* into the stored post.

        A title change renames the file: the new file is written first and
        only then is the old one deleted.
        """
        old_path = self._find_path(post_id)
        if old_path is None:
            raise PostNotFoundError(post_id)
        post = self._read(old_path)

        fields = changes.model_dump(exclude_unset=True)
        updates: dict = {}

        if fields.get("title") is not None:
            title = fields["title"].strip()
            if not title:
                raise PostValidationError("title", "title cannot be empty")
            if title != post.title:
                updates["title"] = title
                updates["slug"] = self._slug_for(title)
        if fields.get("content") is not None:
            if not fields["content"].strip():
                raise PostValidationError("content", "content cannot be empty")
            updates["content"] = fields["content"]
        if "description" in fields:
            updates["description"] = fields["description"] or ""
        if "tags" in fields:
            updates["tags"] = fields["tags"] or []

        updates["updated_at"] = self._bumped(post)
        updated = post.model_copy(update=updates)

        new_path = self._path_for(updated)
        self._write(new_path, updated)
        if new_path != old_path:
            self._remove(old_path)
            logger.info("Renamed post %s: %s -> %s", post_id, old_path.name, new_path.name)

        return updated.model_copy(
            update={"is_legacy": decode_filename(new_path.name).is_legacy}
        )

    def publish(self, post_id: str) -> Post:
        """Move a draft to published. Publishing twice is an error."""
        path = self._find_path(post_id)
        if path is None:
            raise PostNotFoundError(post_id)
        post = self._read(path)
        if post.status is PostStatus.PUBLISHED:
            raise AlreadyPublishedError(post_id)

        now = self._clock()
        published = post.model_copy(
            update={
                "status": PostStatus.PUBLISHED,
                "published_at": post.published_at or now,
                "updated_at": self._bumped(post, now),
            }
        )
        self._write(path, published)
        logger.info("Published post %s", post_id)
        return published

    def delete(self, post_id: str) -> None:
        """Delete the post with *post_id*. Raises PostNotFoundError if absent."""
        path = self._find_path(post_id)
        if path is None:
            raise PostNotFoundError(post_id)
        self._remove(path)
        logger.info("Deleted post %s (%s)", post_id, path.name)

    def migrate_legacy(self) -> list[Post]:
        """Rename every legacy file to the canonical shape.

        A metadata id is kept when present, otherwise a new one is minted.
        Malformed files are left in place.
        """
        migrated: list[Post] = []
        for path in self._iter_files():
            if not decode_filename(path.name).is_legacy:
                continue
            try:
                post = self._read(path)
            except MalformedPostFileError as e:
                logger.warning("Cannot migrate malformed file %s: %s", path.name, e.reason)
                continue

            post_id = post.id if post.id and is_valid_id(post.id) else new_id()
            slug = slugify(post.slug, self.slug_max_length) or slugify(
                post.title, self.slug_max_length
            )
            if not slug:
                logger.warning("Cannot derive a slug for legacy file %s", path.name)
                continue

            canonical = post.model_copy(
                update={"id": post_id, "slug": slug, "is_legacy": False}
            )
            new_path = self.content_dir / encode_filename(post_id, slug)
            self._write(new_path, canonical)
            self._remove(path)
            logger.info("Migrated legacy post %s -> %s", path.name, new_path.name)
            migrated.append(canonical)
        return migrated

    # -- derived views -------------------------------------------------------

    def summarize(self, post: Post) -> PostSummary:
        minutes = estimate_reading_time(post.content, self.words_per_minute).minutes
        return PostSummary.from_post(post, read_time_minutes=minutes)

    def render_post(self, post: Post) -> PostDetail:
        """Attach rendered HTML, reading time and outline. Never cached."""
        if self.renderer is None:
            raise RuntimeError("PostStore was created without a renderer")
        html = self.renderer.render(post.content)
        reading = estimate_reading_time(post.content, self.words_per_minute)
        return PostDetail(
            **post.model_dump(),
            read_time_minutes=reading.minutes,
            html=html,
            reading_time=reading.text,
            outline=extract_outline(html, post.title),
        )

    # -- internals -----------------------------------------------------------

    def _slug_for(self, title: str) -> str:
        slug = slugify(title, self.slug_max_length)
        if not slug:
            raise PostValidationError(
                "title", "title must contain at least one letter or digit"
            )
        return slug

    def _path_for(self, post: Post) -> Path:
        """Canonical path when the id allows it, legacy ``{slug}.md`` otherwise."""
        if post.id and is_valid_id(post.id):
            return self.content_dir / encode_filename(post.id, post.slug)
        return self.content_dir / f"{post.slug}.md"

    def _bumped(self, post: Post, now: datetime | None = None) -> datetime:
        now = now or self._clock()
        return max(now, post.created_at, post.updated_at)

    def _iter_files(self) -> Iterator[Path]:
        try:
            names = sorted(os.listdir(self.content_dir))
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageError("list", str(self.content_dir)) from e
        for name in names:
            path = self.content_dir / name
            if is_post_filename(name) and path.is_file():
                yield path

    def _find_path(self, post_id: str) -> Path | None:
        """Locate the file for *post_id*: canonical names first, then legacy metadata."""
        if not post_id:
            return None
        legacy: list[Path] = []
        for path in self._iter_files():
            decoded = decode_filename(path.name)
            if decoded.id == post_id:
                return path
            if decoded.is_legacy:
                legacy.append(path)

        for path in legacy:
            try:
                metadata, _ = parse_post_file(self._read_text(path), str(path))
            except MalformedPostFileError:
                continue
            if str(metadata.get("id") or "") == post_id:
                return path
        return None

    def _read_text(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError("read", str(path)) from e

    def _read(self, path: Path) -> Post:
        """Decode one file into a normalized Post."""
        text = self._read_text(path)
        metadata, body = parse_post_file(text, str(path))
        return self._to_post(path, decode_filename(path.name), metadata, body)

    def _to_post(
        self, path: Path, name: PostFilename, metadata: dict, body: str
    ) -> Post:
        data = dict(metadata)
        # The filename is authoritative for identity
        if name.id is not None:
            data["id"] = name.id
        elif data.get("id") is not None:
            data["id"] = str(data["id"])
        data["slug"] = name.slug
        if not data.get("title"):
            data["title"] = name.slug
        else:
            data["title"] = str(data["title"])
        if all(data.get(key) is None for key in ("created_at", "date", "createdAt")):
            data["created_at"] = self._mtime(path)
        data["content"] = body
        data["is_legacy"] = name.is_legacy

        try:
            return Post.model_validate(data)
        except ValidationError as e:
            raise MalformedPostFileError(
                f"invalid metadata ({e.error_count()} errors: {_first_error(e)})",
                str(path),
            ) from e

    def _mtime(self, path: Path) -> datetime:
        try:
            return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
        except OSError as e:
            raise StorageError("stat", str(path)) from e

    def _ensure_dir(self) -> None:
        try:
            self.content_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError("create directory", str(self.content_dir)) from e

    def _write(self, path: Path, post: Post) -> None:
        """Atomically write *post* to *path* (temp file + rename)."""
        self._ensure_dir()
        text = serialize_post_file(post.to_metadata(), post.content)
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.content_dir,
                prefix=".",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(text)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageError("write", str(path)) from e

    def _remove(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            raise PostNotFoundError(path.name) from None
        except OSError as e:
            raise StorageError("delete", str(path)) from e


def _first_error(error: ValidationError) -> str:
    first = error.errors()[0]
    loc = ".".join(str(part) for part in first.get("loc", ()))
    return f"{loc}: {first.get('msg', '')}" if loc else first.get("msg", "")
