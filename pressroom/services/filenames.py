"""Mapping between post identity and on-disk filenames.

Canonical files are named ``{id}-{slug}.md``. Any other ``*.md`` name is a
legacy file: its whole stem is the slug and it carries no id in the name.
"""

from dataclasses import dataclass

from pressroom.services.identity import ID_LENGTH, is_valid_id

POST_SUFFIX = ".md"
SEPARATOR = "-"


@dataclass(frozen=True)
class PostFilename:
    """Decoded filename. ``id`` is None for legacy names."""

    id: str | None
    slug: str

    @property
    def is_legacy(self) -> bool:
        return self.id is None


def is_post_filename(name: str) -> bool:
    """Return True for visible ``*.md`` files."""
    return name.endswith(POST_SUFFIX) and not name.startswith(".")


def encode_filename(post_id: str, slug: str) -> str:
    """Return the canonical filename for a post."""
    return f"{post_id}{SEPARATOR}{slug}{POST_SUFFIX}"


def decode_filename(name: str) -> PostFilename:
    """Split a filename into id and slug, falling back to the legacy shape.

    Never raises: names that are not canonical decode as legacy.
    """
    stem = name[: -len(POST_SUFFIX)] if name.endswith(POST_SUFFIX) else name

    prefix = stem[:ID_LENGTH]
    if (
        len(stem) > ID_LENGTH + 1
        and stem[ID_LENGTH] == SEPARATOR
        and is_valid_id(prefix)
    ):
        return PostFilename(id=prefix, slug=stem[ID_LENGTH + 1 :])

    return PostFilename(id=None, slug=stem)
