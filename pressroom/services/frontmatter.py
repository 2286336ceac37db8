"""Read and write post files: a YAML frontmatter block followed by the body.

File layout::

    ---
    title: Hello
    status: draft
    ---

    Body text...

Parsing and dumping of the YAML block go through python-frontmatter's
``YAMLHandler`` (safe loader/dumper). Splitting the block from the body is
done here so the body survives a round trip byte for byte.
"""

import logging
import re
from typing import Any

import yaml
from frontmatter.default_handlers import YAMLHandler

from pressroom.exceptions import MalformedPostFileError

logger = logging.getLogger(__name__)

DELIMITER = "---"

_OPENING_RE = re.compile(r"\A---[ \t]*\r?\n")
_CLOSING_RE = re.compile(r"^---[ \t]*(?:\r?\n|\Z)", re.MULTILINE)

_handler = YAMLHandler()


def has_frontmatter(text: str) -> bool:
    """Return True if *text* starts with a frontmatter delimiter line."""
    return _OPENING_RE.match(text) is not None


def parse_post_file(text: str, path: str = "") -> tuple[dict[str, Any], str]:
    """Split a post file into (metadata, body).

    A file without a leading ``---`` line has no metadata and the whole text
    is the body.

    Raises:
        MalformedPostFileError: if the block is unterminated, is not valid
            YAML, or does not hold a mapping.

    """
    opening = _OPENING_RE.match(text)
    if opening is None:
        return {}, text

    closing = _CLOSING_RE.search(text, opening.end())
    if closing is None:
        raise MalformedPostFileError("frontmatter block is not closed", path)

    block = text[opening.end() : closing.start()]
    try:
        metadata = _handler.load(block)
    except yaml.YAMLError as exc:
        raise MalformedPostFileError(f"invalid YAML ({exc})", path) from exc

    if metadata is None:
        metadata = {}
    if not isinstance(metadata, dict):
        raise MalformedPostFileError(
            f"expected a mapping, got {type(metadata).__name__}", path
        )

    body = text[closing.end() :]
    # One blank line separates the block from the body
    if body.startswith("\r\n"):
        body = body[2:]
    elif body.startswith("\n"):
        body = body[1:]
    return metadata, body


def serialize_post_file(metadata: dict[str, Any], body: str) -> str:
    """Render metadata and body as post file text.

    Keys whose value is None are omitted; key order is preserved.
    """
    cleaned = {key: value for key, value in metadata.items() if value is not None}
    block = _handler.export(cleaned, sort_keys=False) if cleaned else ""
    lines = [DELIMITER]
    if block:
        lines.append(block)
    lines.append(DELIMITER)
    return "\n".join(lines) + "\n\n" + body
