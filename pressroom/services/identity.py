"""Post identity: time-sortable ids and URL-safe slugs.

Ids are ULIDs (python-ulid): a 48-bit millisecond timestamp followed by 80
random bits, encoded as 26 Crockford base32 characters. Lexicographic order
of the encoded string is creation order, so a directory listing sorted by
filename roughly follows post creation.
"""

import os
import re
import threading
import time
import unicodedata

from ulid import ULID

ID_LENGTH = 26

# Canonical (uppercase) form only, as written into filenames
_ID_RE = re.compile(r"^[0-7][0-9A-HJKMNP-TV-Z]{25}$")

_lock = threading.Lock()
_last: ULID | None = None


def new_id() -> str:
    """Return a new ULID string, strictly increasing within this process.

    Ids minted in the same millisecond reuse the timestamp and increment the
    random component, so they still sort in creation order.
    """
    global _last

    with _lock:
        now_ms = time.time_ns() // 1_000_000
        if _last is not None and now_ms <= _last.milliseconds:
            value = ULID.from_int(int(_last) + 1)
        else:
            value = ULID(now_ms.to_bytes(6, "big") + os.urandom(10))
        _last = value

    return str(value)


def is_valid_id(value: str) -> bool:
    """Return True if *value* has the shape of an id produced by ``new_id``."""
    return bool(value) and _ID_RE.match(value) is not None


def id_timestamp_ms(value: str) -> int:
    """Return the millisecond timestamp embedded in an id."""
    if not is_valid_id(value):
        raise ValueError(f"Not a valid post id: {value!r}")
    return ULID.from_str(value).milliseconds


def _slug_char(char: str) -> str:
    # Word characters and combining marks (vowel signs, viramas) are kept
    if char.isalnum() or char == "_" or unicodedata.category(char).startswith("M"):
        return char
    return "-"


_HYPHEN_RUN_RE = re.compile(r"-{2,}")


def slugify(title: str, max_length: int = 80) -> str:
    """Convert a title to a lowercase, hyphen-separated slug.

    Letters of any script, digits, underscores and combining marks are kept;
    every other run of characters becomes one hyphen. Leading and trailing
    hyphens are removed.

    Examples:
        >>> slugify("Hello, World!")
        'hello-world'
        >>> slugify("한글 제목 -- Part 2")
        '한글-제목-part-2'
        >>> slugify("  ---  ")
        ''

    """
    if not title:
        return ""

    normalized = unicodedata.normalize("NFKC", title).lower()
    slug = "".join(_slug_char(char) for char in normalized)
    slug = _HYPHEN_RUN_RE.sub("-", slug).strip("-")

    if max_length and len(slug) > max_length:
        slug = slug[:max_length].rstrip("-")
    return slug
