"""Table of contents: outline extraction and scroll-linked active heading.

The renderer anchors every heading as ``heading-{n}``; this module reads
those anchors back out of the HTML to build a two-level outline (h3 nested
under h2), and decides which heading is "being read" for a given viewport.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from bs4 import BeautifulSoup

from pressroom.models.outline import OutlineNode

logger = logging.getLogger(__name__)

TITLE_ANCHOR = "title"

# Readers' eyes sit roughly a third of the way down the viewport
DEFAULT_READING_FRACTION = 1 / 3


def extract_outline(html: str, top_title: str = "") -> list[OutlineNode]:
    """Build a nested outline from the h1/h2/h3 headings in *html*.

    The post title is prepended as a level-0 node. h1 and h2 are top-level;
    an h3 nests under the nearest preceding h2, or becomes top-level when no
    h2 precedes it since the last h1.
    """
    items: list[OutlineNode] = []
    if top_title:
        items.append(OutlineNode(level=0, text=top_title, id=TITLE_ANCHOR))

    if not html:
        return items

    soup = BeautifulSoup(html, "html.parser")
    current_h2: OutlineNode | None = None

    for element in soup.find_all(["h1", "h2", "h3"]):
        anchor = element.get("id")
        text = element.get_text(" ", strip=True)
        if not anchor:
            logger.warning("Heading without id skipped: %s", text[:50])
            continue
        if not text:
            continue

        level = int(element.name[1])
        node = OutlineNode(level=level, text=text, id=anchor)

        if level == 3 and current_h2 is not None:
            current_h2.children.append(node)
            continue

        items.append(node)
        if level == 2:
            current_h2 = node
        elif level == 1:
            current_h2 = None

    return items


def outline_ids(nodes: Iterable[OutlineNode], include_title: bool = False) -> list[str]:
    """Flatten an outline to heading ids in document order."""
    ids: list[str] = []
    for node in nodes:
        if node.level > 0 or include_title:
            ids.append(node.id)
        ids.extend(outline_ids(node.children, include_title))
    return ids


@dataclass
class ViewportState:
    """Heading positions relative to the top of the viewport, in pixels."""

    height: float
    positions: Mapping[str, float] = field(default_factory=dict)
    reading_fraction: float = DEFAULT_READING_FRACTION

    @property
    def reading_line(self) -> float:
        return self.height * self.reading_fraction


def track_active_heading(
    heading_ids: list[str], viewport: ViewportState
) -> str | None:
    """Return the heading currently being read.

    That is the last heading, in document order, whose top has crossed above
    the reading line. Before any heading crosses it the first heading is
    active. Ids with no known position are ignored.
    """
    if not heading_ids:
        return None

    line = viewport.reading_line
    last_crossed: str | None = None
    for heading_id in heading_ids:
        top = viewport.positions.get(heading_id)
        if top is not None and top <= line:
            last_crossed = heading_id

    return last_crossed if last_crossed is not None else heading_ids[0]


class ActiveHeadingTracker:
    """Keep the active heading across scroll and resize events.

    Usage::

        tracker = ActiveHeadingTracker(["heading-0", "heading-1"])
        changed = tracker.update(viewport)  # new id, or None if unchanged
    """

    def __init__(self, heading_ids: list[str]) -> None:
        self.heading_ids = list(heading_ids)
        self.active_id: str | None = None

    def update(self, viewport: ViewportState) -> str | None:
        """Recompute for *viewport*; return the new id only when it changed."""
        new_id = track_active_heading(self.heading_ids, viewport)
        if new_id == self.active_id:
            return None
        self.active_id = new_id
        return new_id

    on_scroll = update
    on_resize = update
