"""Markdown → sanitized HTML.

Pipeline: markdown-it-py renders the body, fenced code goes through the
injected ``CodeHighlighter``, the HTML is cleaned by a bleach allowlist, and
finally every heading of the cleaned HTML gets a positional anchor
(``heading-0``, ``heading-1``, ...).
"""

import logging

import bleach
from bs4 import BeautifulSoup
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter
from markdown_it import MarkdownIt
from pygments.util import ClassNotFound, OptionError

from pressroom.services.highlighter import CodeHighlighter, plain_code_block

logger = logging.getLogger(__name__)

HEADING_ID_PREFIX = "heading-"
HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]

ALLOWED_TAGS = frozenset(
    {
        "a", "abbr", "b", "blockquote", "br", "code", "del", "div", "em",
        "h1", "h2", "h3", "h4", "h5", "h6", "hr", "i", "img", "kbd", "li",
        "ol", "p", "pre", "s", "span", "strong", "sub", "sup", "table",
        "tbody", "td", "th", "thead", "tr", "ul",
    }
)

ALLOWED_ATTRIBUTES = {
    "a": ["href", "title"],
    "img": ["src", "alt", "title"],
    "pre": ["class", "data-language"],
    "code": ["class"],
    "span": ["class"],
    "div": ["class"],
    "ol": ["start"],
}

ALLOWED_PROTOCOLS = frozenset({"http", "https", "mailto"})


def heading_anchor(index: int) -> str:
    return f"{HEADING_ID_PREFIX}{index}"


# Escape text as &, <, > only and write void elements as <br>, not <br/>
_OUTPUT_FORMATTER = HTMLFormatter(
    entity_substitution=EntitySubstitution.substitute_xml,
    void_element_close_prefix=None,
)

# Errors Pygments raises for a lexer or options it cannot handle
_HIGHLIGHT_ERRORS = (ClassNotFound, OptionError, ValueError)


def anchor_headings(html: str) -> str:
    """Give every h1-h6 in *html* its positional ``heading-{n}`` id.

    Runs on sanitized output, so raw HTML headings are numbered along with
    Markdown ones and no author-written id survives.
    """
    soup = BeautifulSoup(html, "html.parser")
    for index, heading in enumerate(soup.find_all(HEADING_TAGS)):
        heading["id"] = heading_anchor(index)
    return soup.decode(formatter=_OUTPUT_FORMATTER)


class MarkdownRenderer:
    """Render Markdown bodies to sanitized HTML.

    The highlighter is passed in rather than created here so a single
    instance, and its loaded grammars, is shared by every render.
    """

    def __init__(self, highlighter: CodeHighlighter) -> None:
        self.highlighter = highlighter
        self._md = MarkdownIt("commonmark", {"html": True}).enable(
            ["table", "strikethrough"]
        )
        self._md.add_render_rule("fence", self._fence_rule())
        self._cleaner = bleach.Cleaner(
            tags=ALLOWED_TAGS,
            attributes=ALLOWED_ATTRIBUTES,
            protocols=ALLOWED_PROTOCOLS,
            strip=True,
            strip_comments=True,
        )

    def render(self, markdown: str) -> str:
        """Convert *markdown* to sanitized HTML with anchored headings."""
        if not markdown:
            return ""

        html = self._md.render(markdown)
        # Sanitizer errors propagate: never hand back uncleaned HTML
        return anchor_headings(self._cleaner.clean(html))

    def _fence_rule(self):
        """Build the markdown-it ``fence`` rule.

        markdown-it binds rules to its renderer, so the rule is a plain
        function closing over this instance rather than a method.
        """

        def render_fence(renderer, tokens, idx, options, env) -> str:
            return self.render_code_block(tokens[idx].content, tokens[idx].info)

        return render_fence

    def render_code_block(self, code: str, info: str = "") -> str:
        """Highlight one fenced block, or fall back to plain escaped code."""
        language = info.strip().split(maxsplit=1)[0] if info.strip() else ""
        if not language:
            return plain_code_block(code)

        try:
            highlighted = self.highlighter.highlight(code, language)
        except _HIGHLIGHT_ERRORS:
            logger.warning(
                "Highlighting failed for %s block, rendering plain",
                language,
                exc_info=True,
            )
            highlighted = None
        return highlighted if highlighted is not None else plain_code_block(code)
