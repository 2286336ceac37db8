"""Syntax highlighting for fenced code blocks (Pygments).

The highlighter owns the lexers for a fixed set of languages. Loading them is
the expensive part, so it happens once per ``CodeHighlighter`` instance: the
first caller of ``load()`` builds the lexer table while concurrent callers wait
on the lock and then reuse it.

Markup is class-based. ``stylesheet()`` returns both a light and a dark
palette for those classes, so a page switches themes purely through CSS
(``[data-theme="dark"]`` or the ``prefers-color-scheme`` media query) without
re-rendering.
"""

import logging
import threading
from html import escape

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

logger = logging.getLogger(__name__)

# Canonical language name -> Pygments lexer alias
SUPPORTED_LANGUAGES: dict[str, str] = {
    "javascript": "javascript",
    "typescript": "typescript",
    "jsx": "jsx",
    "tsx": "tsx",
    "css": "css",
    "html": "html",
    "bash": "bash",
    "json": "json",
    "markdown": "markdown",
    "yaml": "yaml",
    "python": "python",
    "sql": "sql",
    "go": "go",
    "rust": "rust",
}

# Fence info-string aliases -> canonical language name
LANGUAGE_ALIASES: dict[str, str] = {
    "js": "javascript",
    "mjs": "javascript",
    "ts": "typescript",
    "sh": "bash",
    "shell": "bash",
    "zsh": "bash",
    "yml": "yaml",
    "py": "python",
    "md": "markdown",
    "golang": "go",
    "rs": "rust",
}

CSS_SCOPE = ".highlight"
DARK_SCOPES = ('[data-theme="dark"] .highlight',)


def normalize_language(language: str | None) -> str | None:
    """Map a fence info string to a canonical language name, or None."""
    if not language:
        return None
    name = language.strip().lower()
    name = LANGUAGE_ALIASES.get(name, name)
    return name if name in SUPPORTED_LANGUAGES else None


class CodeHighlighter:
    """Pygments-backed highlighter for the supported languages."""

    def __init__(
        self,
        light_style: str = "default",
        dark_style: str = "github-dark",
        languages: dict[str, str] | None = None,
    ) -> None:
        self.light_style = light_style
        self.dark_style = dark_style
        self._languages = dict(languages or SUPPORTED_LANGUAGES)
        self._lexers: dict[str, Lexer] | None = None
        self._lock = threading.Lock()
        self._formatter = HtmlFormatter(nowrap=True)
        self.load_count = 0

    @property
    def loaded(self) -> bool:
        return self._lexers is not None

    def load(self) -> None:
        """Build the lexer table. Idempotent and safe to call concurrently."""
        if self._lexers is not None:
            return
        with self._lock:
            if self._lexers is not None:
                return
            lexers: dict[str, Lexer] = {}
            for name, alias in self._languages.items():
                try:
                    lexers[name] = get_lexer_by_name(alias, stripnl=False)
                except ClassNotFound:
                    logger.warning("No Pygments lexer for %s (%s)", name, alias)
            self.load_count += 1
            self._lexers = lexers
            logger.info("Loaded %d code highlighting grammars", len(lexers))

    def supports(self, language: str | None) -> bool:
        name = normalize_language(language)
        if name is None:
            return False
        self.load()
        return name in self._lexers

    def highlight(self, code: str, language: str | None) -> str | None:
        """Return highlighted HTML for *code*, or None if the language is unsupported."""
        name = normalize_language(language)
        if name is None:
            return None
        self.load()
        lexer = self._lexers.get(name)
        if lexer is None:
            return None

        body = highlight(code, lexer, self._formatter)
        return (
            f'<pre class="highlight" data-language="{escape(name)}">'
            f'<code class="language-{escape(name)}">{body}</code></pre>\n'
        )

    def stylesheet(self) -> str:
        """Return CSS holding the light palette plus the dark overrides."""
        light = HtmlFormatter(style=self.light_style).get_style_defs(CSS_SCOPE)
        dark_formatter = HtmlFormatter(style=self.dark_style)
        dark = dark_formatter.get_style_defs(list(DARK_SCOPES))
        media_dark = dark_formatter.get_style_defs(CSS_SCOPE)
        indented = "\n".join(f"  {line}" for line in media_dark.splitlines())
        return (
            f"{light}\n"
            f"{dark}\n"
            "@media (prefers-color-scheme: dark) {\n"
            f"{indented}\n"
            "}\n"
        )


def plain_code_block(code: str) -> str:
    """Fallback markup for code that is not highlighted."""
    return f"<pre><code>{escape(code, quote=False)}</code></pre>\n"
