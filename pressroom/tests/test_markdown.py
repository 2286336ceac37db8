"""Tests for Markdown rendering, sanitizing and code highlighting."""

import threading

import pytest

from pressroom.services.highlighter import (
    CodeHighlighter,
    normalize_language,
    plain_code_block,
)
from pressroom.services.markdown import heading_anchor


def test_empty_markdown_renders_empty(renderer):
    assert renderer.render("") == ""


def test_headings_get_positional_anchors(renderer):
    html = renderer.render("# Title\n\n## Sub\n\n### Sub-sub")
    assert '<h1 id="heading-0">Title</h1>' in html
    assert '<h2 id="heading-1">Sub</h2>' in html
    assert '<h3 id="heading-2">Sub-sub</h3>' in html


def test_anchor_numbering_ignores_heading_level(renderer):
    html = renderer.render("### a\n\n# b\n\n###### c")
    assert '<h3 id="heading-0">a</h3>' in html
    assert '<h1 id="heading-1">b</h1>' in html
    assert '<h6 id="heading-2">c</h6>' in html


def test_heading_anchor():
    assert heading_anchor(7) == "heading-7"


def test_script_tags_never_survive(renderer):
    html = renderer.render("<script>alert(1)</script>\n\nHello")
    assert "<script" not in html
    assert "Hello" in html


def test_inline_script_and_event_handlers_stripped(renderer):
    html = renderer.render('Hi <img src="x.png" onerror="alert(1)"> <script>x()</script>')
    assert "onerror" not in html
    assert "<script" not in html
    assert '<img src="x.png">' in html


def test_javascript_links_lose_href(renderer):
    html = renderer.render('<a href="javascript:alert(1)">click</a>')
    assert "javascript:" not in html
    assert "click" in html


def test_safe_markup_is_kept(renderer):
    html = renderer.render(
        "Some **bold**, *italic*, ~~gone~~ and [a link](https://example.com).\n\n"
        "| a | b |\n|---|---|\n| 1 | 2 |\n"
    )
    assert "<strong>bold</strong>" in html
    assert "<em>italic</em>" in html
    assert "<s>gone</s>" in html
    assert '<a href="https://example.com">a link</a>' in html
    assert "<table>" in html
    assert "<td>1</td>" in html


def test_html_comments_stripped(renderer):
    html = renderer.render("before <!-- secret --> after")
    assert "secret" not in html


def test_fence_is_highlighted(renderer):
    html = renderer.render("```python\nprint('hi')\n```\n")
    assert '<pre class="highlight" data-language="python">' in html
    assert '<code class="language-python">' in html
    assert '<span class="nb">print</span>' in html


def test_fence_alias_resolves(renderer):
    html = renderer.render("```js\nconst x = 1;\n```\n")
    assert 'data-language="javascript"' in html


def test_unsupported_language_degrades_to_plain(renderer):
    html = renderer.render("```brainfuck\n<b>++</b>\n```\n")
    assert '<pre><code>&lt;b&gt;++&lt;/b&gt;\n</code></pre>' in html
    assert "highlight" not in html


def test_fence_without_language_is_plain(renderer):
    html = renderer.render("```\nplain text\n```\n")
    assert "<pre><code>plain text\n</code></pre>" in html


def test_highlighter_failure_degrades_to_plain(renderer, mocker):
    mocker.patch.object(renderer.highlighter, "highlight", side_effect=ValueError("bad lexer option"))
    html = renderer.render("# Still here\n\n```python\nx = 1\n```\n")
    assert '<h1 id="heading-0">Still here</h1>' in html
    assert "<pre><code>x = 1\n</code></pre>" in html


def test_plain_code_block_escapes():
    assert plain_code_block("a < b & c") == "<pre><code>a &lt; b &amp; c</code></pre>\n"


def test_normalize_language():
    assert normalize_language("Python") == "python"
    assert normalize_language(" ts ") == "typescript"
    assert normalize_language("yml") == "yaml"
    assert normalize_language("cobol") is None
    assert normalize_language("") is None
    assert normalize_language(None) is None


def test_highlighter_loads_lazily():
    highlighter = CodeHighlighter()
    assert not highlighter.loaded
    assert highlighter.supports("rust")
    assert highlighter.loaded
    assert highlighter.load_count == 1


def test_highlighter_loads_once_under_concurrency():
    highlighter = CodeHighlighter()
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        highlighter.highlight("x = 1", "python")

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert highlighter.load_count == 1


def test_unsupported_highlight_returns_none(highlighter):
    assert highlighter.highlight("x", "cobol") is None
    assert not highlighter.supports("cobol")


def test_stylesheet_has_light_and_dark_palettes(highlighter):
    css = highlighter.stylesheet()
    assert ".highlight" in css
    assert '[data-theme="dark"] .highlight' in css
    assert "@media (prefers-color-scheme: dark)" in css


def test_fence_rule_calls_injected_highlighter(renderer, mocker):
    spy = mocker.spy(renderer.highlighter, "highlight")
    html = renderer.render("```ts\nlet n: number = 1;\n```\n")
    spy.assert_called_once_with("let n: number = 1;\n", "ts")
    assert 'data-language="typescript"' in html


def test_programming_errors_in_highlighter_propagate(renderer, mocker):
    mocker.patch.object(renderer.highlighter, "highlight", side_effect=AttributeError("oops"))
    with pytest.raises(AttributeError):
        renderer.render("```python\nx = 1\n```\n")


def test_raw_html_headings_are_numbered_with_markdown_headings(renderer):
    html = renderer.render('<h2 id="heading-0">Injected</h2>\n\n# Real\n\n<h2>Raw</h2>')
    assert '<h2 id="heading-0">Injected</h2>' in html
    assert '<h1 id="heading-1">Real</h1>' in html
    assert '<h2 id="heading-2">Raw</h2>' in html
    assert html.count('id="heading-0"') == 1


def test_author_heading_ids_are_replaced(renderer):
    html = renderer.render('<h3 id="custom">Mine</h3>\n\n## Next')
    assert 'id="custom"' not in html
    assert '<h3 id="heading-0">Mine</h3>' in html
    assert '<h2 id="heading-1">Next</h2>' in html


def test_void_elements_and_escaping_survive_anchoring(renderer):
    html = renderer.render("# T\n\nline one  \nline two & more\n\n---\n")
    assert "<br>" in html
    assert "<br/>" not in html
    assert "<hr>" in html
    assert "two &amp; " in html
