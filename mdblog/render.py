from __future__ import annotations

import html
import logging
import re
from typing import Callable, Optional

import markdown
from markdown.extensions import Extension
from markdown.extensions.abbr import AbbrExtension
from markdown.extensions.admonition import AdmonitionExtension
from markdown.extensions.def_list import DefListExtension
from markdown.extensions.fenced_code import FencedCodeExtension
from markdown.extensions.footnotes import FootnoteExtension
from markdown.extensions.sane_lists import SaneListExtension
from markdown.extensions.smarty import SmartyExtension
from markdown.extensions.tables import TableExtension
from markdown.extensions.toc import TocExtension
from markdown.postprocessors import Postprocessor
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .content import Document
from .marks import MarksExtension

logger = logging.getLogger(__name__)

METADATA_FIELDS = ("title", "author", "date")
HIGHLIGHT_STYLES = {"dark": "monokai", "light": "default"}
CODE_BLOCK_RE = re.compile(
    r'<pre><code class="language-(?P<lang>[^"\s]+)">(?P<code>.*?)</code></pre>', re.DOTALL
)
TAG_RE = re.compile(r"<[^>]+>")
SPACE_RE = re.compile(r"\s+")


def highlight_block(code: str, lang: str) -> Optional[str]:
    """Return highlighted HTML, or None when the block should stay plain."""
    try:
        lexer = get_lexer_by_name(lang, stripnl=False)
    except ClassNotFound:
        return None
    try:
        return highlight(code, lexer, HtmlFormatter(cssclass="highlight"))
    except Exception:
        logger.warning("Highlighting failed for a %s block", lang, exc_info=True)
        return None


def highlight_css(theme: str) -> str:
    """Pygments stylesheet for the given page theme."""
    return HtmlFormatter(style=HIGHLIGHT_STYLES[theme]).get_style_defs(".highlight")


class HighlightPostprocessor(Postprocessor):
    def run(self, text):
        def repl(match: re.Match) -> str:
            code = html.unescape(match.group("code"))
            highlighted = highlight_block(code, match.group("lang"))
            return match.group(0) if highlighted is None else highlighted

        return CODE_BLOCK_RE.sub(repl, text)


class HighlightExtension(Extension):
    def extendMarkdown(self, md):
        # after raw HTML (fenced code output) has been restored
        md.postprocessors.register(HighlightPostprocessor(md), "highlight", 5)


EXTENSION_FACTORIES: list[tuple[str, Callable[[], Extension]]] = [
    ("fenced_code", FencedCodeExtension),
    ("tables", TableExtension),
    ("toc", lambda: TocExtension(anchorlink=True, toc_depth="2-6")),
    ("footnotes", FootnoteExtension),
    ("def_list", DefListExtension),
    ("abbr", AbbrExtension),
    ("admonition", AdmonitionExtension),
    ("smarty", SmartyExtension),
    ("sane_lists", SaneListExtension),
    ("marks", MarksExtension),
    ("highlight", HighlightExtension),
]


def load_extensions(
    factories: list[tuple[str, Callable[[], Extension]]] = EXTENSION_FACTORIES,
) -> list[Extension]:
    extensions = []
    for name, factory in factories:
        try:
            extensions.append(factory())
        except Exception:
            logger.error("Markdown extension %s failed to load; continuing without it", name, exc_info=True)
    return extensions


def make_markdown() -> markdown.Markdown:
    return markdown.Markdown(extensions=load_extensions(), output_format="html")


def render_markdown(text: str) -> str:
    try:
        return make_markdown().convert(text)
    except Exception:
        logger.exception("Markdown rendering failed")
        return f"<pre>{html.escape(text)}</pre>"


def metadata_to_html(meta: dict) -> str:
    spans = []
    for name in METADATA_FIELDS:
        value = meta.get(name)
        text = html.escape(str(value)) if value not in (None, "") else "&nbsp;"
        spans.append(f'<span class="meta-{name} {name}">{text}</span>')
    return f'<div class="metadata">{"".join(spans)}</div>'


def render_document(doc: Document) -> str:
    return metadata_to_html(doc.meta) + render_markdown(doc.body)


def strip_tags(html_text: str) -> str:
    return TAG_RE.sub("", html_text)


def summarize(html_text: str, limit: int = 200) -> str:
    summary = SPACE_RE.sub(" ", html.unescape(strip_tags(html_text))).strip()
    return summary[:limit] + ("..." if len(summary) > limit else "")
