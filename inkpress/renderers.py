"""Markdown rendering for inkpress.

This module converts page bodies from Markdown to HTML using mistune with
every bundled extension that matters for content pages (tables, footnotes,
strikethrough, task lists and so on). Conversion never fails: any text
produces some HTML.

Key classes:
- MarkdownRenderer: Renders Markdown to HTML with optional syntax highlighting.

Key functions:
- parse_document: Split front-matter and render the body in one call.
"""

from __future__ import annotations

import re

import mistune

from .extractors import split_frontmatter

MARKDOWN_PLUGINS = [
    "strikethrough",
    "footnotes",
    "table",
    "url",
    "task_lists",
    "def_list",
    "abbr",
    "mark",
    "insert",
    "superscript",
    "subscript",
]


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    Args:
        text: The heading text.

    Returns:
        URL-friendly slug suitable for anchor links.
    """
    slug = re.sub(r"<[^>]+>", "", text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-")


class _HighlightRenderer(mistune.HTMLRenderer):
    """HTML renderer with heading anchors and Pygments code highlighting.

    Attributes:
        highlight: Whether fenced code blocks with a language are highlighted.
    """

    def __init__(self, highlight: bool = True):
        super().__init__(escape=False)
        self.highlight = highlight
        self._heading_id_counts: dict[str, int] = {}

    def heading(self, text: str, level: int, **attrs) -> str:
        base_id = _generate_heading_id(text)

        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._heading_id_counts[base_id]}"
        else:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id

        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a code block, highlighted when the language is known.

        Args:
            code: The code content.
            info: Language identifier (e.g., 'python', 'javascript').

        Returns:
            HTML string with highlighted code.
        """
        lang = info.split()[0] if info and info.strip() else None
        if lang and self.highlight:
            from pygments import highlight
            from pygments.formatters import HtmlFormatter
            from pygments.lexers import get_lexer_by_name
            from pygments.util import ClassNotFound

            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                formatter = HtmlFormatter(nowrap=False, cssclass="highlight")
                return highlight(code, lexer, formatter)
        escaped = code.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
        lang_class = f' class="language-{lang}"' if lang else ""
        return f"<pre><code{lang_class}>{escaped}</code></pre>\n"


class MarkdownRenderer:
    """Renders Markdown content to HTML.

    A fresh mistune parser is created per call because heading IDs are
    tracked per document, which also keeps the renderer safe to share
    between threads.
    """

    def __init__(self, highlight: bool = True):
        self.highlight = highlight

    def render(self, content: str) -> str:
        """Render Markdown content to HTML.

        Args:
            content: Markdown source content.

        Returns:
            Rendered HTML.
        """
        renderer = _HighlightRenderer(highlight=self.highlight)
        markdown = mistune.create_markdown(renderer=renderer, plugins=MARKDOWN_PLUGINS)
        return markdown(content)


def parse_document(text: str, highlight: bool = True) -> tuple[str | None, str]:
    """Split a page into metadata text and rendered HTML body.

    Args:
        text: Raw page content.
        highlight: Whether to syntax-highlight fenced code blocks.

    Returns:
        Tuple of (raw metadata text or None, body HTML).
    """
    metadata, body = split_frontmatter(text)
    return metadata, MarkdownRenderer(highlight=highlight).render(body)
