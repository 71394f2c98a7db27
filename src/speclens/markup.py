"""HTML escaping and Markdown-to-HTML helpers for generated documentation.

Free-text fields of an OpenAPI document (descriptions, summaries) are
usually plain prose, but some authors write CommonMark. Running every
string through a Markdown converter would reinterpret plain text, so
:func:`render_text` only converts when :func:`looks_like_markdown` says the
string contains Markdown syntax; otherwise it escapes the text and turns
newlines into ``<br>``.
"""

from __future__ import annotations

import re

import markdown
from markupsafe import Markup, escape

_MARKDOWN_CHARS = re.compile(r"[#*_`\[\]()]")
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


def escape_html(text: object) -> str:
    """Escape ``&``, ``<``, ``>``, ``"`` and ``'`` for safe HTML embedding."""
    return str(escape("" if text is None else str(text)))


def looks_like_markdown(text: str) -> bool:
    """Heuristic: Markdown punctuation or a blank-line paragraph break."""
    return bool(_MARKDOWN_CHARS.search(text) or _PARAGRAPH_BREAK.search(text))


def render_text(text: str | None) -> Markup:
    """Render a free-text field as HTML.

    Returns:
        :class:`markupsafe.Markup` so Jinja2 autoescaping leaves it alone.
    """
    if not text:
        return Markup("")
    if looks_like_markdown(text):
        return Markup(markdown.markdown(text, extensions=["tables", "fenced_code"]))
    return Markup(escape_html(text).replace("\n", "<br>"))


def slugify(text: str) -> str:
    """Lowercase, collapse non-alphanumeric runs into ``-``, trim hyphens."""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower())
    return slug.strip("-")
