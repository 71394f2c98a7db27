"""Output formats for query results.

Each :class:`~speclens.models.OutputFormat` maps to one :class:`Renderer`
implementation; :func:`get_renderer` is a plain table lookup that falls back
to compact for unknown or missing names.
"""

from __future__ import annotations

from typing import Optional, Union

from speclens.models import OutputFormat
from speclens.render.base import Renderer
from speclens.render.compact import CompactRenderer
from speclens.render.json_format import JsonRenderer
from speclens.render.markdown_format import MarkdownRenderer
from speclens.render.structured import StructuredRenderer
from speclens.schema import SchemaResolver

RENDERERS: dict[OutputFormat, type[Renderer]] = {
    OutputFormat.JSON: JsonRenderer,
    OutputFormat.COMPACT: CompactRenderer,
    OutputFormat.STRUCTURED: StructuredRenderer,
    OutputFormat.MARKDOWN: MarkdownRenderer,
}


def get_renderer(
    name: Union[OutputFormat, str, None], resolver: Optional[SchemaResolver] = None
) -> Renderer:
    """Return the renderer for *name*; compact when it is unknown or ``None``."""
    return RENDERERS[OutputFormat.parse(name)](resolver)


__all__ = [
    "CompactRenderer",
    "JsonRenderer",
    "MarkdownRenderer",
    "RENDERERS",
    "Renderer",
    "StructuredRenderer",
    "get_renderer",
]
