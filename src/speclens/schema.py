"""Depth-bounded structural rendering of JSON Schema nodes.

Schemas in an OpenAPI document form a graph, not a tree: a model may refer
to itself directly (``Node.children: Node[]``) or through a sibling. The
:class:`SchemaFormatter` walks such graphs and renders a readable summary
whose size is bounded by :data:`MAX_SCHEMA_DEPTH` no matter how the graph
is shaped.

Every node is classified exactly once by :func:`classify_schema` into one of
five variants:

* :class:`ArraySchema` -- ``type: array`` with ``items``.
* :class:`ReferenceSchema` -- a literal ``$ref`` pointer.
* :class:`ObjectSchema` -- anything with ``properties``.
* :class:`PrimitiveSchema` -- any other node with a ``type``.
* :class:`UnknownSchema` -- none of the above (``allOf`` compositions,
  empty dicts, non-dict values).

Traversal is written once; how the result looks is decided by an
:class:`Emitter`. :class:`MarkdownEmitter` produces Markdown tables and
:class:`HtmlEmitter` produces escaped HTML fragments.

Example::

    formatter = SchemaFormatter(MarkdownEmitter(), resolver=components.get)
    print(formatter.format(response_schema))
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Union

from speclens.markup import escape_html, render_text

logger = logging.getLogger(__name__)

MAX_SCHEMA_DEPTH = 3
"""Deepest level that is still expanded; deeper nodes become a placeholder."""

SchemaResolver = Callable[[str], Optional[Mapping[str, Any]]]
"""Look up a named component schema; return ``None`` when unknown."""


# --- Variants ---


@dataclass(frozen=True)
class PrimitiveSchema:
    type_name: str
    description: Optional[str] = None


@dataclass(frozen=True)
class ArraySchema:
    items: Any


@dataclass(frozen=True)
class ObjectSchema:
    properties: Mapping[str, Any]
    required: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class ReferenceSchema:
    pointer: str

    @property
    def name(self) -> str:
        return ref_name(self.pointer)


@dataclass(frozen=True)
class UnknownSchema:
    raw: Any = None


SchemaNode = Union[PrimitiveSchema, ArraySchema, ObjectSchema, ReferenceSchema, UnknownSchema]


def ref_name(pointer: str) -> str:
    """Return the last ``/`` segment of a ``$ref`` pointer (``Pet`` for ``#/components/schemas/Pet``)."""
    return pointer.split("/")[-1] or "ref"


def _type_of(schema: Mapping[str, Any]) -> Optional[str]:
    # OpenAPI 3.1 allows a list of types; prefer the first non-null one
    value = schema.get("type")
    if isinstance(value, list):
        non_null = [t for t in value if t != "null"]
        return str(non_null[0]) if non_null else None
    return str(value) if value else None


def classify_schema(schema: Any) -> SchemaNode:
    """Decide which variant *schema* is by looking at the fields present."""
    if not isinstance(schema, Mapping):
        return UnknownSchema(schema)

    type_name = _type_of(schema)
    if type_name == "array" and schema.get("items"):
        return ArraySchema(schema["items"])
    ref = schema.get("$ref")
    if isinstance(ref, str) and ref:
        return ReferenceSchema(ref)
    properties = schema.get("properties")
    if isinstance(properties, Mapping) and properties:
        required = schema.get("required")
        names = frozenset(r for r in required if isinstance(r, str)) if isinstance(required, list) else frozenset()
        return ObjectSchema(properties, names)
    if type_name:
        description = schema.get("description")
        return PrimitiveSchema(type_name, description if isinstance(description, str) else None)
    return UnknownSchema(schema)


def schema_type_name(schema: Any) -> str:
    """Short type label for a schema node.

    ``Pet[]`` for an array of ``Pet`` references, the reference name for a
    ``$ref``, the ``title`` of a titled object, otherwise the declared
    ``type`` or ``object``. ``None`` gives ``unknown``.
    """
    if schema is None:
        return "unknown"
    if not isinstance(schema, Mapping):
        return "object"

    type_name = _type_of(schema)
    if type_name == "array" and schema.get("items"):
        return f"{schema_type_name(schema['items'])}[]"
    ref = schema.get("$ref")
    if isinstance(ref, str) and ref:
        return ref_name(ref)
    title = schema.get("title")
    if isinstance(title, str) and title and type_name in (None, "object"):
        return title
    return type_name or "object"


@dataclass(frozen=True)
class PropertyRow:
    name: str
    type_name: str
    required: bool
    description: str


# --- Emitters ---


class Emitter(ABC):
    """Output syntax used by :class:`SchemaFormatter`.

    Each method returns a finished fragment; the formatter concatenates them.
    """

    @abstractmethod
    def truncated(self, type_name: str) -> str:
        """Placeholder emitted once the depth ceiling is exceeded."""

    @abstractmethod
    def array_of(self, inner: str) -> str: ...

    @abstractmethod
    def named(self, name: str, inner: str) -> str:
        """A resolved reference with its expanded target."""

    @abstractmethod
    def reference(self, name: str) -> str:
        """A reference that could not be resolved."""

    @abstractmethod
    def property_table(self, rows: list[PropertyRow]) -> str: ...

    @abstractmethod
    def expansion(self, label: str, inner: str) -> str:
        """A depth-0 property expanded below the table."""

    @abstractmethod
    def primitive(self, type_name: str, description: Optional[str]) -> str: ...

    @abstractmethod
    def schema_line(self, type_name: str) -> str: ...


class MarkdownEmitter(Emitter):
    """Markdown flavour used by text documentation and the markdown renderer."""

    @staticmethod
    def _cell(text: str) -> str:
        return text.replace("|", "\\|").replace("\n", " ")

    def truncated(self, type_name: str) -> str:
        return f"**Schema:** `{type_name}` (max depth reached)\n\n"

    def array_of(self, inner: str) -> str:
        return "**Array of:**\n\n" + inner

    def named(self, name: str, inner: str) -> str:
        return f"**{name}:**\n\n" + inner

    def reference(self, name: str) -> str:
        return f"**Schema:** `{name}`\n\n"

    def property_table(self, rows: list[PropertyRow]) -> str:
        lines = [
            "| Property | Type | Required | Description |",
            "|----------|------|----------|-------------|",
        ]
        for row in rows:
            lines.append(
                f"| {self._cell(row.name)} | `{row.type_name}` | "
                f"{'Yes' if row.required else 'No'} | {self._cell(row.description)} |"
            )
        return "\n".join(lines) + "\n\n"

    def expansion(self, label: str, inner: str) -> str:
        return f"**{label}:**\n\n" + inner

    def primitive(self, type_name: str, description: Optional[str]) -> str:
        text = f"**Type:** `{type_name}`\n\n"
        if description:
            text += f"**Description:** {description}\n\n"
        return text

    def schema_line(self, type_name: str) -> str:
        return f"**Schema:** `{type_name}`\n\n"


class HtmlEmitter(Emitter):
    """HTML flavour used by the single-page documentation.

    Args:
        text_renderer: Converts free-text descriptions to HTML. Defaults to
            :func:`speclens.markup.render_text`.
    """

    def __init__(self, text_renderer: Callable[[Optional[str]], str] = render_text) -> None:
        self._text = text_renderer

    def truncated(self, type_name: str) -> str:
        return (
            f"<p><strong>Schema:</strong> <code>{escape_html(type_name)}</code> "
            "(max depth reached)</p>"
        )

    def array_of(self, inner: str) -> str:
        return (
            '<div class="example-section"><div class="example-title">Array of:</div>'
            f"{inner}</div>"
        )

    def named(self, name: str, inner: str) -> str:
        return self.expansion(name, inner)

    def reference(self, name: str) -> str:
        return f"<p><strong>Schema:</strong> <code>{escape_html(name)}</code></p>"

    def property_table(self, rows: list[PropertyRow]) -> str:
        parts = [
            "<table><thead><tr><th>Property</th><th>Type</th><th>Required</th>"
            "<th>Description</th></tr></thead><tbody>"
        ]
        for row in rows:
            required = '<span class="required-badge">Required</span>' if row.required else ""
            parts.append(
                f"<tr><td><code>{escape_html(row.name)}</code></td>"
                f"<td><code>{escape_html(row.type_name)}</code></td>"
                f"<td>{required}</td><td>{self._text(row.description)}</td></tr>"
            )
        parts.append("</tbody></table>")
        return "".join(parts)

    def expansion(self, label: str, inner: str) -> str:
        return (
            f'<div class="example-section"><div class="example-title">{escape_html(label)}:</div>'
            f"{inner}</div>"
        )

    def primitive(self, type_name: str, description: Optional[str]) -> str:
        text = f"<p><strong>Type:</strong> <code>{escape_html(type_name)}</code></p>"
        if description:
            text += f"<p><strong>Description:</strong> {self._text(description)}</p>"
        return text

    def schema_line(self, type_name: str) -> str:
        return self.reference(type_name)


# --- Traversal ---


class SchemaFormatter:
    """Walk a schema graph and render it through an :class:`Emitter`.

    Depth starts at 0 and grows by one on every descent into ``items``,
    into the target of a resolved ``$ref``, and into a property expanded
    below a depth-0 table. Nodes deeper than :data:`MAX_SCHEMA_DEPTH` are
    replaced by a one-line placeholder, which is what stops self-referencing
    models from recursing forever.

    Args:
        emitter: Output syntax.
        resolver: Looks up a component schema by name. When omitted, or
            when it fails, ``$ref`` nodes render as their bare name.
        max_depth: Deepest level that is still expanded.
    """

    def __init__(
        self,
        emitter: Emitter,
        resolver: Optional[SchemaResolver] = None,
        max_depth: int = MAX_SCHEMA_DEPTH,
    ) -> None:
        self._emit = emitter
        self._resolver = resolver
        self._max_depth = max_depth

    def format(self, schema: Any, depth: int = 0) -> str:
        """Render *schema* starting at *depth*; empty string for ``None``."""
        if schema is None:
            return ""
        if depth > self._max_depth:
            return self._emit.truncated(schema_type_name(schema))

        node = classify_schema(schema)

        if isinstance(node, ArraySchema):
            return self._emit.array_of(self.format(node.items, depth + 1))

        if isinstance(node, ReferenceSchema):
            target = self._resolve(node.name)
            if target is None:
                return self._emit.reference(node.name)
            return self._emit.named(node.name, self.format(target, depth + 1))

        if isinstance(node, ObjectSchema):
            out = self._emit.property_table(self.property_rows(node))
            if depth == 0:
                out += self._expand_properties(node, depth)
            return out

        if isinstance(node, PrimitiveSchema):
            return self._emit.primitive(node.type_name, node.description)

        return self._emit.schema_line(schema_type_name(schema))

    def property_rows(self, node: ObjectSchema) -> list[PropertyRow]:
        rows: list[PropertyRow] = []
        for name, prop in node.properties.items():
            description = prop.get("description") if isinstance(prop, Mapping) else None
            rows.append(
                PropertyRow(
                    name=str(name),
                    type_name=schema_type_name(prop),
                    required=name in node.required,
                    description=description if isinstance(description, str) else "",
                )
            )
        return rows

    def _expand_properties(self, node: ObjectSchema, depth: int) -> str:
        out = ""
        for name, prop in node.properties.items():
            prop_node = classify_schema(prop)
            if isinstance(prop_node, ArraySchema):
                items = classify_schema(prop_node.items)
                if isinstance(items, ReferenceSchema):
                    out += self._emit.expansion(
                        f"{name} items ({items.name})",
                        self.format(prop_node.items, depth + 1),
                    )
            elif isinstance(prop_node, ReferenceSchema):
                out += self._emit.expansion(
                    f"{name} ({prop_node.name})", self.format(prop, depth + 1)
                )
        return out

    def _resolve(self, name: str) -> Optional[Mapping[str, Any]]:
        if self._resolver is None:
            return None
        try:
            target = self._resolver(name)
        except Exception:
            logger.debug("Schema lookup for %r failed", name, exc_info=True)
            return None
        return target if isinstance(target, Mapping) else None


def components_resolver(spec: Mapping[str, Any]) -> SchemaResolver:
    """Build a resolver over ``components.schemas`` (or Swagger 2 ``definitions``)."""

    def _lookup(name: str) -> Optional[Mapping[str, Any]]:
        components = spec.get("components")
        schemas = components.get("schemas") if isinstance(components, Mapping) else None
        if not isinstance(schemas, Mapping):
            schemas = spec.get("definitions")
        if not isinstance(schemas, Mapping):
            return None
        return schemas.get(name)

    return _lookup
