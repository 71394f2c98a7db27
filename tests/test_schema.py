"""Tests for speclens.schema -- classification, type names, bounded formatting."""

from __future__ import annotations

from typing import Any

import pytest

from speclens.schema import (
    MAX_SCHEMA_DEPTH,
    ArraySchema,
    HtmlEmitter,
    MarkdownEmitter,
    ObjectSchema,
    PrimitiveSchema,
    ReferenceSchema,
    SchemaFormatter,
    UnknownSchema,
    classify_schema,
    components_resolver,
    ref_name,
    schema_type_name,
)


def _markdown(spec: dict[str, Any] | None = None) -> SchemaFormatter:
    return SchemaFormatter(MarkdownEmitter(), resolver=components_resolver(spec) if spec else None)


# ---------------------------------------------------------------------------
# classify_schema / schema_type_name
# ---------------------------------------------------------------------------


class TestClassifySchema:
    @pytest.mark.parametrize(
        "schema, variant",
        [
            ({"type": "array", "items": {"type": "string"}}, ArraySchema),
            ({"$ref": "#/components/schemas/Pet"}, ReferenceSchema),
            ({"type": "object", "properties": {"id": {"type": "integer"}}}, ObjectSchema),
            ({"type": "string"}, PrimitiveSchema),
            ({"type": "object"}, PrimitiveSchema),
            ({"allOf": [{"type": "string"}]}, UnknownSchema),
            ({}, UnknownSchema),
            ("not a schema", UnknownSchema),
        ],
    )
    def test_variants(self, schema: Any, variant: type) -> None:
        assert isinstance(classify_schema(schema), variant)

    def test_array_without_items_is_primitive(self) -> None:
        assert classify_schema({"type": "array"}) == PrimitiveSchema("array")

    def test_required_names_collected(self) -> None:
        node = classify_schema(
            {"properties": {"a": {}, "b": {}}, "required": ["a", 3]}
        )
        assert node == ObjectSchema({"a": {}, "b": {}}, frozenset({"a"}))


class TestSchemaTypeName:
    @pytest.mark.parametrize(
        "schema, expected",
        [
            ({"type": "array", "items": {"$ref": "#/components/schemas/Pet"}}, "Pet[]"),
            ({"type": "array", "items": {"type": "array", "items": {"type": "string"}}}, "string[][]"),
            ({"$ref": "#/definitions/Legacy"}, "Legacy"),
            ({"title": "Pet", "type": "object", "properties": {}}, "Pet"),
            ({"title": "Ignored", "type": "string"}, "string"),
            ({"type": ["string", "null"]}, "string"),
            ({}, "object"),
            (None, "unknown"),
            (42, "object"),
        ],
    )
    def test_names(self, schema: Any, expected: str) -> None:
        assert schema_type_name(schema) == expected

    def test_ref_name_takes_last_segment(self) -> None:
        assert ref_name("#/components/schemas/Pet") == "Pet"
        assert ref_name("#/") == "ref"


# ---------------------------------------------------------------------------
# SchemaFormatter
# ---------------------------------------------------------------------------


class TestSchemaFormatter:
    def test_object_table(self, petstore_raw: dict[str, Any]) -> None:
        out = _markdown(petstore_raw).format(petstore_raw["components"]["schemas"]["Pet"])
        assert "| Property | Type | Required | Description |" in out
        assert "| id | `integer` | Yes |" in out
        assert "| name | `string` | Yes | Pet name |" in out

    def test_array_of_ref_expands_target(self, petstore_raw: dict[str, Any]) -> None:
        schema = {"type": "array", "items": {"$ref": "#/components/schemas/Pet"}}
        out = _markdown(petstore_raw).format(schema)
        assert out.startswith("**Array of:**")
        assert "**Pet:**" in out
        assert "| name | `string` |" in out

    def test_depth_zero_expands_ref_properties(self, petstore_raw: dict[str, Any]) -> None:
        node = petstore_raw["components"]["schemas"]["Node"]
        out = _markdown(petstore_raw).format(node)
        assert "| children | `Node[]` | No |" in out
        assert "**children items (Node):**" in out

    def test_nested_properties_not_expanded_below_depth_zero(self, petstore_raw: dict[str, Any]) -> None:
        node = petstore_raw["components"]["schemas"]["Node"]
        out = _markdown(petstore_raw).format(node)
        # Only the depth-0 table expands children; the nested Node table does not
        assert out.count("children items (Node)") == 1

    def test_self_referencing_alias_stops_at_ceiling(self) -> None:
        spec = {"components": {"schemas": {"Loop": {"$ref": "#/components/schemas/Loop"}}}}
        out = _markdown(spec).format({"$ref": "#/components/schemas/Loop"})
        assert out.count("**Loop:**") == MAX_SCHEMA_DEPTH + 1
        assert out.count("(max depth reached)") == 1

    def test_deep_arrays_truncate(self) -> None:
        schema: dict[str, Any] = {"type": "string"}
        for _ in range(MAX_SCHEMA_DEPTH + 1):
            schema = {"type": "array", "items": schema}
        out = _markdown().format(schema)
        assert out.endswith("**Schema:** `string` (max depth reached)\n\n")

    def test_custom_max_depth(self) -> None:
        schema = {"type": "array", "items": {"type": "array", "items": {"type": "integer"}}}
        out = SchemaFormatter(MarkdownEmitter(), max_depth=1).format(schema)
        assert "(max depth reached)" in out

    def test_unresolvable_ref_renders_bare_name(self) -> None:
        out = _markdown({"components": {"schemas": {}}}).format({"$ref": "#/components/schemas/Gone"})
        assert out == "**Schema:** `Gone`\n\n"

    def test_failing_resolver_falls_back(self) -> None:
        def boom(name: str) -> Any:
            raise KeyError(name)

        out = SchemaFormatter(MarkdownEmitter(), resolver=boom).format({"$ref": "#/x/Pet"})
        assert out == "**Schema:** `Pet`\n\n"

    def test_primitive_with_description(self) -> None:
        out = _markdown().format({"type": "string", "description": "A name"})
        assert out == "**Type:** `string`\n\n**Description:** A name\n\n"

    def test_none_is_empty(self) -> None:
        assert _markdown().format(None) == ""

    def test_unknown_shape_gets_schema_line(self) -> None:
        assert _markdown().format({"allOf": []}) == "**Schema:** `object`\n\n"

    def test_pipes_escaped_in_cells(self) -> None:
        out = _markdown().format(
            {"properties": {"mode": {"type": "string", "description": "a | b"}}}
        )
        assert "a \\| b" in out


class TestHtmlEmitter:
    def test_names_are_escaped(self) -> None:
        out = SchemaFormatter(HtmlEmitter()).format(
            {"properties": {"<b>": {"type": "string"}}, "required": ["<b>"]}
        )
        assert "<code>&lt;b&gt;</code>" in out
        assert "required-badge" in out

    def test_description_rendered_as_markdown(self) -> None:
        out = SchemaFormatter(HtmlEmitter()).format({"type": "string", "description": "**bold**"})
        assert "<strong>bold</strong>" in out


class TestComponentsResolver:
    def test_openapi3(self, petstore_raw: dict[str, Any]) -> None:
        assert components_resolver(petstore_raw)("Pet")["required"] == ["id", "name"]

    def test_swagger2_definitions(self) -> None:
        resolver = components_resolver({"definitions": {"Pet": {"type": "object"}}})
        assert resolver("Pet") == {"type": "object"}

    def test_missing(self) -> None:
        assert components_resolver({})("Pet") is None
