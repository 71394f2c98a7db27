"""Inline internal ``$ref`` pointers.

:func:`resolve_refs` returns a dereferenced deep copy of a document. Only
``#/...`` pointers are followed (RFC 6901, including ``~0``/``~1``
escapes); anything else raises :class:`~speclens.exceptions.SpecParseError`
and the session store keeps the raw document instead.

Each pointer is expanded once per document and every occurrence shares the
resulting object, so heavily reused components cost linear space. A pointer
that is already being expanded further up the same branch is a cycle; it is
left as the literal ``{"$ref": ...}`` node, so a self-referencing schema is
inlined once and then points back at itself.

When a named schema (``#/components/schemas/X`` or ``#/definitions/X``) is
inlined and has no ``title``, the copy is titled ``X`` so renderers can
still call it by name.
"""

from __future__ import annotations

import copy
from typing import Any, Optional

from speclens.exceptions import SpecParseError

_NAMED_SCHEMA_PREFIXES = ("#/components/schemas/", "#/definitions/")


def resolve_refs(spec: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of *spec* with every internal ``$ref`` inlined.

    Raises:
        SpecParseError: For external references and pointers to locations
            that do not exist.
    """
    root = copy.deepcopy(spec)
    return _inline(root, root, (), {})


def _unescape(segment: str) -> str:
    return segment.replace("~1", "/").replace("~0", "~")


def _follow_pointer(ref: Any, root: dict[str, Any]) -> Any:
    """Walk *root* along the JSON pointer in *ref*."""
    if not isinstance(ref, str) or not ref.startswith("#/"):
        raise SpecParseError(f"External $ref not supported: {ref} (only '#/...' pointers are followed)")

    target: Any = root
    for raw in ref[2:].split("/"):
        segment = _unescape(raw)
        if isinstance(target, dict):
            if segment not in target:
                raise SpecParseError(f"Cannot resolve $ref '{ref}': '{segment}' not found")
            target = target[segment]
        elif isinstance(target, list):
            if not segment.isdigit() or int(segment) >= len(target):
                raise SpecParseError(f"Cannot resolve $ref '{ref}': invalid array index '{segment}'")
            target = target[int(segment)]
        else:
            raise SpecParseError(f"Cannot resolve $ref '{ref}': {type(target).__name__} has no '{segment}'")
    return target


def _schema_name(ref: str) -> Optional[str]:
    for prefix in _NAMED_SCHEMA_PREFIXES:
        rest = ref[len(prefix):] if ref.startswith(prefix) else ""
        if rest and "/" not in rest:
            return _unescape(rest)
    return None


def _inline(
    node: Any,
    root: dict[str, Any],
    expanding: tuple[str, ...],
    expanded: dict[str, Any],
) -> Any:
    # ``expanding`` holds the pointers open on this branch and only decides
    # cycles; ``expanded`` maps finished pointers to their shared result.
    if isinstance(node, list):
        return [_inline(item, root, expanding, expanded) for item in node]
    if not isinstance(node, dict):
        return node
    if "$ref" not in node:
        return {key: _inline(value, root, expanding, expanded) for key, value in node.items()}

    ref = node["$ref"]
    if ref in expanding:
        return node
    if isinstance(ref, str) and ref in expanded:
        return expanded[ref]
    target = _inline(_follow_pointer(ref, root), root, expanding + (ref,), expanded)
    name = _schema_name(ref)
    if name and isinstance(target, dict) and "title" not in target:
        target = {"title": name, **target}
    expanded[ref] = target
    return target
