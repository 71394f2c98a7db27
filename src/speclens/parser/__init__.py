"""OpenAPI document loading and ``$ref`` dereferencing.

This sub-package is the session store's spec-loader collaborator: it turns
a source descriptor (local path, URL, or ``-`` for stdin) into a plain
dictionary, and optionally inlines internal ``$ref`` pointers.

Typical usage::

    from speclens.parser import load_spec, validate_spec_version, resolve_refs

    raw = load_spec("https://petstore3.swagger.io/api/v3/openapi.json")
    version = validate_spec_version(raw)
    spec = resolve_refs(raw)

Sub-modules:

* :mod:`~speclens.parser.loader` -- I/O layer (URL, file, stdin) plus format
  detection and version validation.
* :mod:`~speclens.parser.resolver` -- Recursive ``$ref`` resolution with
  circular-reference detection.
"""

from speclens.parser.loader import detect_source_type, load_spec, validate_spec_version
from speclens.parser.resolver import resolve_refs

__all__ = ["detect_source_type", "load_spec", "resolve_refs", "validate_spec_version"]
