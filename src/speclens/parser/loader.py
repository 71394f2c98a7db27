"""Read OpenAPI/Swagger documents from a URL, a local file, or stdin.

Reading and parsing are split: each reader returns the raw text plus a
syntax hint (``"json"``, ``"yaml"`` or ``None`` when unknown), and
:func:`parse_document` turns that text into a mapping. JSON is tried before
YAML when the hint is missing, since every JSON document is also YAML but
the JSON parser reports errors more precisely.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import httpx
import yaml

from speclens.exceptions import SpecParseError
from speclens.models import SourceType

logger = logging.getLogger(__name__)

FETCH_TIMEOUT = 30.0

_SUFFIX_SYNTAX = {".json": "json", ".yaml": "yaml", ".yml": "yaml"}

# (document field, accepted major version, label for messages)
_VERSION_FIELDS = (("openapi", "3", "OpenAPI"), ("swagger", "2", "Swagger"))


def detect_source_type(source: str) -> SourceType:
    """``stdin`` for ``-``, ``url`` for ``http(s)://`` descriptors, ``file`` otherwise."""
    if source == "-":
        return SourceType.STDIN
    if source.startswith(("http://", "https://")):
        return SourceType.URL
    return SourceType.FILE


def load_spec(source: str) -> dict[str, Any]:
    """Read and parse the document named by *source*.

    Args:
        source: ``-`` for stdin, an ``http(s)://`` URL, or a file path.

    Returns:
        The top-level mapping of the document.

    Raises:
        SpecParseError: If the source cannot be read or does not hold a
            JSON/YAML mapping.
    """
    source_type = detect_source_type(source)
    if source_type is SourceType.STDIN:
        text, syntax = _read_stdin(), None
    elif source_type is SourceType.URL:
        text, syntax = _fetch(source)
    else:
        text, syntax = _read_file(source)
    logger.debug("Read %d characters from %s (syntax hint: %s)", len(text), source, syntax)
    return parse_document(text, syntax)


def _read_stdin() -> str:
    try:
        text = sys.stdin.read()
    except (OSError, ValueError) as exc:
        raise SpecParseError(f"Failed to read from stdin: {exc}") from exc
    if not text.strip():
        raise SpecParseError("No input received from stdin")
    return text


def _fetch(url: str) -> tuple[str, Optional[str]]:
    """GET *url*; the ``Content-Type`` header becomes the syntax hint."""
    try:
        response = httpx.get(url, timeout=FETCH_TIMEOUT, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SpecParseError(f"HTTP {exc.response.status_code} fetching spec from {url}") from exc
    except httpx.RequestError as exc:
        raise SpecParseError(f"Failed to fetch spec from {url}: {exc}") from exc
    except httpx.InvalidURL as exc:
        raise SpecParseError(f"Invalid URL {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "").lower()
    if "json" in content_type:
        return response.text, "json"
    if "yaml" in content_type or "yml" in content_type:
        return response.text, "yaml"
    return response.text, None


def _read_file(path: str) -> tuple[str, Optional[str]]:
    """Read a local file; a known extension becomes the syntax hint."""
    file_path = Path(path).expanduser()
    if not file_path.is_file():
        raise SpecParseError(f"Spec file not found: {path}")
    try:
        text = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SpecParseError(f"Failed to read spec file {path}: {exc}") from exc
    if not text.strip():
        raise SpecParseError(f"Spec file is empty: {path}")
    return text, _SUFFIX_SYNTAX.get(file_path.suffix.lower())


def parse_document(text: str, syntax: Optional[str] = None) -> dict[str, Any]:
    """Parse *text* as JSON or YAML.

    Args:
        text: Document body.
        syntax: ``"json"`` parses strictly as JSON, ``"yaml"`` goes straight
            to YAML, ``None`` tries JSON first and falls back to YAML.

    Raises:
        SpecParseError: If parsing fails or the top level is not a mapping.
    """
    if syntax == "json":
        try:
            return _require_mapping(json.loads(text))
        except json.JSONDecodeError as exc:
            raise SpecParseError(f"Invalid JSON: {exc}") from exc

    problems: list[str] = []
    if syntax is None:
        try:
            return _require_mapping(json.loads(text))
        except json.JSONDecodeError as exc:
            problems.append(f"JSON error: {exc}")

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        problems.append(f"YAML error: {exc}")
        raise SpecParseError(
            "Could not parse document as JSON or YAML\n  " + "\n  ".join(problems)
        ) from exc
    return _require_mapping(data)


def _require_mapping(data: Any) -> dict[str, Any]:
    if isinstance(data, dict):
        return data
    got = "empty document" if data is None else type(data).__name__
    raise SpecParseError(f"Spec must be a JSON/YAML object (got {got})")


def validate_spec_version(spec: dict[str, Any]) -> str:
    """Return the declared ``openapi``/``swagger`` version.

    OpenAPI 3.x and Swagger 2.x are accepted.

    Raises:
        SpecParseError: If no version field is present or its major version
            is not supported.
    """
    for field, major, label in _VERSION_FIELDS:
        if field not in spec:
            continue
        version = str(spec[field])
        if version.split(".", 1)[0] != major:
            raise SpecParseError(f"Unsupported {label} version: {version} (expected {major}.x)")
        return version
    raise SpecParseError("Missing 'openapi' or 'swagger' field; this is not an OpenAPI/Swagger document")
