"""Canonical Pydantic models shared across all speclens modules.

This is the single source of truth for data shapes in the project. The models
fall into three groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`GlobalConfig` and the persisted session index row
    :class:`PersistedSession`.

**Query option bundles** -- immutable per-call settings:
    :class:`QueryOptions` and :class:`DocumentationOptions`.

**Result models** -- produced by :mod:`speclens.query` and consumed by the
renderers in :mod:`speclens.render`:
    :class:`EndpointSummary`, :class:`ParameterInfo`,
    :class:`RequestBodyInfo`, :class:`ResponseInfo`,
    :class:`EndpointDetails`, :class:`SessionInfo`, :class:`EndpointList`,
    :class:`TagList`, :class:`SuccessMessage`, and :class:`ErrorMessage`.

Result models serialise with camelCase keys (``operationId``,
``statusCode``...) so that the ``json`` output format mirrors the shape of
the OpenAPI document itself.
"""

from __future__ import annotations

import enum
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# --- Enumerations ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised on an OpenAPI path item.

    Declaration order is the canonical enumeration order used when listing
    endpoints.
    """

    GET = "get"
    POST = "post"
    PUT = "put"
    DELETE = "delete"
    PATCH = "patch"
    HEAD = "head"
    OPTIONS = "options"
    TRACE = "trace"


class OutputFormat(str, enum.Enum):
    """Output formats understood by :func:`speclens.render.get_renderer`.

    ``JSON`` is the lossless structured encoding, ``COMPACT`` the terse
    one-line-per-item text, ``STRUCTURED`` labelled readable text, and
    ``MARKDOWN`` document markup.
    """

    JSON = "json"
    COMPACT = "compact"
    STRUCTURED = "structured"
    MARKDOWN = "markdown"

    @classmethod
    def parse(cls, value: Optional[str], default: "OutputFormat | None" = None) -> "OutputFormat":
        """Return the member named by *value*, or *default* (compact) if unknown."""
        fallback = default or cls.COMPACT
        if value is None:
            return fallback
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return fallback


class SourceType(str, enum.Enum):
    """Where a session's document came from."""

    FILE = "file"
    URL = "url"
    STDIN = "stdin"


class DocumentationFormat(str, enum.Enum):
    """Output flavours of the documentation generator."""

    MARKDOWN = "markdown"
    HTML = "html"

    @property
    def extension(self) -> str:
        return ".html" if self is DocumentationFormat.HTML else ".md"


# --- Configuration ---


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/speclens/config.json``.

    Loaded by :func:`~speclens.config.load_global_config`. Environment
    variables override the stored values, see
    :func:`~speclens.config.resolve_config`.
    """

    default_output_format: OutputFormat = Field(
        default=OutputFormat.COMPACT,
        description="Render format for new sessions: json, compact, structured, markdown",
    )
    session_ttl_days: int = Field(
        default=7, ge=1, description="Drop persisted sessions idle for this many days"
    )


class PersistedSession(BaseModel):
    """One row of the session index (``<config-dir>/sessions.json``).

    Only enough is stored to rehydrate the session after a restart: the
    specification itself is re-read from ``source``.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    source: str
    source_type: SourceType = SourceType.FILE
    created_at: datetime
    last_accessed: datetime
    output_format: OutputFormat = OutputFormat.COMPACT


# --- Option bundles ---


class QueryOptions(BaseModel):
    """Inclusion flags for :func:`~speclens.query.get_endpoint_details`.

    Frozen: build a new instance per call instead of mutating one.
    """

    model_config = ConfigDict(frozen=True)

    include_parameters: bool = True
    include_request_body: bool = True
    include_responses: bool = True
    include_security: bool = False
    include_examples: bool = False
    include_schemas: bool = True
    response_status_codes: Optional[tuple[str, ...]] = Field(
        default=None, description="Allow-list of response status codes"
    )


class DocumentationOptions(BaseModel):
    """Settings for :class:`~speclens.docs.DocumentationGenerator`."""

    model_config = ConfigDict(frozen=True)

    output_directory: Path = Field(default_factory=Path.cwd)
    filename: Optional[str] = None
    format: DocumentationFormat = DocumentationFormat.MARKDOWN
    include_table_of_contents: bool = True
    include_endpoints: bool = True
    include_components: bool = True
    include_security: bool = True
    include_examples: bool = False
    group_by_tags: bool = True


# --- Result models ---


class _ResultModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        """Dump with camelCase keys, dropping unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class EndpointSummary(_ResultModel):
    """One (path, method) pair with the operation's identifying metadata."""

    path: str
    method: str
    operation_id: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[list[str]] = None


class ParameterInfo(_ResultModel):
    """A single path-level or operation-level parameter."""

    name: str
    location: str = Field(alias="in")
    required: Optional[bool] = None
    type: Optional[str] = None
    description: Optional[str] = None
    example: Any = None
    schema_: Optional[dict[str, Any]] = Field(default=None, alias="schema")


class RequestBodyInfo(_ResultModel):
    """Request body reduced to its first declared content type."""

    required: Optional[bool] = None
    content_type: Optional[str] = None
    schema_: Optional[dict[str, Any]] = Field(default=None, alias="schema")
    examples: Any = None


class ResponseInfo(_ResultModel):
    """Response for one status code, reduced to its first content type."""

    status_code: str
    description: Optional[str] = None
    content_type: Optional[str] = None
    schema_: Optional[dict[str, Any]] = Field(default=None, alias="schema")
    examples: Any = None


class EndpointDetails(EndpointSummary):
    """An :class:`EndpointSummary` plus whatever the caller opted into.

    Each optional section stays ``None`` unless the matching
    :class:`QueryOptions` flag requested it.
    """

    parameters: Optional[list[ParameterInfo]] = None
    request_body: Optional[RequestBodyInfo] = None
    responses: Optional[list[ResponseInfo]] = None
    security: Optional[list[dict[str, Any]]] = None


class SessionInfo(_ResultModel):
    """Headline facts about a loaded specification."""

    title: Optional[str] = None
    version: Optional[str] = None
    description: Optional[str] = None
    base_url: Optional[str] = None


class EndpointList(_ResultModel):
    count: int
    endpoints: list[EndpointSummary] = Field(default_factory=list)

    @classmethod
    def of(cls, endpoints: list[EndpointSummary]) -> "EndpointList":
        return cls(count=len(endpoints), endpoints=endpoints)


class TagList(_ResultModel):
    count: int
    tags: list[str] = Field(default_factory=list)

    @classmethod
    def of(cls, tags: list[str]) -> "TagList":
        return cls(count=len(tags), tags=tags)


class SuccessMessage(_ResultModel):
    success: bool = True
    session_id: Optional[str] = None
    message: str


class ErrorMessage(_ResultModel):
    error: bool = True
    message: str
