"""Named-tool surface over the session store.

An agent host calls :meth:`ToolDispatcher.dispatch` with a tool name and a
JSON-like ``arguments`` mapping (camelCase keys, as advertised in
:data:`TOOL_DEFINITIONS`). Every call returns a :class:`ToolResult`; no
exception escapes. Failures are rendered with the compact renderer's
``render_error`` and flagged ``is_error``.

Arguments are validated by Pydantic models, one per tool. The same models
produce the JSON input schemas listed in :data:`TOOL_DEFINITIONS`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from speclens.docs import DocumentationGenerator
from speclens.exceptions import EndpointNotFoundError, InvalidUsageError, SessionNotFoundError, SpeclensError
from speclens.models import (
    DocumentationFormat,
    DocumentationOptions,
    EndpointList,
    ErrorMessage,
    OutputFormat,
    QueryOptions,
    SuccessMessage,
    TagList,
)
from speclens.query import QueryEngine
from speclens.render import CompactRenderer, Renderer, get_renderer
from speclens.schema import components_resolver
from speclens.session import SessionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolResult:
    text: str
    is_error: bool = False


# --- Argument models ---


class _Args(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class _SessionArgs(_Args):
    session_id: str = Field(description="The session ID returned from initialize_session")


class InitializeSessionArgs(_Args):
    source: str = Field(
        description="Path to the OpenAPI JSON or YAML file, or URL to fetch the specification from"
    )
    output_format: Optional[OutputFormat] = Field(
        default=None,
        description="Output format for responses (default: compact). "
        "Can be changed later with set_output_format.",
    )


class SetOutputFormatArgs(_SessionArgs):
    output_format: OutputFormat = Field(
        description="'json' (full JSON), 'compact' (minimal text), "
        "'structured' (readable text), 'markdown' (formatted docs)"
    )


class ListEndpointsArgs(_SessionArgs):
    tags: Optional[list[str]] = Field(default=None, description="Filter endpoints by tags")
    methods: Optional[list[str]] = Field(
        default=None, description="Filter endpoints by HTTP methods (GET, POST, PUT, DELETE, etc.)"
    )


class EndpointDetailsArgs(_SessionArgs):
    path: str = Field(description="The endpoint path (e.g., '/users/{id}')")
    method: str = Field(description="The HTTP method (GET, POST, PUT, DELETE, etc.)")
    include_parameters: bool = Field(default=True, description="Include parameter information")
    include_request_body: bool = Field(default=True, description="Include request body schema")
    include_responses: bool = Field(default=True, description="Include response information")
    include_security: bool = Field(default=False, description="Include security requirements")
    include_examples: bool = Field(default=False, description="Include examples")
    include_schemas: bool = Field(default=True, description="Include detailed schema information")
    response_status_codes: Optional[list[str]] = Field(
        default=None, description="Filter responses by status codes (e.g., ['200', '400'])"
    )

    def query_options(self) -> QueryOptions:
        return QueryOptions(
            include_parameters=self.include_parameters,
            include_request_body=self.include_request_body,
            include_responses=self.include_responses,
            include_security=self.include_security,
            include_examples=self.include_examples,
            include_schemas=self.include_schemas,
            response_status_codes=tuple(self.response_status_codes)
            if self.response_status_codes is not None
            else None,
        )


class ComponentsArgs(_SessionArgs):
    component_type: Optional[str] = Field(
        default=None,
        description="Specific component type (schemas, responses, parameters, examples, "
        "requestBodies, headers, securitySchemes, links, callbacks)",
    )


class GenerateDocumentationArgs(_SessionArgs):
    output_directory: Optional[str] = Field(
        default=None, description="Directory to save the documentation file (default: current directory)"
    )
    filename: Optional[str] = Field(
        default=None, description="Filename for the documentation (default: derived from the API title)"
    )
    format: DocumentationFormat = Field(
        default=DocumentationFormat.MARKDOWN,
        description="'markdown' for a .md file or 'html' for a single-page HTML document",
    )
    include_table_of_contents: bool = Field(default=True, description="Include table of contents")
    include_endpoints: bool = Field(default=True, description="Include endpoints documentation")
    include_components: bool = Field(default=True, description="Include components documentation")
    include_security: bool = Field(default=True, description="Include security information in endpoints")
    include_examples: bool = Field(default=False, description="Include examples")
    group_by_tags: bool = Field(default=True, description="Group endpoints by tags")

    def documentation_options(self) -> DocumentationOptions:
        fields = self.model_dump(exclude={"session_id", "output_directory"})
        if self.output_directory:
            fields["output_directory"] = Path(self.output_directory)
        return DocumentationOptions(**fields)


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    arguments: type[_Args]

    @property
    def input_schema(self) -> dict[str, Any]:
        return self.arguments.model_json_schema(by_alias=True)


TOOL_DEFINITIONS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        "initialize_session",
        "Initialize a new session with an OpenAPI specification file or URL",
        InitializeSessionArgs,
    ),
    ToolDefinition("set_output_format", "Change the output format for a session", SetOutputFormatArgs),
    ToolDefinition(
        "get_session_info", "Get basic information about an OpenAPI specification session", _SessionArgs
    ),
    ToolDefinition(
        "list_endpoints", "List all available endpoints in the OpenAPI specification", ListEndpointsArgs
    ),
    ToolDefinition(
        "get_endpoint_details",
        "Get detailed information about a specific endpoint with selective data retrieval",
        EndpointDetailsArgs,
    ),
    ToolDefinition("get_tags", "Get all available tags in the OpenAPI specification", _SessionArgs),
    ToolDefinition(
        "get_components",
        "Get reusable components from the OpenAPI specification (schemas, responses, parameters, etc.)",
        ComponentsArgs,
    ),
    ToolDefinition("remove_session", "Remove a session and free up memory", _SessionArgs),
    ToolDefinition("get_output_format", "Show the output format of a session", _SessionArgs),
    ToolDefinition(
        "generate_documentation",
        "Generate Markdown or HTML documentation for the API and return the file path",
        GenerateDocumentationArgs,
    ),
)


def _validation_message(tool: str, exc: ValidationError) -> str:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"]) or "arguments"
        problems.append(f"{location}: {err['msg']}")
    return f"Invalid arguments for {tool}: " + "; ".join(problems)


class ToolDispatcher:
    """Run named tools against a :class:`~speclens.session.SessionStore`.

    Results are rendered in the session's own output format, except for
    ``remove_session``, ``generate_documentation`` and errors, which always
    use compact.

    Args:
        store: Where sessions live.
    """

    def __init__(self, store: SessionStore) -> None:
        self._store = store
        self._engine = QueryEngine(store)
        self._docs = DocumentationGenerator(self._engine)
        self._handlers: dict[str, Callable[[Any], str]] = {
            "initialize_session": self._initialize_session,
            "set_output_format": self._set_output_format,
            "get_session_info": self._get_session_info,
            "list_endpoints": self._list_endpoints,
            "get_endpoint_details": self._get_endpoint_details,
            "get_tags": self._get_tags,
            "get_components": self._get_components,
            "remove_session": self._remove_session,
            "get_output_format": self._get_output_format,
            "generate_documentation": self._generate_documentation,
        }
        self._arguments = {d.name: d.arguments for d in TOOL_DEFINITIONS}

    def dispatch(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> ToolResult:
        try:
            handler = self._handlers.get(name)
            if handler is None:
                raise InvalidUsageError(f"Unknown tool: {name}")
            try:
                args = self._arguments[name].model_validate(dict(arguments or {}))
            except ValidationError as exc:
                raise InvalidUsageError(_validation_message(name, exc)) from exc
            return ToolResult(handler(args))
        except SpeclensError as exc:
            logger.debug("Tool %s failed: %s", name, exc)
            return self._error(str(exc))
        except Exception as exc:
            logger.exception("Tool %s crashed", name)
            return self._error(str(exc) or "Unknown error occurred")

    @staticmethod
    def _error(message: str) -> ToolResult:
        return ToolResult(CompactRenderer().render_error(ErrorMessage(message=message)), is_error=True)

    def _renderer(self, session_id: str) -> Renderer:
        session = self._engine.session(session_id)
        return get_renderer(session.output_format, components_resolver(session.spec))

    # --- Handlers ---

    def _initialize_session(self, args: InitializeSessionArgs) -> str:
        session_id = self._store.initialize_session(args.source, args.output_format)
        message = SuccessMessage(
            session_id=session_id, message=f"Session initialized successfully for {args.source}"
        )
        return self._renderer(session_id).render_success(message)

    def _set_output_format(self, args: SetOutputFormatArgs) -> str:
        if not self._store.set_output_format(args.session_id, args.output_format):
            raise SessionNotFoundError(args.session_id)
        message = SuccessMessage(message=f"Output format changed to {args.output_format.value}")
        return get_renderer(args.output_format).render_success(message)

    def _get_session_info(self, args: _SessionArgs) -> str:
        info = self._engine.get_session_info(args.session_id)
        return self._renderer(args.session_id).render_session_info(info)

    def _list_endpoints(self, args: ListEndpointsArgs) -> str:
        endpoints = self._engine.list_endpoints(args.session_id, args.tags, args.methods)
        return self._renderer(args.session_id).render_endpoint_list(EndpointList.of(endpoints))

    def _get_endpoint_details(self, args: EndpointDetailsArgs) -> str:
        details = self._engine.get_endpoint_details(
            args.session_id, args.path, args.method, args.query_options()
        )
        if details is None:
            raise EndpointNotFoundError(args.path, args.method)
        return self._renderer(args.session_id).render_endpoint_details(details)

    def _get_tags(self, args: _SessionArgs) -> str:
        tags = self._engine.get_tags(args.session_id)
        return self._renderer(args.session_id).render_tags(TagList.of(tags))

    def _get_components(self, args: ComponentsArgs) -> str:
        components = self._engine.get_components(args.session_id, args.component_type)
        if args.component_type:
            components = {args.component_type: components} if components else {}
        return self._renderer(args.session_id).render_components(components)

    def _remove_session(self, args: _SessionArgs) -> str:
        removed = self._store.remove_session(args.session_id)
        message = SuccessMessage(
            success=removed,
            message="Session removed successfully" if removed else "Session not found",
        )
        return CompactRenderer().render_success(message)

    def _get_output_format(self, args: _SessionArgs) -> str:
        output_format = self._store.get_output_format(args.session_id)
        if output_format is None:
            raise SessionNotFoundError(args.session_id)
        message = SuccessMessage(message=f"Output format is {output_format.value}")
        return get_renderer(output_format).render_success(message)

    def _generate_documentation(self, args: GenerateDocumentationArgs) -> str:
        path = self._docs.generate(args.session_id, args.documentation_options())
        message = SuccessMessage(message=f"Documentation generated successfully at: {path}")
        return CompactRenderer().render_success(message)
