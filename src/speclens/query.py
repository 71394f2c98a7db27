"""Structural queries over a loaded OpenAPI/Swagger document.

The module-level functions take a specification ``dict`` (dereferenced or
raw) and return the result models from :mod:`speclens.models`. They never
raise on malformed input: a missing or oddly-typed section simply yields an
empty result. :class:`QueryEngine` binds the same operations to a
:class:`~speclens.session.SessionStore` and adds the one failure mode the
engine has, an unknown session.

* :func:`list_endpoints` -- every (path, method) pair, optionally filtered
  by method and tag.
* :func:`get_endpoint_details` -- one operation with the sections selected
  by :class:`~speclens.models.QueryOptions`.
* :func:`get_tags` -- declared tags followed by operation-only tags.
* :func:`get_components` -- the components block or one of its sections.
* :func:`get_session_info` -- title, version, description, base URL.

Parameters are not merged by name: path-level parameters come first, then
operation-level ones, and both appear when they share a name.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Iterator, Mapping, Optional

from speclens.exceptions import SessionNotFoundError
from speclens.models import (
    EndpointDetails,
    EndpointSummary,
    HTTPMethod,
    ParameterInfo,
    QueryOptions,
    RequestBodyInfo,
    ResponseInfo,
    SessionInfo,
)

if TYPE_CHECKING:
    from speclens.session import Session, SessionStore

_METHODS: tuple[str, ...] = tuple(m.value for m in HTTPMethod)


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _str_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _tags_of(operation: Mapping[str, Any]) -> Optional[list[str]]:
    tags = operation.get("tags")
    if not isinstance(tags, list):
        return None
    return [str(t) for t in tags]


def iter_operations(spec: Mapping[str, Any]) -> Iterator[tuple[str, str, dict[str, Any]]]:
    """Yield ``(path, method, operation)`` in path-then-canonical-method order."""
    for path, path_item in _as_dict(spec.get("paths")).items():
        if not isinstance(path_item, dict):
            continue
        for method in _METHODS:
            operation = path_item.get(method)
            if isinstance(operation, dict):
                yield str(path), method, operation


def list_endpoints(
    spec: Mapping[str, Any],
    tags: Optional[Iterable[str]] = None,
    methods: Optional[Iterable[str]] = None,
) -> list[EndpointSummary]:
    """List every endpoint, optionally filtered.

    Args:
        spec: The specification document.
        tags: Keep operations carrying at least one of these tags.
        methods: Keep operations whose method is in this list
            (case-insensitive).

    Returns:
        Summaries in path order, then canonical method order (get, post,
        put, delete, patch, head, options, trace).
    """
    tag_filter = set(tags or ())
    method_filter = {m.lower() for m in methods or ()}

    endpoints: list[EndpointSummary] = []
    for path, method, operation in iter_operations(spec):
        if method_filter and method not in method_filter:
            continue
        op_tags = _tags_of(operation)
        if tag_filter and not tag_filter.intersection(op_tags or ()):
            continue
        endpoints.append(_summary(path, method, operation))
    return endpoints


def _summary(path: str, method: str, operation: Mapping[str, Any]) -> EndpointSummary:
    return EndpointSummary(
        path=path,
        method=method.upper(),
        operation_id=_str_or_none(operation.get("operationId")),
        summary=_str_or_none(operation.get("summary")),
        description=_str_or_none(operation.get("description")),
        tags=_tags_of(operation),
    )


def get_endpoint_details(
    spec: Mapping[str, Any],
    path: str,
    method: str,
    options: Optional[QueryOptions] = None,
) -> Optional[EndpointDetails]:
    """Return one endpoint with the sections selected by *options*.

    Returns:
        The details, or ``None`` when the path or method is not declared.
    """
    options = options or QueryOptions()
    path_item = _as_dict(spec.get("paths")).get(path)
    if not isinstance(path_item, dict):
        return None
    operation = path_item.get(method.lower())
    if not isinstance(operation, dict) or method.lower() not in _METHODS:
        return None

    details = EndpointDetails(**_summary(path, method, operation).model_dump())

    if options.include_parameters:
        details.parameters = _extract_parameters(path_item, operation)

    body = operation.get("requestBody")
    if options.include_request_body and isinstance(body, dict):
        details.request_body = _extract_request_body(body, options)

    responses = operation.get("responses")
    if options.include_responses and isinstance(responses, dict):
        details.responses = _extract_responses(responses, options)

    if options.include_security:
        security = operation.get("security")
        if security is None:
            security = spec.get("security")
        if isinstance(security, list):
            details.security = [s for s in security if isinstance(s, dict)]

    return details


def _extract_parameters(
    path_item: Mapping[str, Any], operation: Mapping[str, Any]
) -> list[ParameterInfo]:
    parameters: list[ParameterInfo] = []
    for param in _as_list(path_item.get("parameters")) + _as_list(operation.get("parameters")):
        if not isinstance(param, dict):
            continue
        schema = param.get("schema")
        info = ParameterInfo(
            name=str(param.get("name", "")),
            location=str(param.get("in", "")),
            required=param.get("required") if isinstance(param.get("required"), bool) else None,
            description=_str_or_none(param.get("description")),
        )
        if isinstance(schema, dict):
            info.type = _str_or_none(schema.get("type"))
            info.schema_ = schema
            info.example = schema.get("example", param.get("example"))
        elif param.get("type"):
            # Swagger 2 puts the type on the parameter itself
            info.type = _str_or_none(param.get("type"))
            info.example = param.get("example")
        parameters.append(info)
    return parameters


def _first_content(content: Any) -> tuple[Optional[str], dict[str, Any]]:
    content = _as_dict(content)
    for content_type, media in content.items():
        return str(content_type), _as_dict(media)
    return None, {}


def _extract_request_body(body: Mapping[str, Any], options: QueryOptions) -> RequestBodyInfo:
    info = RequestBodyInfo(
        required=body.get("required") if isinstance(body.get("required"), bool) else None
    )
    content_type, media = _first_content(body.get("content"))
    if content_type is not None:
        info.content_type = content_type
        if options.include_schemas and isinstance(media.get("schema"), dict):
            info.schema_ = media["schema"]
        if options.include_examples and media.get("examples") is not None:
            info.examples = media["examples"]
    return info


def _extract_responses(responses: Mapping[str, Any], options: QueryOptions) -> list[ResponseInfo]:
    allowed = set(options.response_status_codes) if options.response_status_codes is not None else None
    result: list[ResponseInfo] = []
    for status_code, response in responses.items():
        status_code = str(status_code)
        if allowed is not None and status_code not in allowed:
            continue
        response = _as_dict(response)
        info = ResponseInfo(
            status_code=status_code,
            description=_str_or_none(response.get("description")),
        )
        content_type, media = _first_content(response.get("content"))
        if content_type is not None:
            info.content_type = content_type
            if options.include_schemas and isinstance(media.get("schema"), dict):
                info.schema_ = media["schema"]
            if options.include_examples and media.get("examples") is not None:
                info.examples = media["examples"]
        elif isinstance(response.get("schema"), dict):
            # Swagger 2 response
            if options.include_schemas:
                info.schema_ = response["schema"]
            if options.include_examples and response.get("examples") is not None:
                info.examples = response["examples"]
        result.append(info)
    return result


def get_tags(spec: Mapping[str, Any]) -> list[str]:
    """Declared tags in declaration order, then operation-only tags in first-seen order."""
    seen: dict[str, None] = {}
    for tag in _as_list(spec.get("tags")):
        name = tag.get("name") if isinstance(tag, dict) else tag
        if isinstance(name, str):
            seen.setdefault(name, None)
    for _, _, operation in iter_operations(spec):
        for name in _tags_of(operation) or ():
            seen.setdefault(name, None)
    return list(seen)


def get_components(spec: Mapping[str, Any], component_type: Optional[str] = None) -> dict[str, Any]:
    """Return the components block, or one section of it.

    Swagger 2 documents have no ``components``; their ``definitions``,
    ``parameters``, ``responses`` and ``securityDefinitions`` are presented
    as ``schemas``, ``parameters``, ``responses`` and ``securitySchemes``.

    Returns:
        A mapping, empty when the block or section is missing.
    """
    components = spec.get("components")
    if not isinstance(components, dict):
        components = _swagger2_components(spec)
    if component_type:
        return _as_dict(components.get(component_type))
    return components


def _swagger2_components(spec: Mapping[str, Any]) -> dict[str, Any]:
    mapping = {
        "schemas": "definitions",
        "parameters": "parameters",
        "responses": "responses",
        "securitySchemes": "securityDefinitions",
    }
    if "swagger" not in spec:
        return {}
    return {
        target: spec[source]
        for target, source in mapping.items()
        if isinstance(spec.get(source), dict)
    }


def get_base_url(spec: Mapping[str, Any]) -> Optional[str]:
    """First ``servers`` URL, else ``<scheme>://<host><basePath>`` for Swagger 2."""
    servers = _as_list(spec.get("servers"))
    if servers and isinstance(servers[0], dict) and servers[0].get("url"):
        return str(servers[0]["url"])
    host = spec.get("host")
    if host:
        schemes = _as_list(spec.get("schemes"))
        scheme = schemes[0] if schemes else "https"
        return f"{scheme}://{host}{spec.get('basePath') or ''}"
    return None


def get_session_info(spec: Mapping[str, Any]) -> SessionInfo:
    info = _as_dict(spec.get("info"))
    return SessionInfo(
        title=_str_or_none(info.get("title")),
        version=None if info.get("version") is None else str(info.get("version")),
        description=_str_or_none(info.get("description")),
        base_url=get_base_url(spec),
    )


class QueryEngine:
    """The query operations, addressed by session id.

    Every method resolves the session through the store first and raises
    :class:`~speclens.exceptions.SessionNotFoundError` when it cannot. All
    other problems degrade to empty results.

    Args:
        store: Where sessions live.

    Example::

        engine = QueryEngine(store)
        for endpoint in engine.list_endpoints(session_id, tags=["pets"]):
            print(endpoint.method, endpoint.path)
    """

    def __init__(self, store: "SessionStore") -> None:
        self._store = store

    @property
    def store(self) -> "SessionStore":
        return self._store

    def session(self, session_id: str) -> "Session":
        session = self._store.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def get_session_info(self, session_id: str) -> SessionInfo:
        return get_session_info(self.session(session_id).spec)

    def list_endpoints(
        self,
        session_id: str,
        tags: Optional[Iterable[str]] = None,
        methods: Optional[Iterable[str]] = None,
    ) -> list[EndpointSummary]:
        return list_endpoints(self.session(session_id).spec, tags, methods)

    def get_endpoint_details(
        self,
        session_id: str,
        path: str,
        method: str,
        options: Optional[QueryOptions] = None,
    ) -> Optional[EndpointDetails]:
        return get_endpoint_details(self.session(session_id).spec, path, method, options)

    def get_tags(self, session_id: str) -> list[str]:
        return get_tags(self.session(session_id).spec)

    def get_components(self, session_id: str, component_type: Optional[str] = None) -> dict[str, Any]:
        return get_components(self.session(session_id).spec, component_type)
