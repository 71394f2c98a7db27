"""The contract every output format implements."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

from speclens.models import (
    EndpointDetails,
    EndpointList,
    ErrorMessage,
    SessionInfo,
    SuccessMessage,
    TagList,
)
from speclens.schema import SchemaResolver

NO_ENDPOINTS = "No endpoints found"
NO_TAGS = "No tags found"
NO_COMPONENTS = "No components found"
NO_DESCRIPTION = "No description"
DEFAULT_CONTENT_TYPE = "application/json"

COMPONENT_NAME_LIMIT = 10
"""How many names per component type the readable formats list."""


class Renderer(ABC):
    """Turns one query result into text.

    Renderers are stateless apart from the optional schema *resolver*, which
    formats that expand schemas use to follow literal ``$ref`` nodes.

    Args:
        resolver: Looks up a component schema by name.
    """

    def __init__(self, resolver: Optional[SchemaResolver] = None) -> None:
        self.resolver = resolver

    @abstractmethod
    def render_endpoint_list(self, data: EndpointList) -> str: ...

    @abstractmethod
    def render_endpoint_details(self, data: EndpointDetails) -> str: ...

    @abstractmethod
    def render_session_info(self, data: SessionInfo) -> str: ...

    @abstractmethod
    def render_tags(self, data: TagList) -> str: ...

    @abstractmethod
    def render_components(self, data: Mapping[str, Any]) -> str: ...

    @abstractmethod
    def render_success(self, data: SuccessMessage) -> str: ...

    @abstractmethod
    def render_error(self, data: ErrorMessage) -> str: ...


def component_sections(data: Optional[Mapping[str, Any]]) -> list[tuple[str, list[str]]]:
    """``(type, names)`` for each mapping-valued section of a components block."""
    if not data:
        return []
    return [
        (str(kind), [str(name) for name in items])
        for kind, items in data.items()
        if isinstance(items, Mapping)
    ]
