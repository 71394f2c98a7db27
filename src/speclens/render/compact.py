"""Terse ``compact`` output, one line per item.

Schemas are reduced to a type shorthand (``Pet``, ``Pet[]``, ``string``) and
never expanded.
"""

from __future__ import annotations

from typing import Any, Mapping

from speclens.models import (
    EndpointDetails,
    EndpointList,
    ErrorMessage,
    SessionInfo,
    SuccessMessage,
    TagList,
)
from speclens.render.base import (
    DEFAULT_CONTENT_TYPE,
    NO_COMPONENTS,
    NO_DESCRIPTION,
    NO_ENDPOINTS,
    NO_TAGS,
    Renderer,
    component_sections,
)
from speclens.schema import schema_type_name


class CompactRenderer(Renderer):
    def render_endpoint_list(self, data: EndpointList) -> str:
        if not data.endpoints:
            return NO_ENDPOINTS
        lines = []
        for ep in data.endpoints:
            tags = f"[{','.join(ep.tags)}]" if ep.tags else ""
            lines.append(f"{ep.method} {ep.path} - {ep.summary or ''} {tags}".strip())
        return f"Found {data.count} endpoints:\n" + "\n".join(lines)

    def render_endpoint_details(self, data: EndpointDetails) -> str:
        out = f"{data.method} {data.path}"
        if data.summary:
            out += f" - {data.summary}"
        if data.tags:
            out += f" [{','.join(data.tags)}]"

        if data.parameters:
            out += "\nParams:"
            for param in data.parameters:
                marker = "*" if param.required else ""
                type_name = param.type or schema_type_name(param.schema_)
                out += f"\n  {param.name}{marker} ({param.location}): {type_name}"
                if param.description:
                    out += f" - {param.description}"

        body = data.request_body
        if body is not None:
            required = " (required)" if body.required else ""
            out += f"\nBody:\n  {body.content_type or DEFAULT_CONTENT_TYPE}{required}"
            if body.schema_:
                out += f" - {schema_type_name(body.schema_)}"

        if data.responses:
            out += "\nResponses:"
            for resp in data.responses:
                out += f"\n  {resp.status_code}: {resp.description or NO_DESCRIPTION}"
                if resp.content_type and resp.schema_:
                    out += f" ({schema_type_name(resp.schema_)})"
        return out

    def render_session_info(self, data: SessionInfo) -> str:
        out = ""
        if data.title:
            out += f"API: {data.title}"
        if data.version:
            out += f" v{data.version}"
        if data.base_url:
            out += f"\nBase URL: {data.base_url}"
        if data.description:
            out += f"\nDescription: {data.description}"
        return out.strip() or "No session info available"

    def render_tags(self, data: TagList) -> str:
        if not data.tags:
            return NO_TAGS
        return f"Found {data.count} tags: {', '.join(data.tags)}"

    def render_components(self, data: Mapping[str, Any]) -> str:
        sections = component_sections(data)
        if not sections:
            return NO_COMPONENTS
        return ", ".join(f"{kind}: {len(names)} items" for kind, names in sections)

    def render_success(self, data: SuccessMessage) -> str:
        out = data.message
        if data.session_id:
            out += f"\nSession ID: {data.session_id}"
        return out

    def render_error(self, data: ErrorMessage) -> str:
        return f"Error: {data.message}"
