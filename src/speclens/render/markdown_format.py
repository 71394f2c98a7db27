"""``markdown`` output.

Unlike the plain-text formats, request and response schemas are expanded
into property tables by :class:`~speclens.schema.SchemaFormatter`, starting
at depth 0.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from speclens.models import (
    EndpointDetails,
    EndpointList,
    ErrorMessage,
    SessionInfo,
    SuccessMessage,
    TagList,
)
from speclens.render.base import (
    COMPONENT_NAME_LIMIT,
    DEFAULT_CONTENT_TYPE,
    NO_COMPONENTS,
    NO_DESCRIPTION,
    NO_ENDPOINTS,
    NO_TAGS,
    Renderer,
    component_sections,
)
from speclens.schema import MarkdownEmitter, SchemaFormatter, SchemaResolver, schema_type_name


class MarkdownRenderer(Renderer):
    def __init__(self, resolver: Optional[SchemaResolver] = None) -> None:
        super().__init__(resolver)
        self._formatter = SchemaFormatter(MarkdownEmitter(), resolver=resolver)

    def render_endpoint_list(self, data: EndpointList) -> str:
        if not data.endpoints:
            return NO_ENDPOINTS
        out = f"# Endpoints ({data.count} total)\n\n"
        for ep in data.endpoints:
            out += f"## {ep.method} `{ep.path}`\n"
            if ep.summary:
                out += f"**Summary:** {ep.summary}\n\n"
            if ep.operation_id:
                out += f"**Operation ID:** {ep.operation_id}\n\n"
            if ep.tags:
                out += f"**Tags:** {', '.join(ep.tags)}\n\n"
            if ep.description:
                out += f"{ep.description}\n\n"
            out += "---\n\n"
        return out.strip()

    def render_endpoint_details(self, data: EndpointDetails) -> str:
        out = f"# {data.method} `{data.path}`\n\n"
        if data.summary:
            out += f"**Summary:** {data.summary}\n\n"
        if data.operation_id:
            out += f"**Operation ID:** {data.operation_id}\n\n"
        if data.tags:
            out += f"**Tags:** {', '.join(data.tags)}\n\n"
        if data.description:
            out += f"{data.description}\n\n"

        if data.parameters:
            out += "## Parameters\n\n"
            for param in data.parameters:
                required = " *(required)*" if param.required else ""
                type_name = param.type or schema_type_name(param.schema_)
                out += f"- **{param.name}**{required}: `{type_name}` ({param.location})"
                if param.description:
                    out += f" - {param.description}"
                out += "\n"
            out += "\n"

        body = data.request_body
        if body is not None:
            required = " *(required)*" if body.required else ""
            out += "## Request Body\n\n"
            out += f"**Content Type:** `{body.content_type or DEFAULT_CONTENT_TYPE}`{required}\n\n"
            out += self._schema(body.schema_)

        if data.responses:
            out += "## Responses\n\n"
            for resp in data.responses:
                out += f"### {resp.status_code}\n{resp.description or NO_DESCRIPTION}\n\n"
                if resp.content_type:
                    out += f"**Content Type:** `{resp.content_type}`\n\n"
                out += self._schema(resp.schema_)

        return out.strip()

    def _schema(self, schema: Optional[dict[str, Any]]) -> str:
        if not schema:
            return ""
        return f"**Schema:** `{schema_type_name(schema)}`\n\n" + self._formatter.format(schema)

    def render_session_info(self, data: SessionInfo) -> str:
        out = "# Session Information\n\n"
        if data.title:
            out += f"**Title:** {data.title}\n\n"
        if data.version:
            out += f"**Version:** {data.version}\n\n"
        if data.base_url:
            out += f"**Base URL:** `{data.base_url}`\n\n"
        if data.description:
            out += f"**Description:** {data.description}\n\n"
        return out.strip()

    def render_tags(self, data: TagList) -> str:
        if not data.tags:
            return NO_TAGS
        return f"# Tags ({data.count} total)\n\n" + "\n".join(f"- {tag}" for tag in data.tags)

    def render_components(self, data: Mapping[str, Any]) -> str:
        sections = component_sections(data)
        if not sections:
            return NO_COMPONENTS
        out = "# Components\n\n"
        for kind, names in sections:
            out += f"## {kind} ({len(names)})\n\n"
            out += "".join(f"- `{name}`\n" for name in names[:COMPONENT_NAME_LIMIT])
            if len(names) > COMPONENT_NAME_LIMIT:
                out += f"- *... and {len(names) - COMPONENT_NAME_LIMIT} more*\n"
            out += "\n"
        return out.strip()

    def render_success(self, data: SuccessMessage) -> str:
        out = f"**Success:** {data.message}"
        if data.session_id:
            out += f"\n\n**Session ID:** `{data.session_id}`"
        return out

    def render_error(self, data: ErrorMessage) -> str:
        return f"**Error:** {data.message}"
