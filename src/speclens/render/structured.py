"""Readable ``structured`` output: labelled, indented plain text."""

from __future__ import annotations

import json
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
    COMPONENT_NAME_LIMIT,
    DEFAULT_CONTENT_TYPE,
    NO_COMPONENTS,
    NO_DESCRIPTION,
    NO_ENDPOINTS,
    NO_TAGS,
    Renderer,
    component_sections,
)
from speclens.schema import schema_type_name


class StructuredRenderer(Renderer):
    def render_endpoint_list(self, data: EndpointList) -> str:
        if not data.endpoints:
            return NO_ENDPOINTS
        lines = [f"Endpoints ({data.count} total):", ""]
        for ep in data.endpoints:
            lines.append(f"{ep.method} {ep.path}")
            if ep.summary:
                lines.append(f"  Summary: {ep.summary}")
            if ep.operation_id:
                lines.append(f"  Operation ID: {ep.operation_id}")
            if ep.tags:
                lines.append(f"  Tags: {', '.join(ep.tags)}")
            if ep.description:
                lines.append(f"  Description: {ep.description}")
            lines.append("")
        return "\n".join(lines).strip()

    def render_endpoint_details(self, data: EndpointDetails) -> str:
        lines = [f"Endpoint: {data.method} {data.path}"]
        if data.summary:
            lines.append(f"Summary: {data.summary}")
        if data.operation_id:
            lines.append(f"Operation ID: {data.operation_id}")
        if data.tags:
            lines.append(f"Tags: {', '.join(data.tags)}")
        if data.description:
            lines.append(f"Description: {data.description}")

        if data.parameters:
            lines += ["", "Parameters:"]
            for param in data.parameters:
                required = " (required)" if param.required else ""
                type_name = param.type or schema_type_name(param.schema_)
                line = f"  - {param.name}{required}: {type_name} ({param.location})"
                if param.description:
                    line += f" - {param.description}"
                lines.append(line)

        body = data.request_body
        if body is not None:
            required = " (required)" if body.required else ""
            lines += ["", "Request Body:", f"  Content Type: {body.content_type or DEFAULT_CONTENT_TYPE}{required}"]
            if body.schema_:
                lines.append(f"  Schema: {schema_type_name(body.schema_)}")

        if data.responses:
            lines += ["", "Responses:"]
            for resp in data.responses:
                lines.append(f"  {resp.status_code}: {resp.description or NO_DESCRIPTION}")
                if resp.content_type:
                    lines.append(f"    Content Type: {resp.content_type}")
                if resp.schema_:
                    lines.append(f"    Schema: {schema_type_name(resp.schema_)}")

        if data.security:
            lines += ["", "Security:", f"  {json.dumps(data.security)}"]

        return "\n".join(lines).strip()

    def render_session_info(self, data: SessionInfo) -> str:
        lines = ["Session Information:"]
        if data.title:
            lines.append(f"  Title: {data.title}")
        if data.version:
            lines.append(f"  Version: {data.version}")
        if data.base_url:
            lines.append(f"  Base URL: {data.base_url}")
        if data.description:
            lines.append(f"  Description: {data.description}")
        return "\n".join(lines)

    def render_tags(self, data: TagList) -> str:
        if not data.tags:
            return NO_TAGS
        return f"Tags ({data.count} total):\n" + "\n".join(f"  - {tag}" for tag in data.tags)

    def render_components(self, data: Mapping[str, Any]) -> str:
        sections = component_sections(data)
        if not sections:
            return NO_COMPONENTS
        lines = ["Components:"]
        for kind, names in sections:
            lines.append(f"  {kind} ({len(names)}):")
            lines += [f"    - {name}" for name in names[:COMPONENT_NAME_LIMIT]]
            if len(names) > COMPONENT_NAME_LIMIT:
                lines.append(f"    ... and {len(names) - COMPONENT_NAME_LIMIT} more")
        return "\n".join(lines)

    def render_success(self, data: SuccessMessage) -> str:
        out = f"Success: {data.message}"
        if data.session_id:
            out += f"\nSession ID: {data.session_id}"
        return out

    def render_error(self, data: ErrorMessage) -> str:
        return f"Error: {data.message}"
