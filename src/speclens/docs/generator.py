"""Write standalone documentation for a whole session.

:class:`DocumentationGenerator` walks every endpoint and component of a
loaded specification and produces one file:

* **Markdown** -- title block, optional table of contents, endpoints grouped
  by tag (untagged ones under *Other Endpoints*) or as one flat list, and a
  components section with property tables.
* **HTML** -- the same content as a single page, rendered from the
  ``page.html.j2`` Jinja2 template: fixed sidebar navigation, inline CSS, no
  external assets.

Schemas are expanded with :class:`~speclens.schema.SchemaFormatter`, using
the Markdown or HTML emitter to match the output.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from speclens import query
from speclens.exceptions import SpeclensError
from speclens.markup import render_text, slugify
from speclens.models import (
    DocumentationFormat,
    DocumentationOptions,
    EndpointDetails,
    EndpointSummary,
    QueryOptions,
    SessionInfo,
)
from speclens.query import QueryEngine
from speclens.schema import (
    HtmlEmitter,
    MarkdownEmitter,
    ObjectSchema,
    SchemaFormatter,
    classify_schema,
    components_resolver,
    schema_type_name,
)

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
"""Path to the Jinja2 template directory (``docs/templates/``)."""

DEFAULT_TITLE = "API Documentation"
OTHER_ENDPOINTS = "Other Endpoints"
OTHER_ANCHOR = "other-endpoints"

_KNOWN_EXTENSION = re.compile(r"\.(md|html)$")


@dataclass
class _Group:
    """Endpoints under one heading; ``heading`` is ``None`` for the flat list."""

    anchor: str
    heading: Optional[str]
    endpoints: list[EndpointDetails] = field(default_factory=list)


class DocumentationGenerator:
    """Batch documentation over a :class:`~speclens.query.QueryEngine`.

    Args:
        engine: Query engine bound to the session store.

    Example::

        generator = DocumentationGenerator(QueryEngine(store))
        path = generator.generate(session_id, DocumentationOptions(format="html"))
    """

    def __init__(self, engine: QueryEngine) -> None:
        self._engine = engine

    def generate(self, session_id: str, options: Optional[DocumentationOptions] = None) -> Path:
        """Render the documentation for *session_id* and write it to disk.

        Returns:
            Path of the written file.

        Raises:
            SessionNotFoundError: If the session cannot be resolved.
            SpeclensError: If the file cannot be written.
        """
        options = options or DocumentationOptions()
        session = self._engine.session(session_id)
        spec = session.spec
        info = query.get_session_info(spec)
        resolver = components_resolver(spec)

        groups = _collect(spec, options) if options.include_endpoints else []
        components = query.get_components(spec) if options.include_components else {}

        if options.format is DocumentationFormat.HTML:
            formatter = SchemaFormatter(HtmlEmitter(), resolver=resolver)
            content = _HtmlPage(formatter).render(info, groups, components, options)
        else:
            formatter = SchemaFormatter(MarkdownEmitter(), resolver=resolver)
            content = _MarkdownDocument(formatter).render(info, groups, components, options)

        directory = Path(options.output_directory).expanduser().resolve()
        path = directory / output_filename(info.title, options)
        try:
            directory.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise SpeclensError(f"Cannot write documentation to {path}: {exc}") from exc
        logger.info("Documentation for session %s written to %s", session_id, path)
        return path


def _collect(spec: dict[str, Any], options: DocumentationOptions) -> list[_Group]:
    """Endpoint details grouped by tag (plus *Other Endpoints*), or one flat group."""
    endpoints = query.list_endpoints(spec)
    detail_options = QueryOptions(
        include_security=options.include_security,
        include_examples=options.include_examples,
    )

    def details(summaries: list[EndpointSummary]) -> list[EndpointDetails]:
        out = []
        for ep in summaries:
            found = query.get_endpoint_details(spec, ep.path, ep.method, detail_options)
            out.append(found or EndpointDetails(**ep.model_dump()))
        return out

    if not options.group_by_tags:
        return [_Group("endpoints", None, details(endpoints))] if endpoints else []

    groups = []
    for tag in query.get_tags(spec):
        tagged = [ep for ep in endpoints if tag in (ep.tags or ())]
        if tagged:
            groups.append(_Group(slugify(tag), tag, details(tagged)))
    untagged = [ep for ep in endpoints if not ep.tags]
    if untagged:
        groups.append(_Group(OTHER_ANCHOR, OTHER_ENDPOINTS, details(untagged)))
    return groups


def output_filename(title: Optional[str], options: DocumentationOptions) -> str:
    """Explicit filename with its extension forced to match the format, or
    ``<slug(title)>-documentation.<ext>``."""
    extension = options.format.extension
    if not options.filename:
        return f"{slugify(title or '') or 'api'}-documentation{extension}"
    if options.filename.endswith(extension):
        return options.filename
    return _KNOWN_EXTENSION.sub("", options.filename) + extension


def _security_names(security: Optional[list[dict[str, Any]]]) -> list[str]:
    names: list[str] = []
    for requirement in security or ():
        for name in requirement:
            if name not in names:
                names.append(name)
    return names


def _dump_examples(examples: Any) -> str:
    return json.dumps(examples, indent=2, ensure_ascii=False, default=str)


class _MarkdownDocument:
    def __init__(self, formatter: SchemaFormatter) -> None:
        self._formatter = formatter

    def render(
        self,
        info: SessionInfo,
        groups: list[_Group],
        components: dict[str, Any],
        options: DocumentationOptions,
    ) -> str:
        out = f"# {info.title or DEFAULT_TITLE}\n\n"
        if info.version:
            out += f"**Version:** {info.version}\n\n"
        if info.description:
            out += f"{info.description}\n\n"
        if info.base_url:
            out += f"**Base URL:** `{info.base_url}`\n\n"

        if options.include_table_of_contents:
            out += self._toc(groups, options)
        if options.include_endpoints:
            out += self._endpoints(groups, options)
        if options.include_components:
            out += self._components(components)
        return out

    def _toc(self, groups: list[_Group], options: DocumentationOptions) -> str:
        out = "## Table of Contents\n\n"
        if options.include_endpoints:
            if options.group_by_tags:
                if groups:
                    out += "### Endpoints\n\n"
                    out += "".join(f"- [{g.heading}](#{g.anchor})\n" for g in groups)
                    out += "\n"
            else:
                out += "- [Endpoints](#endpoints)\n"
        if options.include_components:
            out += "- [Components](#components)\n"
        return out + "\n"

    def _endpoints(self, groups: list[_Group], options: DocumentationOptions) -> str:
        out = "## Endpoints\n\n"
        if not groups:
            return out + "No endpoints found.\n\n"
        for group in groups:
            if group.heading is None:
                out += f"Found {len(group.endpoints)} endpoints:\n\n"
            else:
                out += f"### {group.heading}\n\n"
            out += "".join(self._endpoint(ep) for ep in group.endpoints)
        return out

    def _endpoint(self, ep: EndpointDetails) -> str:
        out = f"#### {ep.method} `{ep.path}`\n\n"
        if ep.summary:
            out += f"{ep.summary}\n\n"
        if ep.description:
            out += f"{ep.description}\n\n"

        if ep.parameters:
            out += "**Parameters:**\n\n"
            out += "| Name | Type | In | Required | Description |\n"
            out += "|------|------|----|----------|-------------|\n"
            for param in ep.parameters:
                type_name = param.type or schema_type_name(param.schema_)
                out += (
                    f"| {param.name} | `{type_name}` | {param.location} | "
                    f"{'Yes' if param.required else 'No'} | {param.description or ''} |\n"
                )
            out += "\n"

        body = ep.request_body
        if body is not None:
            required = " (required)" if body.required else ""
            out += "**Request Body:**\n\n"
            out += f"Content Type: `{body.content_type or 'application/json'}`{required}\n\n"
            out += self._formatter.format(body.schema_)
            out += self._examples(body.examples)

        if ep.responses:
            out += "**Responses:**\n\n"
            for resp in ep.responses:
                out += f"**{resp.status_code}**: {resp.description or 'No description'}\n\n"
                if resp.content_type:
                    out += f"Content Type: `{resp.content_type}`\n\n"
                out += self._formatter.format(resp.schema_)
                out += self._examples(resp.examples)

        names = _security_names(ep.security)
        if names:
            out += "**Security:** " + ", ".join(f"`{name}`" for name in names) + "\n\n"

        return out + "---\n\n"

    @staticmethod
    def _examples(examples: Any) -> str:
        if examples is None:
            return ""
        return f"**Examples:**\n\n```json\n{_dump_examples(examples)}\n```\n\n"

    def _components(self, components: dict[str, Any]) -> str:
        out = "## Components\n\n"
        if not components:
            return out + "No components found.\n\n"
        emitter = MarkdownEmitter()
        for kind, items in components.items():
            if not isinstance(items, dict) or not items:
                continue
            out += f"### {kind[:1].upper()}{kind[1:]}\n\n"
            for name, item in items.items():
                out += f"#### {name}\n\n"
                if isinstance(item, dict):
                    if isinstance(item.get("description"), str):
                        out += f"{item['description']}\n\n"
                    node = classify_schema(item)
                    if kind == "schemas" and isinstance(node, ObjectSchema):
                        out += "**Properties:**\n\n"
                        out += emitter.property_table(self._formatter.property_rows(node))
                out += "---\n\n"
        return out


class _HtmlPage:
    def __init__(self, formatter: SchemaFormatter) -> None:
        self._formatter = formatter
        self._env = _create_jinja_env()

    def render(
        self,
        info: SessionInfo,
        groups: list[_Group],
        components: dict[str, Any],
        options: DocumentationOptions,
    ) -> str:
        component_views = self._component_views(components)
        context = {
            "title": info.title or DEFAULT_TITLE,
            "version": info.version or "",
            "description": info.description or "",
            "base_url": info.base_url or "",
            "options": options,
            "groups": [self._group_view(g) for g in groups],
            "has_endpoints": bool(groups),
            "components": component_views,
            "has_components": bool(component_views),
        }
        return self._env.get_template("page.html.j2").render(**context)

    def _schema(self, schema: Any) -> Markup:
        return Markup(self._formatter.format(schema))

    def _group_view(self, group: _Group) -> dict[str, Any]:
        return {
            "anchor": group.anchor,
            "heading": group.heading,
            "endpoints": [self._endpoint_view(ep) for ep in group.endpoints],
        }

    def _endpoint_view(self, ep: EndpointDetails) -> dict[str, Any]:
        body = ep.request_body
        return {
            "method": ep.method,
            "method_class": f"method-{ep.method.lower()}",
            "anchor": slugify(f"{ep.method}-{ep.path}"),
            "path": ep.path,
            "summary": ep.summary,
            "description": ep.description,
            "parameters": [
                {
                    "name": p.name,
                    "type": p.type or schema_type_name(p.schema_),
                    "location": p.location,
                    "required": bool(p.required),
                    "description": p.description,
                }
                for p in ep.parameters or ()
            ],
            "request_body": None
            if body is None
            else {
                "content_type": body.content_type or "application/json",
                "required": bool(body.required),
                "schema": self._schema(body.schema_),
                "examples": None if body.examples is None else _dump_examples(body.examples),
            },
            "responses": [
                {
                    "status_code": r.status_code,
                    "description": r.description or "No description",
                    "content_type": r.content_type,
                    "schema": self._schema(r.schema_),
                    "examples": None if r.examples is None else _dump_examples(r.examples),
                }
                for r in ep.responses or ()
            ],
            "security": _security_names(ep.security),
        }

    def _component_views(self, components: dict[str, Any]) -> list[dict[str, Any]]:
        views = []
        for kind, items in components.items():
            if not isinstance(items, dict) or not items:
                continue
            entries = []
            for name, item in items.items():
                item = item if isinstance(item, dict) else {}
                show_schema = kind == "schemas" and isinstance(classify_schema(item), ObjectSchema)
                entries.append(
                    {
                        "name": name,
                        "description": item.get("description") if isinstance(item.get("description"), str) else None,
                        "schema": self._schema(item) if show_schema else None,
                    }
                )
            views.append(
                {
                    "title": f"{kind[:1].upper()}{kind[1:]}",
                    "anchor": f"components-{slugify(kind)}",
                    "entries": entries,
                }
            )
        return views


def _create_jinja_env() -> Environment:
    """Jinja2 environment over ``docs/templates/`` with HTML autoescaping.

    Free text goes through the ``text`` filter, which runs the Markdown
    converter only when the string looks like Markdown.
    """
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(enabled_extensions=("html", "html.j2")),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["text"] = render_text
    return env
