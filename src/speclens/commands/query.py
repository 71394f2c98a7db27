"""Read-only queries against the current session.

All commands print in the session's output format unless the global
``--format`` option overrides it for this call.
"""

from __future__ import annotations

from typing import Optional

import typer

from speclens.commands.common import get_engine, handle_errors, renderer_for, require_session_id
from speclens.exceptions import EndpointNotFoundError
from speclens.models import EndpointList, QueryOptions, TagList
from speclens.output import print_result


def endpoints_command(
    ctx: typer.Context,
    tag: Optional[list[str]] = typer.Option(
        None, "--tag", "-t", help="Keep endpoints with this tag (repeatable)."
    ),
    method: Optional[list[str]] = typer.Option(
        None, "--method", "-m", help="Keep endpoints with this HTTP method (repeatable)."
    ),
) -> None:
    """List endpoints, optionally filtered by tag and method.

    Example::

        speclens endpoints --tag pets --method get --method post
    """
    with handle_errors():
        engine = get_engine(ctx)
        session = engine.session(require_session_id(ctx))
        endpoints = engine.list_endpoints(session.id, tags=tag or None, methods=method or None)
        renderer, fmt = renderer_for(ctx, session)
        print_result(renderer.render_endpoint_list(EndpointList.of(endpoints)), fmt)


def endpoint_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path template, e.g. '/pets/{petId}'."),
    method: str = typer.Argument(..., help="HTTP method."),
    parameters: bool = typer.Option(True, "--parameters/--no-parameters", help="Include parameters."),
    request_body: bool = typer.Option(True, "--request-body/--no-request-body", help="Include the request body."),
    responses: bool = typer.Option(True, "--responses/--no-responses", help="Include responses."),
    security: bool = typer.Option(False, "--security/--no-security", help="Include security requirements."),
    examples: bool = typer.Option(False, "--examples/--no-examples", help="Include examples."),
    schemas: bool = typer.Option(True, "--schemas/--no-schemas", help="Include schemas."),
    status: Optional[list[str]] = typer.Option(
        None, "--status", help="Only these response status codes (repeatable)."
    ),
) -> None:
    """Show one endpoint in detail.

    Example::

        speclens endpoint /pets get --no-parameters --status 200
    """
    with handle_errors():
        engine = get_engine(ctx)
        session = engine.session(require_session_id(ctx))
        options = QueryOptions(
            include_parameters=parameters,
            include_request_body=request_body,
            include_responses=responses,
            include_security=security,
            include_examples=examples,
            include_schemas=schemas,
            response_status_codes=tuple(status) if status else None,
        )
        details = engine.get_endpoint_details(session.id, path, method, options)
        if details is None:
            raise EndpointNotFoundError(path, method)
        renderer, fmt = renderer_for(ctx, session)
        print_result(renderer.render_endpoint_details(details), fmt)


def tags_command(ctx: typer.Context) -> None:
    """List tags: declared ones first, then tags only used on operations."""
    with handle_errors():
        engine = get_engine(ctx)
        session = engine.session(require_session_id(ctx))
        renderer, fmt = renderer_for(ctx, session)
        print_result(renderer.render_tags(TagList.of(engine.get_tags(session.id))), fmt)


def components_command(
    ctx: typer.Context,
    component_type: Optional[str] = typer.Argument(
        None, help="One section, e.g. schemas, responses, securitySchemes."
    ),
) -> None:
    """Summarise reusable components, or one section of them."""
    with handle_errors():
        engine = get_engine(ctx)
        session = engine.session(require_session_id(ctx))
        components = engine.get_components(session.id, component_type)
        if component_type:
            # Keep the section name in the rendered output
            components = {component_type: components} if components else {}
        renderer, fmt = renderer_for(ctx, session)
        print_result(renderer.render_components(components), fmt)
