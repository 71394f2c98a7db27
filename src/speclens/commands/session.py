"""Session lifecycle commands.

* ``speclens init SOURCE`` -- load a document and print the new session id.
* ``speclens info`` -- title, version, description and base URL.
* ``speclens remove`` -- forget the session.
* ``speclens sessions`` -- list persisted sessions.
* ``speclens format get|set`` -- the session's output format.
"""

from __future__ import annotations

from typing import Optional

import typer

from speclens.commands.common import (
    format_override,
    get_engine,
    get_store,
    handle_errors,
    renderer_for,
    require_session_id,
)
from speclens.config import ENV_SESSION
from speclens.exceptions import InvalidUsageError, SessionNotFoundError
from speclens.models import OutputFormat, SuccessMessage
from speclens.output import info, print_result, suggest, warning
from speclens.render import get_renderer

format_app = typer.Typer(no_args_is_help=True, help="Show or change a session's output format.")

_FORMAT_NAMES = ", ".join(f.value for f in OutputFormat)


def _parse_format(value: str) -> OutputFormat:
    try:
        return OutputFormat(value.strip().lower())
    except ValueError:
        raise InvalidUsageError(f"Unknown output format '{value}'. Choose one of: {_FORMAT_NAMES}") from None


def init_command(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="OpenAPI/Swagger file path, URL, or '-' for stdin."),
    output_format: Optional[str] = typer.Option(
        None, "--output-format", "-o", help=f"Session output format: {_FORMAT_NAMES}."
    ),
) -> None:
    """Load a specification and start a session.

    Example::

        export SPECLENS_SESSION=$(speclens -q init petstore.yaml --output-format json | jq -r .sessionId)
    """
    with handle_errors():
        chosen = _parse_format(output_format) if output_format else None
        store = get_store(ctx)
        session_id = store.initialize_session(source, chosen)
        if source == "-":
            warning("Sessions read from stdin are not saved and end with this process")
        session = store.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)

        renderer, fmt = renderer_for(ctx, session)
        message = SuccessMessage(
            session_id=session_id, message=f"Session initialized successfully for {source}"
        )
        print_result(renderer.render_success(message), fmt)
        suggest(f"export {ENV_SESSION}={session_id}")


def info_command(ctx: typer.Context) -> None:
    """Show title, version, description and base URL of the session's document."""
    with handle_errors():
        engine = get_engine(ctx)
        session = engine.session(require_session_id(ctx))
        renderer, fmt = renderer_for(ctx, session)
        print_result(renderer.render_session_info(engine.get_session_info(session.id)), fmt)


def remove_command(ctx: typer.Context) -> None:
    """Remove the session from memory and from the persisted index."""
    with handle_errors():
        session_id = require_session_id(ctx)
        removed = get_store(ctx).remove_session(session_id)
        message = SuccessMessage(
            success=removed,
            message="Session removed successfully" if removed else "Session not found",
        )
        fmt = format_override(ctx) or OutputFormat.COMPACT
        print_result(get_renderer(fmt).render_success(message), fmt)


def sessions_command(ctx: typer.Context) -> None:
    """List persisted sessions, one per line: id, format, last access, source."""
    with handle_errors():
        rows = get_store(ctx).list_sessions()
        if not rows:
            info("No sessions")
            return
        for row in rows:
            print_result(
                f"{row.id}\t{row.output_format.value}\t"
                f"{row.last_accessed.isoformat(timespec='seconds')}\t{row.source}"
            )


@format_app.command("get")
def format_get(ctx: typer.Context) -> None:
    """Print the session's output format."""
    with handle_errors():
        session_id = require_session_id(ctx)
        output_format = get_store(ctx).get_output_format(session_id)
        if output_format is None:
            raise SessionNotFoundError(session_id)
        print_result(output_format.value)


@format_app.command("set")
def format_set(
    ctx: typer.Context,
    value: str = typer.Argument(..., help=f"One of: {_FORMAT_NAMES}."),
) -> None:
    """Change the session's output format."""
    with handle_errors():
        session_id = require_session_id(ctx)
        output_format = _parse_format(value)
        if not get_store(ctx).set_output_format(session_id, output_format):
            raise SessionNotFoundError(session_id)
        message = SuccessMessage(message=f"Output format changed to {output_format.value}")
        print_result(get_renderer(output_format).render_success(message), output_format)
