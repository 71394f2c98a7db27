"""Helpers shared by the command modules: store construction, session
resolution, renderer selection and error reporting."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import timedelta
from typing import Iterator, Optional

import typer

from speclens.config import ENV_SESSION, resolve_config
from speclens.exceptions import InvalidUsageError, SpeclensError
from speclens.models import OutputFormat
from speclens.output import error
from speclens.query import QueryEngine
from speclens.render import Renderer, get_renderer
from speclens.schema import components_resolver
from speclens.session import Session, SessionStore


def _obj(ctx: typer.Context) -> dict:
    ctx.ensure_object(dict)
    return ctx.obj


def get_store(ctx: typer.Context) -> SessionStore:
    """Build the session store once per invocation from the resolved config."""
    obj = _obj(ctx)
    if obj.get("store") is None:
        config = resolve_config()
        obj["store"] = SessionStore(
            default_format=config.default_output_format,
            ttl=timedelta(days=config.session_ttl_days),
        )
    return obj["store"]


def get_engine(ctx: typer.Context) -> QueryEngine:
    return QueryEngine(get_store(ctx))


def require_session_id(ctx: typer.Context) -> str:
    """The ``--session`` value (or ``SPECLENS_SESSION``).

    Raises:
        InvalidUsageError: If neither is set.
    """
    session_id = _obj(ctx).get("session")
    if not session_id:
        raise InvalidUsageError(
            f"No session given. Run 'speclens init SOURCE', then pass --session or set {ENV_SESSION}."
        )
    return session_id


def format_override(ctx: typer.Context) -> Optional[OutputFormat]:
    value = _obj(ctx).get("format")
    return OutputFormat.parse(value) if value else None


def renderer_for(ctx: typer.Context, session: Session) -> tuple[Renderer, OutputFormat]:
    """Renderer in the ``--format`` override, else the session's own format."""
    output_format = format_override(ctx) or session.output_format
    return get_renderer(output_format, components_resolver(session.spec)), output_format


@contextmanager
def handle_errors() -> Iterator[None]:
    """Report :class:`~speclens.exceptions.SpeclensError` on stderr and exit with its code."""
    try:
        yield
    except SpeclensError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
