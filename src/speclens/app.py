"""Typer application and console-script entry point.

Commands are registered from :mod:`speclens.commands`:

* ``init``, ``info``, ``remove``, ``sessions``, ``format get|set`` -- session
  lifecycle.
* ``endpoints``, ``endpoint``, ``tags``, ``components`` -- queries.
* ``docs`` -- standalone documentation files.

Global options live on the root callback and are shared with commands
through ``ctx.obj``. :func:`main` turns :class:`~speclens.exceptions.SpeclensError`
into its exit code and anything else into a crash log under the data
directory.
"""

from __future__ import annotations

import logging
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from speclens import __version__
from speclens.config import ENV_SESSION, get_data_dir
from speclens.exceptions import SpeclensError
from speclens.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED
from speclens.output import OutputManager, error, set_output

app = typer.Typer(
    name="speclens",
    help="Load an OpenAPI/Swagger document once, then query it cheaply by session.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _show_version(value: bool) -> None:
    if value:
        typer.echo(f"speclens {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool = False, no_color: bool = False) -> None:
    """Route library logging to stderr through Rich.

    Args:
        verbose: ``DEBUG`` instead of ``WARNING``.
        no_color: Plain handler output.
    """
    handler = RichHandler(
        console=Console(stderr=True, no_color=no_color),
        show_path=False,
        show_time=verbose,
        rich_tracebacks=verbose,
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        handlers=[handler],
        format="%(name)s: %(message)s",
        force=True,
    )


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", callback=_show_version, is_eager=True, help="Print the version and exit."
    ),
    session: Optional[str] = typer.Option(
        None, "--session", "-s", envvar=ENV_SESSION, help="Session ID to query."
    ),
    output_format: Optional[str] = typer.Option(
        None,
        "--format",
        "-f",
        help="Render format for this call: json, compact, structured, markdown.",
    ),
    no_color: bool = typer.Option(False, "--no-color", help="Plain output without colour."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only results, warnings and errors."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug messages and logging."),
) -> None:
    """Set up console output and logging, then stash the global options.

    ``ctx.obj`` carries ``session``, ``format`` and ``verbose`` for the
    commands; :mod:`speclens.commands.common` reads them back.
    """
    output = OutputManager(no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    configure_logging(verbose=verbose, no_color=output.no_color)

    ctx.ensure_object(dict)
    ctx.obj.update(session=session, format=output_format, verbose=verbose)


def _write_crash_log(exc: BaseException) -> Path:
    """Save the traceback of *exc* as ``<data dir>/logs/crash-<timestamp>.log``."""
    log_path = get_data_dir() / "logs" / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    log_path.parent.mkdir(parents=True, exist_ok=True)
    log_path.write_text("".join(traceback.format_exception(exc)), encoding="utf-8")
    return log_path


def _register_commands() -> None:
    from speclens.commands import register

    register(app)


_register_commands()


def main() -> None:
    """Entry point of the ``speclens`` console script.

    Raises:
        SystemExit: With Typer's code, the error's ``exit_code``, 130 on
            Ctrl-C, or the generic failure code after writing a crash log.
    """
    try:
        app()
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except SpeclensError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        error(f"Unexpected error. Debug log: {_write_crash_log(exc)}")
        sys.exit(EXIT_GENERIC_FAILURE)
