"""Console output: results on stdout, diagnostics on stderr.

* Results are the renderers' text. Piped output is written verbatim so it
  can be parsed; on an interactive terminal ``markdown`` results go through
  :class:`rich.markdown.Markdown` and ``json`` results are highlighted.
* Diagnostics (status, warnings, errors, next-step hints) never touch
  stdout. ``--quiet`` keeps only warnings and errors.
* ``NO_COLOR`` (any value), ``TERM=dumb`` and ``--no-color`` switch Rich off.

:func:`~speclens.app.main_callback` installs one :class:`OutputManager` per
invocation with :func:`set_output`; commands use the module-level helpers.
"""

from __future__ import annotations

import os
import sys
from typing import NamedTuple, Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.syntax import Syntax

from speclens.models import OutputFormat


class _Level(NamedTuple):
    prefix: str
    style: str
    quiet: bool
    verbose_only: bool = False


_LEVELS = {
    "info": _Level("", "", quiet=False),
    "success": _Level("", "green", quiet=False),
    "warning": _Level("Warning: ", "yellow", quiet=True),
    "error": _Level("Error: ", "bold red", quiet=True),
    "suggest": _Level("→ ", "dim", quiet=False),
    "debug": _Level("[debug] ", "dim", quiet=False, verbose_only=True),
}


class OutputManager:
    """Holds the stdout/stderr consoles and the quiet/verbose flags.

    Args:
        no_color: Disable colour and Rich presentation.
        quiet: Drop informational diagnostics.
        verbose: Show ``debug`` diagnostics.
    """

    def __init__(self, no_color: bool = False, quiet: bool = False, verbose: bool = False) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._rich = _is_tty() and not self._no_color

        self._stdout = Console(file=sys.stdout, no_color=self._no_color)
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True, soft_wrap=True)

    @property
    def no_color(self) -> bool:
        return self._no_color

    def print_result(self, text: str, output_format: Optional[OutputFormat] = None) -> None:
        """Write a rendered result to stdout.

        Args:
            text: Output of one of the :mod:`speclens.render` renderers.
            output_format: The format *text* is in. Only used to pick a Rich
                presentation when stdout is an interactive terminal.
        """
        if not self._rich:
            print(text, file=sys.stdout, flush=True)
        elif output_format is OutputFormat.MARKDOWN:
            self._stdout.print(Markdown(text))
        elif output_format is OutputFormat.JSON:
            self._stdout.print(Syntax(text, "json", theme="monokai", word_wrap=True))
        else:
            self._stdout.print(text, markup=False, highlight=False)

    def info(self, message: str) -> None:
        self._diag("info", message)

    def success(self, message: str) -> None:
        self._diag("success", message)

    def warning(self, message: str) -> None:
        self._diag("warning", message)

    def error(self, message: str) -> None:
        self._diag("error", message)

    def suggest(self, message: str) -> None:
        self._diag("suggest", message)

    def debug(self, message: str) -> None:
        self._diag("debug", message)

    def _diag(self, level_name: str, message: str) -> None:
        level = _LEVELS[level_name]
        if (self._quiet and not level.quiet) or (level.verbose_only and not self._verbose):
            return
        line = f"{level.prefix}{message}"
        if self._no_color:
            print(line, file=sys.stderr, flush=True)
        elif level.style:
            self._stderr.print(f"[{level.style}]{escape(line)}[/{level.style}]")
        else:
            self._stderr.print(escape(line))


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """``True`` when ``NO_COLOR`` is set (any value) or ``TERM=dumb``."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """The installed :class:`OutputManager`; a default one is created on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager (used between tests)."""
    global _output
    _output = None


def print_result(text: str, output_format: Optional[OutputFormat] = None) -> None:
    get_output().print_result(text, output_format)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def suggest(message: str) -> None:
    get_output().suggest(message)
