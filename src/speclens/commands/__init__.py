"""Built-in CLI commands for speclens.

* :mod:`~speclens.commands.session` -- ``init``, ``info``, ``remove``,
  ``sessions`` and the ``format`` group.
* :mod:`~speclens.commands.query` -- ``endpoints``, ``endpoint``, ``tags``,
  ``components``.
* :mod:`~speclens.commands.docs` -- ``docs``.

Single commands are plain callbacks registered on the root app; ``format``
is a :class:`typer.Typer` sub-application.
"""

from __future__ import annotations

import typer


def register(app: typer.Typer) -> None:
    """Attach every built-in command to *app*."""
    from speclens.commands.docs import docs_command
    from speclens.commands.query import (
        components_command,
        endpoint_command,
        endpoints_command,
        tags_command,
    )
    from speclens.commands.session import (
        format_app,
        info_command,
        init_command,
        remove_command,
        sessions_command,
    )

    app.command("init")(init_command)
    app.command("info")(info_command)
    app.command("remove")(remove_command)
    app.command("sessions")(sessions_command)
    app.add_typer(format_app, name="format")
    app.command("endpoints")(endpoints_command)
    app.command("endpoint")(endpoint_command)
    app.command("tags")(tags_command)
    app.command("components")(components_command)
    app.command("docs")(docs_command)
