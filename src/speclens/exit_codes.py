"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~speclens.exceptions.SpeclensError` subclass.

Example::

    $ speclens endpoints -s 1234
    $ echo $?
    4   # EXIT_NOT_FOUND -- no such session
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_NOT_FOUND = 4
"""The requested session, path, or endpoint does not exist."""

EXIT_SPEC_PARSE_ERROR = 7
"""The OpenAPI specification could not be loaded or parsed."""

EXIT_INTERRUPTED = 130
"""The user pressed Ctrl-C (128 + SIGINT)."""
