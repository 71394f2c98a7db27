"""Exception hierarchy for speclens.

All exceptions inherit from :class:`SpeclensError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`speclens.exit_codes`.
The CLI entry point catches ``SpeclensError`` and exits with the appropriate
code; the tool dispatcher turns it into an error payload.

Subclass hierarchy::

    SpeclensError (exit 1)
    +-- InvalidUsageError        (exit 2)
    +-- NotFoundError            (exit 4)
    |   +-- SessionNotFoundError
    |   +-- EndpointNotFoundError
    +-- SpecParseError           (exit 7)
    +-- ConfigError              (exit 1)
    +-- PersistenceError         (exit 1, never leaves the session store)
"""

from speclens.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SPEC_PARSE_ERROR,
)


class SpeclensError(Exception):
    """Base exception for all speclens errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SpeclensError):
    """Raised for invalid arguments, such as an unknown output format."""

    exit_code = EXIT_INVALID_USAGE


class NotFoundError(SpeclensError):
    """Raised when a session, path, or endpoint does not exist."""

    exit_code = EXIT_NOT_FOUND


class SessionNotFoundError(NotFoundError):
    """Raised when a session id is neither in memory nor rehydratable."""

    def __init__(self, session_id: str | None = None):
        self.session_id = session_id
        super().__init__("Session not found")


class EndpointNotFoundError(NotFoundError):
    """Raised by callers that treat a missing path/method pair as an error."""

    def __init__(self, path: str, method: str):
        self.path = path
        self.method = method.upper()
        super().__init__(f"Endpoint not found: {self.method} {path}")


class SpecParseError(SpeclensError):
    """Raised when the OpenAPI document cannot be read or parsed."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class ConfigError(SpeclensError):
    """Raised for configuration problems (invalid JSON, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE


class PersistenceError(SpeclensError):
    """Raised by the session index when it cannot be read or written.

    The session store always absorbs this error; durability is a convenience
    and querying keeps working without it.
    """

    exit_code = EXIT_GENERIC_FAILURE
