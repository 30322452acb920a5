"""Exception hierarchy for qrlogin.

All exceptions inherit from :class:`QrloginError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`qrlogin.exit_codes`.
The top-level error handler in :func:`qrlogin.app.main` catches
``QrloginError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    QrloginError (exit 1)
    +-- EntropyError             (exit 1)
    +-- ConfigError              (exit 2)
    +-- NetworkError             (exit 6)
    +-- ProtocolError            (exit 7)
    +-- HTTPError                (exit 5)
    +-- AuthError                (exit 3)
    |   +-- GrantTerminatedError
    |   +-- MissingCredentialError
    |   +-- ExpiredCredentialError
    +-- TimeoutError_            (exit 8)
    +-- LoginCancelledError      (exit 130)
"""

from qrlogin.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CANCELLED,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PROTOCOL_ERROR,
    EXIT_SERVER_ERROR,
    EXIT_TIMEOUT,
)


class QrloginError(Exception):
    """Base exception for all qrlogin errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`qrlogin.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class EntropyError(QrloginError):
    """Raised when the operating system cannot supply secure random bytes."""

    exit_code = EXIT_GENERIC_FAILURE


class ConfigError(QrloginError):
    """Raised for configuration problems (invalid JSON, bad env overrides, unknown provider)."""

    exit_code = EXIT_INVALID_USAGE


class NetworkError(QrloginError):
    """Raised on transport-level failures (timeout, DNS resolution, connection refused)."""

    exit_code = EXIT_CONNECTION_ERROR


class ProtocolError(QrloginError):
    """Raised when the authorization server's response is malformed or incomplete."""

    exit_code = EXIT_PROTOCOL_ERROR


class HTTPError(QrloginError):
    """Raised when the token endpoint answers with a non-success status.

    The raw response body is kept on the exception so the operator can see
    exactly what the server complained about.

    Args:
        status_code: The HTTP status returned by the server.
        body: The undecoded response body text.
    """

    exit_code = EXIT_SERVER_ERROR

    def __init__(self, status_code: int, body: str):
        super().__init__(f"Token exchange failed with status {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class AuthError(QrloginError):
    """Raised when no usable credential can be produced or presented."""

    exit_code = EXIT_AUTH_FAILURE


class GrantTerminatedError(AuthError):
    """Raised when the server reports the QR grant as expired or canceled."""


class MissingCredentialError(AuthError):
    """Raised when an API client needs a credential and none is stored."""


class ExpiredCredentialError(AuthError):
    """Raised when the stored credential is past its ``expires_at``.

    Token refresh is not supported, so the remedy is always a new login.
    """


class TimeoutError_(QrloginError):
    """Raised when the login deadline elapses with no terminal grant status.

    Named with a trailing underscore to avoid shadowing the built-in
    ``TimeoutError``.
    """

    exit_code = EXIT_TIMEOUT


class LoginCancelledError(QrloginError):
    """Raised when polling is cancelled before the grant reaches a terminal state."""

    exit_code = EXIT_CANCELLED
