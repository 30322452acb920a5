"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~qrlogin.exceptions.QrloginError` subclass.
Shell wrappers can branch on the exit code to decide whether a re-login
is needed without parsing stderr.

Example::

    $ qrlogin auth login
    $ echo $?
    8   # EXIT_TIMEOUT -- the QR code was never scanned
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""Invalid arguments or an unusable configuration file."""

EXIT_AUTH_FAILURE = 3
"""No usable credential, or the authorization server refused the grant."""

EXIT_SERVER_ERROR = 5
"""The token endpoint answered with a non-success HTTP status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_PROTOCOL_ERROR = 7
"""The authorization server returned a malformed or incomplete response."""

EXIT_TIMEOUT = 8
"""The login deadline elapsed before the grant was approved."""

EXIT_CANCELLED = 130
"""The operator interrupted the command (128 + SIGINT)."""
