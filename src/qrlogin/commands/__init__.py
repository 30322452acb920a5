"""Built-in CLI sub-commands for qrlogin.

* :mod:`~qrlogin.commands.auth` -- sign in, inspect and forget credentials.
* :mod:`~qrlogin.commands.models` -- list a provider's models.

Each module either exports a :class:`typer.Typer` sub-application (for
multi-command groups like ``auth``) or a plain callback function
registered directly on the root app (for single commands like ``models``).
"""
