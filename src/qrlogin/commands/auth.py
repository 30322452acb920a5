"""Auth commands -- sign in, inspect and forget provider credentials.

Provides the ``qrlogin auth`` sub-command group.

Typical workflow::

    qrlogin auth login             # scan the QR code and approve in the app
    qrlogin auth status            # show the stored credential
    qrlogin auth logout            # delete it
"""

from __future__ import annotations

from typing import Optional

import typer

from qrlogin.exceptions import QrloginError
from qrlogin.output import error, get_output, info, success, suggest


auth_app = typer.Typer(no_args_is_help=True)


@auth_app.command("login")
def auth_login(
    provider: Optional[str] = typer.Option(
        None, "--provider", "-P", help="Provider to sign in to (default: qwen)."
    ),
    no_browser: bool = typer.Option(
        False, "--no-browser", help="Do not try to open the QR code URL in a browser."
    ),
    no_qr: bool = typer.Option(
        False, "--no-qr", help="Do not draw the QR code in the terminal."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Seconds to wait for the QR code to be approved."
    ),
) -> None:
    """Sign in by scanning a QR code.

    Requests a PKCE-protected QR grant, shows it, waits until it is
    approved in the provider's app, and saves the resulting token to the
    credential store.

    Raises:
        typer.Exit: With the error's exit code if any step fails.

    Example::

        qrlogin auth login
        qrlogin auth login --no-browser --timeout 120
    """
    from qrlogin.auth import CredentialStore, LoginOrchestrator
    from qrlogin.config import load_global_config, resolve_provider, resolve_provider_config

    try:
        global_cfg = load_global_config()
        selected = resolve_provider(provider, global_cfg)
        config = resolve_provider_config(selected, global_cfg, cli_timeout=timeout)

        orchestrator = LoginOrchestrator(
            selected,
            config,
            open_browser=global_cfg.output.open_browser and not no_browser,
            show_qr=global_cfg.output.show_qr and not no_qr,
        )
        credential = orchestrator.login()

        store = CredentialStore(selected)
        store.save(credential)
    except QrloginError as exc:
        error(f"Login failed: {exc}")
        raise typer.Exit(code=exc.exit_code) from None

    success(f"{selected.value} login saved.")
    info(f"Account ID: {credential.account_id or 'unknown'}")
    if credential.expires_at is not None:
        info(f"Token expires at: {credential.expires_at:%Y-%m-%d %H:%M:%S %Z}")
    else:
        info("Token expires at: never")
    suggest(f"Credential stored in {store.path}")


@auth_app.command("logout")
def auth_logout(
    ctx: typer.Context,
    provider: Optional[str] = typer.Option(
        None, "--provider", "-P", help="Provider to sign out of."
    ),
) -> None:
    """Delete the stored credential.

    Asks for confirmation unless the ``--force`` flag is active.

    Example::

        qrlogin auth logout
        qrlogin --force auth logout
    """
    from qrlogin.auth import CredentialStore
    from qrlogin.config import resolve_provider

    try:
        selected = resolve_provider(provider)
    except QrloginError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    store = CredentialStore(selected)
    if not store.path.is_file():
        info(f'No stored credential for "{selected.value}".')
        return

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm(f'Delete stored credential for "{selected.value}"?')
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    store.clear()
    success(f'Logged out of "{selected.value}".')


@auth_app.command("status")
def auth_status(
    provider: Optional[str] = typer.Option(
        None, "--provider", "-P", help="Provider to inspect."
    ),
) -> None:
    """Show the stored credential and whether it is still usable.

    Exits with code 3 when there is no usable credential, so scripts can
    run ``qrlogin auth status || qrlogin auth login``.
    """
    from qrlogin.auth import CredentialStore
    from qrlogin.config import resolve_provider
    from qrlogin.exit_codes import EXIT_AUTH_FAILURE

    try:
        selected = resolve_provider(provider)
    except QrloginError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    store = CredentialStore(selected)
    credential = store.load()
    if credential is None:
        info(f'No stored credential for "{selected.value}".')
        suggest(f"Sign in: qrlogin auth login --provider {selected.value}")
        raise typer.Exit(code=EXIT_AUTH_FAILURE)

    token = credential.access_token
    rows = [
        ["Provider", credential.provider.value],
        ["Auth Method", credential.auth_method.value],
        ["Account ID", credential.account_id or "-"],
        ["Token", token[:8] + "..." if len(token) > 8 else token],
        ["Expires At", str(credential.expires_at) if credential.expires_at else "never"],
        ["Valid", str(credential.is_usable())],
    ]
    get_output().print_table(["Field", "Value"], rows, title="Stored Credential")

    if not credential.is_usable():
        suggest(f"Token expired, sign in again: qrlogin auth login --provider {selected.value}")
        raise typer.Exit(code=EXIT_AUTH_FAILURE)
