"""``qrlogin models`` -- list the models a provider serves."""

from __future__ import annotations

from typing import Optional

import typer

from qrlogin.exceptions import QrloginError
from qrlogin.output import error, get_output


def models_command(
    provider: Optional[str] = typer.Option(
        None, "--provider", "-P", help="Provider whose models to list."
    ),
) -> None:
    """List known model names, marking the provider's default."""
    from qrlogin.config import load_global_config, resolve_provider, resolve_provider_config
    from qrlogin.providers import list_models

    try:
        global_cfg = load_global_config()
        selected = resolve_provider(provider, global_cfg)
        config = resolve_provider_config(selected, global_cfg)
    except QrloginError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    rows = [
        [name, "yes" if name == config.default_model else ""]
        for name in list_models(selected)
    ]
    get_output().print_table(["Model", "Default"], rows, title=f"{selected.value} models")
