"""QR-code OAuth login and credential handling for qrlogin.

The main entry points are:

- :class:`LoginOrchestrator` -- runs the QR/PKCE login and returns a
  :class:`~qrlogin.models.Credential`.
- :class:`CredentialStore` -- persistent, per-provider credential storage on
  disk.
- :func:`create_auth` -- returns an :class:`AuthPlugin` (also an
  :class:`httpx.Auth`) that presents the stored credential to the API.

Typical usage::

    from qrlogin.auth import CredentialStore, LoginOrchestrator

    credential = LoginOrchestrator(provider, config).login()
    CredentialStore(provider).save(credential)
"""

from qrlogin.auth.base import AuthPlugin, AuthResult
from qrlogin.auth.bearer import ApiKeyAuth, OAuthBearerAuth, create_auth
from qrlogin.auth.credential_store import CredentialStore
from qrlogin.auth.login import LoginOrchestrator

__all__ = [
    "ApiKeyAuth",
    "AuthPlugin",
    "AuthResult",
    "CredentialStore",
    "LoginOrchestrator",
    "OAuthBearerAuth",
    "create_auth",
]
