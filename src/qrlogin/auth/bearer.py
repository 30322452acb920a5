"""Present stored credentials to the provider's API.

:class:`OAuthBearerAuth` reads the credential saved by ``qrlogin auth login``
before every request and refuses to send an expired token; token refresh is
not supported, so the remedy is always a new login. :class:`ApiKeyAuth`
covers the case where the operator configured a static API key instead.
"""

from __future__ import annotations

import os
from typing import Optional

from qrlogin.auth.base import AuthPlugin, AuthResult
from qrlogin.auth.credential_store import CredentialStore
from qrlogin.exceptions import MissingCredentialError
from qrlogin.models import AuthMethod, Provider

API_KEY_ENV_VARS: dict[Provider, str] = {
    Provider.QWEN: "DASHSCOPE_API_KEY",
}


def _bearer(token: str) -> AuthResult:
    return AuthResult(headers={"Authorization": f"Bearer {token}"})


class OAuthBearerAuth(AuthPlugin):
    """Send the stored OAuth access token as a bearer header.

    Args:
        store: The credential store for the provider.
    """

    def __init__(self, store: CredentialStore) -> None:
        super().__init__(store.provider)
        self._store = store

    @property
    def auth_method(self) -> AuthMethod:
        return AuthMethod.OAUTH

    def authenticate(self) -> AuthResult:
        """Load and check the stored credential.

        Raises:
            MissingCredentialError: If nothing is stored.
            ExpiredCredentialError: If the stored token has expired.
        """
        return _bearer(self._store.require().access_token)


class ApiKeyAuth(AuthPlugin):
    """Send a static API key as a bearer header."""

    def __init__(self, provider: Provider, api_key: str) -> None:
        super().__init__(provider)
        self._api_key = api_key

    @property
    def auth_method(self) -> AuthMethod:
        return AuthMethod.API_KEY

    def authenticate(self) -> AuthResult:
        if not self._api_key:
            raise MissingCredentialError(f"Empty API key for {self.provider.value}")
        return _bearer(self._api_key)


def create_auth(
    provider: Provider,
    store: Optional[CredentialStore] = None,
    api_key: Optional[str] = None,
) -> AuthPlugin:
    """Pick the auth strategy for *provider*.

    An explicit *api_key*, or the provider's API-key environment variable
    (``DASHSCOPE_API_KEY`` for Qwen), wins; otherwise the stored OAuth
    credential is used.
    """
    if api_key is None:
        env_var = API_KEY_ENV_VARS.get(provider)
        api_key = os.environ.get(env_var) if env_var else None
    if api_key:
        return ApiKeyAuth(provider, api_key)
    return OAuthBearerAuth(store or CredentialStore(provider))
