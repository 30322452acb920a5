"""Authorization-code exchange at the provider's token endpoint."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

import httpx
from pydantic import ValidationError

from qrlogin.exceptions import HTTPError, NetworkError, ProtocolError
from qrlogin.models import ProviderConfig, TokenResponse


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenExchanger:
    """Swap an approved authorization code for tokens.

    Args:
        config: Provider token URL, client id, redirect URI and timeout.
        client: The :class:`httpx.Client` used for the request.
        now: Clock used to turn ``expires_in`` into ``expires_at``.
    """

    def __init__(
        self,
        config: ProviderConfig,
        client: httpx.Client,
        now: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._config = config
        self._client = client
        self._now = now or _utcnow

    def exchange(self, code: str, code_verifier: str, state: str) -> TokenResponse:
        """POST ``grant_type=authorization_code`` to the token endpoint.

        *code_verifier* must be the verifier whose S256 hash was sent when
        the grant was requested, otherwise the server rejects the exchange.

        Args:
            code: Authorization code reported by the status endpoint.
            code_verifier: The PKCE verifier for this login attempt.
            state: The CSRF ``state`` sent with the grant request.

        Returns:
            The parsed :class:`~qrlogin.models.TokenResponse`, with
            ``expires_at`` set only if ``expires_in`` is positive.

        Raises:
            NetworkError: On transport failure.
            HTTPError: On a non-2xx status; the body is attached.
            ProtocolError: If the body is not a JSON object or
                ``access_token`` is empty.
        """
        data: dict[str, str] = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self._config.redirect_uri,
            "client_id": self._config.client_id,
            "code_verifier": code_verifier,
            "state": state,
        }

        try:
            response = self._client.post(
                self._config.token_url,
                data=data,
                headers={"Accept": "application/json"},
                timeout=self._config.request_timeout,
            )
        except httpx.HTTPError as exc:
            raise NetworkError(f"Token exchange failed: {exc}") from exc

        if not response.is_success:
            raise HTTPError(response.status_code, response.text)

        try:
            payload: Any = response.json()
        except ValueError:
            raise ProtocolError(f"Unparseable token response: {response.text}") from None
        if not isinstance(payload, dict):
            raise ProtocolError(f"Unexpected token response: {response.text}")

        try:
            token = TokenResponse.model_validate(payload)
        except ValidationError as exc:
            raise ProtocolError(f"Malformed token response: {exc}") from exc

        if not token.access_token:
            raise ProtocolError("Token response has an empty 'access_token'")

        if token.expires_in > 0:
            token.expires_at = self._now() + timedelta(seconds=token.expires_in)
        return token
