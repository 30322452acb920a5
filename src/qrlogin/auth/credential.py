"""Build :class:`~qrlogin.models.Credential` records from token responses."""

from __future__ import annotations

import base64
import binascii
import json
from typing import Optional

from qrlogin.models import AuthMethod, Credential, Provider, TokenResponse


def extract_account_id(access_token: str) -> Optional[str]:
    """Read the ``sub`` claim from a JWT-shaped token, without verification.

    Purely informational: the token stays opaque everywhere else. Returns
    ``None`` for anything that is not three dot-separated segments whose
    middle part is base64url-encoded JSON with a string ``sub``.
    """
    parts = access_token.split(".")
    if len(parts) != 3 or not parts[1]:
        return None
    payload = parts[1] + "=" * (-len(parts[1]) % 4)
    try:
        claims = json.loads(base64.urlsafe_b64decode(payload.encode("ascii")))
    except (binascii.Error, UnicodeError, ValueError, RecursionError):
        return None
    if not isinstance(claims, dict):
        return None
    sub = claims.get("sub")
    if isinstance(sub, str) and sub:
        return sub
    return None


def assemble_credential(token: TokenResponse, provider: Provider) -> Credential:
    """Wrap a token response in a durable credential.

    An empty access token has already been rejected by the exchanger.
    """
    return Credential(
        access_token=token.access_token,
        refresh_token=token.refresh_token,
        expires_at=token.expires_at,
        provider=provider,
        auth_method=AuthMethod.OAUTH,
        account_id=extract_account_id(token.access_token) or "",
    )
