"""Canonical Pydantic models shared across all qrlogin modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`ProviderConfig`, :class:`OutputConfig` and :class:`GlobalConfig`.

**Login-flow models** -- transient, held in memory for one login attempt:
    :class:`GrantStatus`, :class:`PollOutcome`, :class:`GrantSession`,
    :class:`GrantStatusReport` and :class:`TokenResponse`.

**Credential model** -- the durable output of a login, persisted by
    :class:`~qrlogin.auth.credential_store.CredentialStore`:
    :class:`Provider`, :class:`AuthMethod` and :class:`Credential`.

All models use Pydantic v2.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# --- Enums ---


class Provider(str, enum.Enum):
    """LLM services that qrlogin can sign in to."""

    QWEN = "qwen"


class AuthMethod(str, enum.Enum):
    """How a stored credential was obtained."""

    OAUTH = "oauth"
    API_KEY = "api_key"


class GrantStatus(str, enum.Enum):
    """Status of a QR grant as reported by the authorization server.

    ``AUTHORIZED``, ``EXPIRED`` and ``CANCELED`` are terminal. Legal
    transitions are ``PENDING -> {SCANNED, AUTHORIZED, EXPIRED, CANCELED}``
    and ``SCANNED -> {AUTHORIZED, EXPIRED, CANCELED}``.
    """

    PENDING = "PENDING"
    SCANNED = "SCANNED"
    AUTHORIZED = "AUTHORIZED"
    EXPIRED = "EXPIRED"
    CANCELED = "CANCELED"

    @classmethod
    def parse(cls, value: Any) -> GrantStatus:
        """Map a raw status string onto the enum.

        ``QR_CODE_SCANNED`` is accepted as an alias of ``SCANNED``. Missing
        or unrecognised values are treated as ``PENDING`` so that the poller
        simply keeps waiting.
        """
        if not isinstance(value, str):
            return cls.PENDING
        value = value.strip().upper()
        if value == "QR_CODE_SCANNED":
            return cls.SCANNED
        try:
            return cls(value)
        except ValueError:
            return cls.PENDING

    @property
    def is_terminal(self) -> bool:
        return self in (GrantStatus.AUTHORIZED, GrantStatus.EXPIRED, GrantStatus.CANCELED)


class PollOutcome(str, enum.Enum):
    """Decision taken by the poller after one status report."""

    CONTINUE = "continue"
    AUTHORIZED = "authorized"
    TERMINATED = "terminated"
    MISSING_CODE = "missing_code"


# --- Credential ---


class Credential(BaseModel):
    """A bearer credential produced by a successful login.

    Attributes:
        access_token: The opaque bearer token. Never empty for a credential
            produced by the login flow.
        refresh_token: Kept for completeness; token refresh is not
            supported, so it is never used.
        expires_at: UTC expiry time. ``None`` means the token does not
            expire.
        provider: Which service the token is for.
        auth_method: How the token was obtained.
        account_id: Best-effort account identifier (``sub`` claim), or
            an empty string.
    """

    access_token: str = Field(description="Opaque bearer token")
    refresh_token: str = Field(default="", description="Refresh token (unused)")
    expires_at: Optional[datetime] = Field(
        default=None, description="When the token expires (None = never)"
    )
    provider: Provider = Provider.QWEN
    auth_method: AuthMethod = AuthMethod.OAUTH
    account_id: str = Field(default="", description="Account identifier, if known")

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Return ``True`` if ``expires_at`` is set and not strictly in the future.

        A naive ``expires_at`` is treated as UTC.
        """
        if self.expires_at is None:
            return False
        if now is None:
            now = datetime.now(timezone.utc)
        expires = self.expires_at
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return now >= expires

    def is_usable(self, now: Optional[datetime] = None) -> bool:
        """Return ``True`` if the token is non-empty and not expired."""
        return bool(self.access_token) and not self.is_expired(now)


# --- Login flow ---


class GrantSession(BaseModel):
    """State for one QR login attempt. Never persisted.

    Attributes:
        state: CSRF correlation token (64 hex characters).
        code_verifier: PKCE verifier (unpadded base64url).
        code_challenge: ``base64url(sha256(code_verifier))``.
        qr_code_id: Server-side grant identifier used for polling.
        qr_code_url: URL encoded in the QR code shown to the user.
        redirect_uri: Redirect URI reported by the server, if any.
        started_at: :func:`time.monotonic` value when the session began;
            the polling deadline is measured from here.
    """

    state: str
    code_verifier: str
    code_challenge: str
    qr_code_id: str
    qr_code_url: str
    redirect_uri: str = ""
    started_at: float = 0.0


class GrantStatusReport(BaseModel):
    """One answer from the grant status endpoint."""

    status: GrantStatus = GrantStatus.PENDING
    code: str = ""


class TokenResponse(BaseModel):
    """Parsed token endpoint response.

    ``expires_at`` is computed by the exchanger from ``expires_in`` and
    left ``None`` unless the server reported a positive lifetime.
    A JSON ``null`` in any field reads the same as the field being absent.
    """

    model_config = ConfigDict(extra="ignore")

    access_token: str = ""
    refresh_token: str = ""
    expires_in: int = 0
    token_type: str = ""
    expires_at: Optional[datetime] = None

    @field_validator("access_token", "refresh_token", "token_type", mode="before")
    @classmethod
    def _null_str(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("expires_in", mode="before")
    @classmethod
    def _null_int(cls, value: Any) -> Any:
        return 0 if value is None else value


# --- Configuration ---


class ProviderConfig(BaseModel):
    """Endpoints and limits for one provider's QR login flow.

    Built-in values live in :mod:`qrlogin.providers`; any field can be
    overridden per provider in ``config.json``.
    """

    qrcode_url: str
    status_url: str
    token_url: str
    client_id: str
    scope: str = "openid profile email"
    redirect_uri: str = "oob"
    api_base: str = ""
    default_model: str = ""
    poll_interval: float = Field(default=3.0, gt=0, description="Seconds between status checks")
    poll_timeout: float = Field(default=600.0, gt=0, description="Overall login deadline in seconds")
    request_timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")


class OutputConfig(BaseModel):
    """Default output behaviour; CLI flags override these."""

    open_browser: bool = True
    show_qr: bool = True


class GlobalConfig(BaseModel):
    """User-level configuration stored in ``config.json``.

    Example::

        {
          "default_provider": "qwen",
          "providers": {"qwen": {"poll_timeout": 300}}
        }
    """

    default_provider: Provider = Provider.QWEN
    providers: dict[str, dict[str, Any]] = Field(
        default_factory=dict,
        description="Per-provider overrides of ProviderConfig fields",
    )
    output: OutputConfig = Field(default_factory=OutputConfig)
