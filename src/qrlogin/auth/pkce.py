"""Secure random tokens and PKCE (:rfc:`7636`) parameters.

:func:`random_token` draws from the operating system's CSPRNG via
:mod:`secrets` and never falls back to :mod:`random`. :func:`code_challenge`
implements the ``S256`` method; the authorization server recomputes the same
hash from the verifier sent at token-exchange time.
"""

from __future__ import annotations

import base64
import hashlib
import secrets

from qrlogin.exceptions import EntropyError

STATE_BYTES = 32
VERIFIER_BYTES = 32


def _b64url_nopad(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def random_token(byte_length: int, encoding: str = "hex") -> str:
    """Return *byte_length* secure random bytes as text.

    Args:
        byte_length: Number of random bytes to draw. Must be positive.
        encoding: ``"hex"`` (two characters per byte) or ``"urlsafe"``
            (unpadded base64url).

    Raises:
        ValueError: For a non-positive length or an unknown encoding.
        EntropyError: If the operating system cannot supply the bytes.
    """
    if byte_length < 1:
        raise ValueError(f"byte_length must be positive, got {byte_length}")
    if encoding not in ("hex", "urlsafe"):
        raise ValueError(f"Unknown token encoding '{encoding}'")

    try:
        raw = secrets.token_bytes(byte_length)
    except (OSError, NotImplementedError) as exc:
        raise EntropyError(f"Secure random source unavailable: {exc}") from exc
    if len(raw) != byte_length:
        raise EntropyError(
            f"Secure random source returned {len(raw)} of {byte_length} bytes"
        )

    if encoding == "hex":
        return raw.hex()
    return _b64url_nopad(raw)


def generate_state() -> str:
    """Return a fresh CSRF ``state`` value (64 hex characters)."""
    return random_token(STATE_BYTES, "hex")


def code_challenge(code_verifier: str) -> str:
    """Compute the S256 challenge: ``base64url_nopad(sha256(code_verifier))``."""
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return _b64url_nopad(digest)


def generate_pkce_pair() -> tuple[str, str]:
    """Generate a PKCE code_verifier and its S256 code_challenge.

    Returns:
        A tuple of ``(code_verifier, code_challenge)``.
    """
    verifier = random_token(VERIFIER_BYTES, "urlsafe")
    return verifier, code_challenge(verifier)
