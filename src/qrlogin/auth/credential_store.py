"""Persistent credential store scoped per provider.

Stores credentials in ``<directory>/<provider>.json``, where *directory*
defaults to ``~/.local/share/qrlogin/credentials`` (XDG) or the
platform-equivalent directory. The directory is a constructor argument so
callers and tests can redirect it.

Files are written atomically via :func:`~qrlogin.config.atomic_write` with
``0o600`` permissions so that tokens are never world-readable, even
momentarily. Writes for the same provider are additionally serialised
with a per-provider lock, so two logins finishing at once cannot
interleave their replace-on-write.

See Also:
    :class:`~qrlogin.auth.login.LoginOrchestrator` -- produces the
    credentials saved here.
    :class:`~qrlogin.auth.bearer.OAuthBearerAuth` -- reads them before
    every API request.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Optional

from qrlogin.config import atomic_write, get_credentials_dir
from qrlogin.exceptions import ExpiredCredentialError, MissingCredentialError
from qrlogin.models import Credential, Provider

_locks: dict[str, threading.Lock] = {}
_locks_guard = threading.Lock()


def _provider_lock(provider: Provider) -> threading.Lock:
    with _locks_guard:
        lock = _locks.get(provider.value)
        if lock is None:
            lock = _locks[provider.value] = threading.Lock()
        return lock


class CredentialStore:
    """Read/write the credential for a single provider.

    Args:
        provider: The provider whose credential this store manages.
        directory: Where credential files live. Defaults to
            :func:`~qrlogin.config.get_credentials_dir`.

    Example::

        store = CredentialStore(Provider.QWEN, tmp_path)
        store.save(Credential(access_token="tok123"))
        assert store.load().access_token == "tok123"
    """

    def __init__(self, provider: Provider, directory: Optional[Path] = None) -> None:
        self._provider = provider
        self._dir = Path(directory) if directory is not None else get_credentials_dir()
        self._path = self._dir / f"{provider.value}.json"

    @property
    def provider(self) -> Provider:
        return self._provider

    @property
    def path(self) -> Path:
        """The filesystem path to this provider's credential file."""
        return self._path

    def save(self, credential: Credential) -> None:
        """Persist *credential* atomically with ``0o600`` permissions.

        Raises:
            OSError: If the file cannot be written.
        """
        text = credential.model_dump_json(indent=2) + "\n"
        with _provider_lock(self._provider):
            atomic_write(self._path, text, mode=0o600)

    def load(self) -> Optional[Credential]:
        """Load the stored credential.

        Returns:
            The stored :class:`~qrlogin.models.Credential`, or ``None`` if
            the file does not exist or cannot be parsed.
        """
        if not self._path.is_file():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return Credential.model_validate(data)
        except (json.JSONDecodeError, ValueError, OSError):
            return None

    def is_valid(self) -> bool:
        """Return ``True`` if a usable (non-empty, unexpired) credential is stored."""
        credential = self.load()
        return credential is not None and credential.is_usable()

    def require(self) -> Credential:
        """Return the stored credential if it can be used right now.

        Raises:
            MissingCredentialError: If nothing usable is stored.
            ExpiredCredentialError: If the stored token has expired.
        """
        credential = self.load()
        if credential is None or not credential.access_token:
            raise MissingCredentialError(
                f"No {self._provider.value} credential found -- run: "
                f"qrlogin auth login --provider {self._provider.value}"
            )
        if credential.is_expired():
            raise ExpiredCredentialError(
                f"{self._provider.value} access token expired -- run: "
                f"qrlogin auth login --provider {self._provider.value}"
            )
        return credential

    def clear(self) -> bool:
        """Delete the stored credential file.

        Returns:
            ``True`` if a file was removed, ``False`` if none existed.
        """
        with _provider_lock(self._provider):
            if self._path.is_file():
                self._path.unlink()
                return True
        return False
