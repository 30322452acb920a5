"""Abstract base class for request authentication.

This module defines the two foundational types that downstream API clients
use to present a credential:

- :class:`AuthResult` -- a plain container for the HTTP headers that an
  auth strategy produces.
- :class:`AuthPlugin` -- the abstract base class for auth strategies. It is
  also an :class:`httpx.Auth`, so an instance can be handed straight to
  ``httpx.Client(auth=...)`` and is consulted before every request.

See Also:
    :mod:`qrlogin.auth.bearer` for the OAuth and API-key strategies.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generator

import httpx

from qrlogin.models import AuthMethod, Provider


class AuthResult:
    """Container for authentication headers to inject into HTTP requests.

    Args:
        headers: HTTP headers to add (e.g. ``{"Authorization": "Bearer ..."}``).

    Example::

        result = AuthResult(headers={"Authorization": "Bearer tok123"})
        assert result.headers["Authorization"] == "Bearer tok123"
    """

    def __init__(self, headers: dict[str, str] | None = None):
        self.headers = headers or {}


class AuthPlugin(httpx.Auth, ABC):
    """Abstract base class for authentication strategies.

    Subclasses provide :attr:`auth_method` and :meth:`authenticate`. The
    :meth:`auth_flow` hook calls :meth:`authenticate` for every request, so
    a credential that expires mid-session is detected on the next call.

    Args:
        provider: The provider the credential belongs to.
    """

    def __init__(self, provider: Provider) -> None:
        self.provider = provider

    @property
    @abstractmethod
    def auth_method(self) -> AuthMethod:
        """Return how this strategy obtains its credential."""
        ...

    @abstractmethod
    def authenticate(self) -> AuthResult:
        """Resolve the credential and return headers for one request.

        Raises:
            AuthError: If no usable credential is available.
        """
        ...

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers.update(self.authenticate().headers)
        yield request
