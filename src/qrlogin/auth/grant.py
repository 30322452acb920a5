"""QR grant issuance and status polling.

Flow:
    1. :class:`GrantRequester` asks the authorization server for a QR-bound
       grant, sending the ``state`` and PKCE ``code_challenge``.
    2. The user scans the QR code and approves the login in the provider's
       mobile app.
    3. :class:`GrantPoller` queries the status endpoint every
       ``poll_interval`` seconds until the grant is authorized, expired or
       canceled, or the overall deadline elapses.

The decision made after each status report is the pure function
:func:`next_outcome`, so the state machine can be tested without a network
or a real clock. Time is injected through a :class:`Clock`.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Optional

import httpx

from qrlogin.exceptions import (
    GrantTerminatedError,
    LoginCancelledError,
    NetworkError,
    ProtocolError,
    TimeoutError_,
)
from qrlogin.models import (
    GrantSession,
    GrantStatus,
    GrantStatusReport,
    PollOutcome,
    ProviderConfig,
)

logger = logging.getLogger(__name__)

StatusCallback = Callable[[GrantStatus], None]


def _server_message(payload: dict[str, Any]) -> str:
    """Format the envelope's ``code``/``message`` fields for error text."""
    parts = [str(payload[k]) for k in ("code", "message") if payload.get(k)]
    return f" (server said: {' '.join(parts)})" if parts else ""


def _decode_envelope(response: httpx.Response, what: str) -> dict[str, Any]:
    """Parse a ``{code, message, data}`` envelope and return ``data``.

    Raises:
        ProtocolError: If the body is not JSON or ``data`` is not an object.
    """
    try:
        payload = response.json()
    except ValueError:
        raise ProtocolError(
            f"Unparseable {what} response (HTTP {response.status_code}): {response.text}"
        ) from None
    if not isinstance(payload, dict):
        raise ProtocolError(f"Unexpected {what} response: {response.text}")
    data = payload.get("data")
    if not isinstance(data, dict):
        raise ProtocolError(f"The {what} response has no 'data' object{_server_message(payload)}")
    return data


class GrantRequester:
    """Request a QR-bound authorization grant.

    Args:
        config: Provider endpoints, client id, scope and request timeout.
        client: The :class:`httpx.Client` used for the request.
    """

    def __init__(self, config: ProviderConfig, client: httpx.Client) -> None:
        self._config = config
        self._client = client

    def request_grant(self, state: str, code_challenge: str) -> GrantSession:
        """Issue one ``GET`` to the grant endpoint.

        The returned session does not yet carry the PKCE verifier; the
        caller fills ``code_verifier`` in since the requester only ever
        sees the challenge.

        Raises:
            NetworkError: On transport failure.
            ProtocolError: If the body is not JSON or lacks
                ``qrCodeId``/``qrCodeUrl``.
        """
        params = {
            "response_type": "code",
            "client_id": self._config.client_id,
            "state": state,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
            "scope": self._config.scope,
        }
        try:
            response = self._client.get(
                self._config.qrcode_url,
                params=params,
                headers={"Accept": "application/json"},
                timeout=self._config.request_timeout,
            )
        except httpx.HTTPError as exc:
            raise NetworkError(f"QR code request failed: {exc}") from exc

        data = _decode_envelope(response, "QR code")
        qr_code_id = data.get("qrCodeId")
        qr_code_url = data.get("qrCodeUrl")
        if not qr_code_id or not isinstance(qr_code_id, str):
            raise ProtocolError("QR code response missing 'qrCodeId'")
        if not qr_code_url or not isinstance(qr_code_url, str):
            raise ProtocolError("QR code response missing 'qrCodeUrl'")

        return GrantSession(
            state=state,
            code_verifier="",
            code_challenge=code_challenge,
            qr_code_id=qr_code_id,
            qr_code_url=qr_code_url,
            redirect_uri=str(data.get("redirectUri") or ""),
        )


def next_outcome(report: GrantStatusReport) -> PollOutcome:
    """Decide what the poller does with one status report."""
    if report.status is GrantStatus.AUTHORIZED:
        return PollOutcome.AUTHORIZED if report.code else PollOutcome.MISSING_CODE
    if report.status.is_terminal:
        return PollOutcome.TERMINATED
    return PollOutcome.CONTINUE


class Clock:
    """Monotonic time source and cancellable sleep used by :class:`GrantPoller`."""

    def monotonic(self) -> float:
        return time.monotonic()

    def wait(self, seconds: float, cancel: threading.Event) -> bool:
        """Sleep up to *seconds*; return ``True`` early if *cancel* is set."""
        return cancel.wait(seconds)


class GrantPoller:
    """Poll grant status until a terminal outcome or the deadline.

    Transient network and parse errors are logged and swallowed; they do
    not move the deadline. Call :meth:`cancel` from another thread (or a
    signal handler) to stop waiting immediately.

    Args:
        config: Provider endpoints plus ``poll_interval``, ``poll_timeout``
            and ``request_timeout``.
        client: The :class:`httpx.Client` used for status requests.
        clock: Time source; defaults to :class:`Clock`.
        on_status: Called with each new status when it changes.
        cancel_event: Event that stops polling once set; a private one is
            created if omitted.
    """

    def __init__(
        self,
        config: ProviderConfig,
        client: httpx.Client,
        clock: Optional[Clock] = None,
        on_status: Optional[StatusCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self._config = config
        self._client = client
        self._clock = clock or Clock()
        self._on_status = on_status
        self._cancel = cancel_event if cancel_event is not None else threading.Event()

    def cancel(self) -> None:
        """Abort a running :meth:`poll` at its next wake-up (immediately)."""
        self._cancel.set()

    def check_status(self, qr_code_id: str) -> GrantStatusReport:
        """Query the status endpoint once.

        Raises:
            NetworkError: On transport failure.
            ProtocolError: On a non-2xx status or an unparseable body.
        """
        try:
            response = self._client.get(
                self._config.status_url,
                params={"id": qr_code_id},
                headers={"Accept": "application/json"},
                timeout=self._config.request_timeout,
            )
        except httpx.HTTPError as exc:
            raise NetworkError(f"Status check failed: {exc}") from exc
        if response.is_error:
            raise ProtocolError(f"Status check returned HTTP {response.status_code}")

        data = _decode_envelope(response, "status")
        return GrantStatusReport(
            status=GrantStatus.parse(data.get("status")),
            code=str(data.get("code") or ""),
        )

    def poll(self, session: GrantSession) -> str:
        """Block until the grant is authorized and return the authorization code.

        Raises:
            ProtocolError: If the grant is authorized without a code.
            GrantTerminatedError: If the grant expired or was canceled.
            TimeoutError_: If ``poll_timeout`` elapses first.
            LoginCancelledError: If :meth:`cancel` was called.
        """
        interval = self._config.poll_interval
        deadline = session.started_at + self._config.poll_timeout
        next_tick = self._clock.monotonic() + interval
        last_status = GrantStatus.PENDING

        while True:
            now = self._clock.monotonic()
            if now >= deadline:
                break
            if self._clock.wait(max(0.0, min(next_tick, deadline) - now), self._cancel):
                raise LoginCancelledError("Login cancelled")
            now = self._clock.monotonic()
            if now >= deadline:
                break
            next_tick = now + interval

            try:
                report = self.check_status(session.qr_code_id)
            except (NetworkError, ProtocolError) as exc:
                logger.debug("Ignoring transient polling error: %s", exc)
                continue

            if report.status is not last_status:
                if last_status is GrantStatus.SCANNED and report.status is GrantStatus.PENDING:
                    logger.debug("Grant %s went back from SCANNED to PENDING", session.qr_code_id)
                logger.debug("Grant %s status: %s", session.qr_code_id, report.status.value)
                last_status = report.status
                if self._on_status is not None:
                    self._on_status(report.status)

            outcome = next_outcome(report)
            if outcome is PollOutcome.AUTHORIZED:
                return report.code
            if outcome is PollOutcome.MISSING_CODE:
                raise ProtocolError("Grant authorized but authorization code missing")
            if outcome is PollOutcome.TERMINATED:
                raise GrantTerminatedError(
                    f"QR code {report.status.value.lower()} -- please run the login again"
                )

        minutes = self._config.poll_timeout / 60
        raise TimeoutError_(f"QR code was not approved within {minutes:g} minutes")
