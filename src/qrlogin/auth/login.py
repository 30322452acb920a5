"""End-to-end QR-code login with PKCE.

Flow:
    1. Generate ``state`` (32 random bytes, hex) and a PKCE verifier and
       S256 challenge.
    2. Request a QR grant via :class:`~qrlogin.auth.grant.GrantRequester`.
    3. Show the grant URL and QR code, and try to open the URL in a
       browser.
    4. Block in :class:`~qrlogin.auth.grant.GrantPoller` until the user
       approves in the provider's app.
    5. Exchange the code via :class:`~qrlogin.auth.token.TokenExchanger`.
    6. Assemble the :class:`~qrlogin.models.Credential`.

:class:`LoginOrchestrator` never persists the credential; the caller
hands it to a :class:`~qrlogin.auth.credential_store.CredentialStore`.
"""

from __future__ import annotations

import logging
import threading
import webbrowser
from typing import Callable, Optional

import httpx

from qrlogin.auth.credential import assemble_credential
from qrlogin.auth.grant import Clock, GrantPoller, GrantRequester
from qrlogin.auth.pkce import generate_pkce_pair, generate_state
from qrlogin.auth.token import TokenExchanger
from qrlogin.exceptions import LoginCancelledError
from qrlogin.models import Credential, GrantStatus, Provider, ProviderConfig
from qrlogin.output import get_output

logger = logging.getLogger(__name__)

_STATUS_MESSAGES = {
    GrantStatus.SCANNED: "QR code scanned -- confirm the login in the app...",
    GrantStatus.AUTHORIZED: "Login approved, fetching token...",
}


class LoginOrchestrator:
    """Run the QR login flow for one provider.

    Args:
        provider: Which service to sign in to.
        config: Effective endpoints and limits for *provider*.
        client: Optional shared :class:`httpx.Client`; one is created and
            closed per :meth:`login` call otherwise.
        clock: Time source for the poller.
        open_browser: Whether to try opening the grant URL.
        show_qr: Whether to render the QR code in the terminal.
        browser_opener: Replaces :func:`webbrowser.open`.
    """

    def __init__(
        self,
        provider: Provider,
        config: ProviderConfig,
        client: Optional[httpx.Client] = None,
        clock: Optional[Clock] = None,
        open_browser: bool = True,
        show_qr: bool = True,
        browser_opener: Optional[Callable[[str], bool]] = None,
    ) -> None:
        self._provider = provider
        self._config = config
        self._client = client
        self._clock = clock or Clock()
        self._open_browser = open_browser
        self._show_qr = show_qr
        self._browser_opener = browser_opener or webbrowser.open
        self._cancel = threading.Event()

    def cancel(self) -> None:
        """Stop the login at the next step boundary, or at once while polling.

        The orchestrator stays cancelled; later :meth:`login` calls fail
        with :class:`~qrlogin.exceptions.LoginCancelledError`.
        """
        self._cancel.set()

    def _check_cancelled(self) -> None:
        if self._cancel.is_set():
            raise LoginCancelledError("Login cancelled")

    def login(self) -> Credential:
        """Run the flow and return the new credential.

        Raises:
            EntropyError: If secure random bytes are unavailable.
            NetworkError: If the grant or token request cannot be sent.
            ProtocolError: On malformed server responses.
            HTTPError: If the token endpoint rejects the exchange.
            GrantTerminatedError: If the QR code expired or was canceled.
            TimeoutError_: If the QR code was not approved in time.
            LoginCancelledError: If :meth:`cancel` was called.
        """
        if self._client is not None:
            return self._run(self._client)
        with httpx.Client() as client:
            return self._run(client)

    def _run(self, client: httpx.Client) -> Credential:
        output = get_output()
        self._check_cancelled()
        output.info(f"Requesting {self._provider.value} login QR code...")

        state = generate_state()
        code_verifier, code_challenge = generate_pkce_pair()

        session = GrantRequester(self._config, client).request_grant(state, code_challenge)
        session = session.model_copy(
            update={"code_verifier": code_verifier, "started_at": self._clock.monotonic()}
        )
        logger.debug("Got grant %s", session.qr_code_id)
        self._check_cancelled()

        self._display_grant(session.qr_code_url)
        self._check_cancelled()

        poller = GrantPoller(
            self._config,
            client,
            clock=self._clock,
            on_status=self._report_status,
            cancel_event=self._cancel,
        )
        code = poller.poll(session)

        token = TokenExchanger(self._config, client).exchange(
            code, session.code_verifier, session.state
        )
        credential = assemble_credential(token, self._provider)
        output.success("Authentication successful!")
        return credential

    def _display_grant(self, url: str) -> None:
        output = get_output()
        output.info("")
        output.info("Scan the QR code with the provider's mobile app to sign in:")
        if self._show_qr:
            output.qr_code(url)
        output.info(f"QR code URL: {url}")
        output.info("")

        if self._open_browser:
            try:
                opened = self._browser_opener(url)
            except Exception as exc:  # noqa: BLE001
                logger.debug("Opening browser failed: %s", exc)
                opened = False
            if not opened:
                output.suggest("Could not open a browser; open the URL above manually.")

        minutes = self._config.poll_timeout / 60
        output.info(f"Waiting for approval (up to {minutes:g} minutes, Ctrl-C to cancel)...")

    def _report_status(self, status: GrantStatus) -> None:
        message = _STATUS_MESSAGES.get(status)
        if message:
            get_output().info(message)
