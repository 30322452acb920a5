"""Shared test fixtures for qrlogin.

Provides reusable fixtures for isolated config environments, output state,
fake HTTP servers built on :class:`httpx.MockTransport`, a fake clock for
the poller, and the Typer CLI runner.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable

import httpx
import pytest

from qrlogin.models import Provider, ProviderConfig
from qrlogin.output import OutputFormat, OutputManager, reset_output, set_output
from qrlogin.providers import BUILTIN_PROVIDERS


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time; CliRunner swaps those streams, so a fresh manager is
    needed for every test.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration and credentials to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME under tmp_path, forces the XDG
    code path, and clears every QRLOGIN_* / DASHSCOPE_API_KEY variable.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setattr("qrlogin.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in [
        "QRLOGIN_PROVIDER",
        "QRLOGIN_POLL_TIMEOUT",
        "QRLOGIN_POLL_INTERVAL",
        "DASHSCOPE_API_KEY",
    ]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Provider / HTTP fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def qwen_config() -> ProviderConfig:
    """The built-in Qwen provider config with fast polling."""
    return BUILTIN_PROVIDERS[Provider.QWEN].model_copy(
        update={"poll_interval": 3.0, "poll_timeout": 600.0}
    )


Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def make_client() -> Callable[[Handler], httpx.Client]:
    """Factory for an :class:`httpx.Client` backed by a handler function."""
    clients: list[httpx.Client] = []

    def _make(handler: Handler) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()


# ---------------------------------------------------------------------------
# Fake clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Deterministic clock: :meth:`wait` advances time instead of sleeping."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.waits: list[float] = []

    def monotonic(self) -> float:
        return self.now

    def wait(self, seconds: float, cancel: threading.Event) -> bool:
        if cancel.is_set():
            return True
        self.waits.append(seconds)
        self.now += seconds
        return cancel.is_set()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
