"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- print_table in all three modes
- Terminal QR code rendering
- Logging configuration
- Global instance management and convenience functions
"""

from __future__ import annotations

import json
import logging

import pytest
from rich.logging import RichHandler

from qrlogin import output as output_module
from qrlogin.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    configure_logging,
    get_output,
    reset_output,
    set_output,
)


# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("qrlogin.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("qrlogin.output._is_tty", lambda: True)


@pytest.fixture()
def plain(non_tty) -> OutputManager:
    return OutputManager(format=OutputFormat.PLAIN, no_color=True)


# ------------------------------------------------------------------ #
# OutputFormat resolution
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    """Test that AUTO format resolves correctly based on environment."""

    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        mgr = OutputManager(format=OutputFormat.AUTO)
        assert mgr.format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        mgr = OutputManager(format=OutputFormat.AUTO)
        assert mgr.format == OutputFormat.RICH

    def test_no_color_flag_forces_plain(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        mgr = OutputManager(format=OutputFormat.AUTO, no_color=True)
        assert mgr.format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, non_tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    """Test that NO_COLOR and TERM=dumb are respected."""

    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb_disables_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term_keeps_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# stdout vs stderr discipline
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    """Data goes to stdout, diagnostics to stderr."""

    def test_print_data_goes_to_stdout(self, capfd, plain):
        plain.print_data("hello world")
        captured = capfd.readouterr()
        assert "hello world" in captured.out
        assert captured.err == ""

    @pytest.mark.parametrize("method", ["info", "success", "error", "suggest"])
    def test_diagnostics_go_to_stderr(self, capfd, plain, method):
        getattr(plain, method)("diagnostic text")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "diagnostic text" in captured.err

    def test_error_prefix(self, capfd, plain):
        plain.error("connection refused")
        assert capfd.readouterr().err.startswith("Error:")

    def test_suggest_has_arrow(self, capfd, plain):
        plain.suggest("Sign in: qrlogin auth login")
        assert "→ Sign in: qrlogin auth login" in capfd.readouterr().err


class TestQuietAndVerbose:
    def test_quiet_suppresses_info_success_suggest(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.info("x")
        mgr.success("x")
        mgr.suggest("x")
        assert capfd.readouterr().err == ""

    def test_quiet_keeps_error_and_data(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.error("critical error")
        mgr.print_data("important data")
        captured = capfd.readouterr()
        assert "critical error" in captured.err
        assert "important data" in captured.out

    def test_debug_hidden_by_default(self, capfd, plain):
        plain.debug("should not appear")
        assert capfd.readouterr().err == ""

    def test_debug_shown_with_verbose(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True)
        mgr.debug("trace info")
        assert "[debug] trace info" in capfd.readouterr().err


# ------------------------------------------------------------------ #
# Tables
# ------------------------------------------------------------------ #


class TestPrintTable:
    headers = ["Model", "Default"]
    rows = [["qwen-plus", "yes"], ["qwen-max", ""]]

    def test_table_json_mode(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.print_table(self.headers, self.rows)
        parsed = json.loads(capfd.readouterr().out)
        assert parsed == [
            {"Model": "qwen-plus", "Default": "yes"},
            {"Model": "qwen-max", "Default": ""},
        ]

    def test_table_plain_mode(self, capfd, plain):
        plain.print_table(self.headers, self.rows, title="ignored")
        lines = capfd.readouterr().out.splitlines()
        assert lines == ["Model\tDefault", "qwen-plus\tyes", "qwen-max\t"]

    def test_table_rich_mode(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.RICH, no_color=True)
        mgr.print_table(self.headers, self.rows, title="qwen models")
        captured = capfd.readouterr()
        assert "qwen-plus" in captured.out
        assert captured.err == ""


# ------------------------------------------------------------------ #
# QR code rendering
# ------------------------------------------------------------------ #


class TestQrCode:
    def test_renders_to_stderr(self, capfd, plain):
        assert plain.qr_code("https://qr.example.com/q/1") is True
        captured = capfd.readouterr()
        assert captured.out == ""
        assert len(captured.err.splitlines()) > 10

    def test_quiet_skips_rendering(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        assert mgr.qr_code("https://qr.example.com/q/1") is False
        assert capfd.readouterr().err == ""

    def test_rendering_failure_is_reported_not_raised(self, capfd, non_tty, monkeypatch):
        import qrcode

        def broken(*args, **kwargs):
            raise RuntimeError("no renderer")

        monkeypatch.setattr(qrcode, "QRCode", broken)
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True)
        assert mgr.qr_code("data") is False
        assert "Could not render QR code: no renderer" in capfd.readouterr().err


# ------------------------------------------------------------------ #
# Logging
# ------------------------------------------------------------------ #


class TestConfigureLogging:
    def test_installs_single_rich_handler(self):
        configure_logging()
        configure_logging(verbose=True)
        logger = logging.getLogger("qrlogin")
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], RichHandler)
        assert logger.level == logging.DEBUG
        assert logger.propagate is False

    def test_default_level_is_warning(self):
        configure_logging(verbose=False)
        assert logging.getLogger("qrlogin").level == logging.WARNING


# ------------------------------------------------------------------ #
# Global instance management
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_get_output_creates_default(self):
        assert isinstance(get_output(), OutputManager)

    def test_set_output_overrides(self):
        custom = OutputManager(format=OutputFormat.JSON, no_color=True)
        set_output(custom)
        assert get_output() is custom

    def test_set_then_reset_then_get(self):
        first = OutputManager(format=OutputFormat.JSON, no_color=True)
        set_output(first)
        reset_output()
        assert get_output() is not first


class TestConvenienceFunctions:
    """Module-level convenience functions delegate to the global instance."""

    def test_info_convenience(self, capfd, plain):
        set_output(plain)
        output_module.info("hello")
        assert "hello" in capfd.readouterr().err

    def test_error_convenience(self, capfd, plain):
        set_output(plain)
        output_module.error("boom")
        assert capfd.readouterr().err.startswith("Error: boom")
