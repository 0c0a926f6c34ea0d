"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet mode suppression rules, including sign-in notices
- Verbose mode debug output
- print_table and print_json
- Logging through RichHandler
- Global instance management
"""

from __future__ import annotations

import json
import logging

import pytest
from rich.logging import RichHandler

from spauth import output as output_module
from spauth.output import (
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
    monkeypatch.setattr("spauth.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("spauth.output._is_tty", lambda: True)


# ------------------------------------------------------------------ #
# OutputFormat resolution
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.RICH

    def test_no_color_flag_forces_plain(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        mgr = OutputManager(format=OutputFormat.AUTO, no_color=True)
        assert mgr.format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb(self, monkeypatch):
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
    """Headers and tables go to stdout; everything for the user goes to stderr."""

    def test_print_data_goes_to_stdout(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).print_data("Authorization: x")
        captured = capfd.readouterr()
        assert "Authorization: x" in captured.out
        assert captured.err == ""

    @pytest.mark.parametrize("method", ["success", "warning", "error"])
    def test_diagnostics_go_to_stderr(self, capfd, non_tty, method):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        getattr(mgr, method)("a message")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "a message" in captured.err

    def test_notice_goes_to_stderr(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.notice("Device code sign-in", "enter ABCD-EFGH")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "Device code sign-in: enter ABCD-EFGH" in captured.err

    def test_notice_panel_in_rich_mode(self, capfd, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        mgr = OutputManager(format=OutputFormat.RICH)
        mgr.notice("Browser sign-in", "visit the URL")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "Browser sign-in" in captured.err
        assert "visit the URL" in captured.err


# ------------------------------------------------------------------ #
# Quiet and verbose
# ------------------------------------------------------------------ #


class TestQuietMode:
    def test_quiet_suppresses_success(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.success("hidden")
        assert capfd.readouterr().err == ""

    def test_quiet_keeps_warning_and_error(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.warning("important warning")
        mgr.error("critical error")
        err = capfd.readouterr().err
        assert "important warning" in err
        assert "critical error" in err

    def test_quiet_keeps_sign_in_notice(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.notice("Device code sign-in", "enter ABCD-EFGH")
        assert "ABCD-EFGH" in capfd.readouterr().err


class TestVerboseMode:
    def test_debug_hidden_by_default(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).debug("hidden")
        assert capfd.readouterr().err == ""

    def test_debug_shown_with_verbose(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True).debug("details")
        assert "[debug] details" in capfd.readouterr().err


# ------------------------------------------------------------------ #
# Structured output
# ------------------------------------------------------------------ #


class TestStructuredOutput:
    def test_print_json(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.print_json({"headers": {"Authorization": "Bearer t"}})
        assert json.loads(capfd.readouterr().out) == {"headers": {"Authorization": "Bearer t"}}

    def test_table_as_json(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.print_table(["id", "name"], [["deviceCode", "Device Code Flow"]])
        assert json.loads(capfd.readouterr().out) == [
            {"id": "deviceCode", "name": "Device Code Flow"}
        ]

    def test_table_as_tsv(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.print_table(["id", "name"], [["deviceCode", "Device Code Flow"]])
        assert capfd.readouterr().out.splitlines() == ["id\tname", "deviceCode\tDevice Code Flow"]


# ------------------------------------------------------------------ #
# Logging
# ------------------------------------------------------------------ #


class TestConfigureLogging:
    def test_installs_single_rich_handler(self):
        configure_logging()
        configure_logging(verbose=True)
        handlers = logging.getLogger("spauth").handlers
        assert len([h for h in handlers if isinstance(h, RichHandler)]) == 1

    def test_level_follows_verbose(self):
        configure_logging(verbose=False)
        assert logging.getLogger("spauth").level == logging.WARNING
        configure_logging(verbose=True)
        assert logging.getLogger("spauth").level == logging.DEBUG

    def test_warning_reaches_stderr(self, capfd, non_tty):
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        configure_logging()
        logging.getLogger("spauth.auth.online").warning("refresh rejected")
        assert "refresh rejected" in capfd.readouterr().err


# ------------------------------------------------------------------ #
# Global instance management
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_get_output_creates_default(self, non_tty):
        reset_output()
        assert isinstance(get_output(), OutputManager)
        assert get_output() is get_output()

    def test_set_output_replaces(self, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON)
        set_output(mgr)
        assert get_output() is mgr

    def test_module_helpers_use_global(self, capfd, non_tty):
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        output_module.print_data("to stdout")
        output_module.notice("Title", "to stderr")
        captured = capfd.readouterr()
        assert captured.out.strip() == "to stdout"
        assert "Title: to stderr" in captured.err
