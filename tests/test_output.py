"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/json based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- JSON response rendering and print_table
- The -v request/response trace
- Global instance management and convenience functions
"""

from __future__ import annotations

import json

import pytest

from xurl import output as output_module
from xurl.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture(autouse=True)
def _reset_global_output():
    """Ensure the global output instance is reset between tests."""
    reset_output()
    yield
    reset_output()


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("xurl.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("xurl.output._is_tty", lambda: True)


# ------------------------------------------------------------------ #
# OutputFormat resolution
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    def test_auto_resolves_to_json_when_not_tty(self, non_tty):
        assert OutputManager().format == OutputFormat.JSON

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager().format == OutputFormat.RICH

    def test_no_color_flag_forces_json(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager(no_color=True).format == OutputFormat.JSON

    def test_explicit_json_stays_json(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON

    def test_explicit_rich_stays_rich(self, non_tty):
        assert OutputManager(format=OutputFormat.RICH).format == OutputFormat.RICH


class TestColorDisabling:
    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# stdout vs stderr discipline
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    def test_print_data_goes_to_stdout(self, capfd, non_tty):
        mgr = OutputManager(no_color=True)
        mgr.print_data('{"id":"1"}')
        captured = capfd.readouterr()
        assert captured.out == '{"id":"1"}\n'
        assert captured.err == ""

    def test_print_data_keeps_existing_newline(self, capfd, non_tty):
        OutputManager(no_color=True).print_data("line\n")
        assert capfd.readouterr().out == "line\n"

    @pytest.mark.parametrize("method", ["info", "success", "warning", "error", "suggest"])
    def test_diagnostics_go_to_stderr(self, capfd, non_tty, method):
        mgr = OutputManager(no_color=True)
        getattr(mgr, method)("diagnostic text")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "diagnostic text" in captured.err

    def test_format_response_goes_to_stdout(self, capfd, non_tty):
        OutputManager(no_color=True).format_response({"key": "value"})
        captured = capfd.readouterr()
        assert json.loads(captured.out) == {"key": "value"}
        assert captured.err == ""


class TestDiagnosticFormatting:
    def test_error_prefix(self, capfd, non_tty):
        OutputManager(no_color=True).error("connection refused")
        assert capfd.readouterr().err.startswith("Error: connection refused")

    def test_warning_prefix(self, capfd, non_tty):
        OutputManager(no_color=True).warning("careful")
        assert capfd.readouterr().err.startswith("Warning: careful")

    def test_suggest_has_arrow(self, capfd, non_tty):
        OutputManager(no_color=True).suggest("Run: xurl auth oauth2")
        assert "→ Run: xurl auth oauth2" in capfd.readouterr().err


# ------------------------------------------------------------------ #
# Quiet / verbose
# ------------------------------------------------------------------ #


class TestQuietMode:
    @pytest.mark.parametrize("method", ["info", "success", "suggest"])
    def test_quiet_suppresses(self, capfd, non_tty, method):
        mgr = OutputManager(no_color=True, quiet=True)
        getattr(mgr, method)("hidden")
        assert capfd.readouterr().err == ""

    @pytest.mark.parametrize("method", ["warning", "error"])
    def test_quiet_keeps(self, capfd, non_tty, method):
        mgr = OutputManager(no_color=True, quiet=True)
        getattr(mgr, method)("shown")
        assert "shown" in capfd.readouterr().err

    def test_quiet_keeps_stdout_data(self, capfd, non_tty):
        OutputManager(no_color=True, quiet=True).print_data("data")
        assert capfd.readouterr().out == "data\n"

    def test_is_quiet_property(self, non_tty):
        assert OutputManager(quiet=True).is_quiet is True
        assert OutputManager().is_quiet is False


class TestVerboseMode:
    def test_debug_hidden_by_default(self, capfd, non_tty):
        OutputManager(no_color=True).debug("hidden")
        assert capfd.readouterr().err == ""

    def test_debug_shown_with_verbose(self, capfd, non_tty):
        OutputManager(no_color=True, verbose=True).debug("details")
        assert "[debug] details" in capfd.readouterr().err

    def test_verbose_property(self, non_tty):
        assert OutputManager(verbose=True).is_verbose is True

    def test_enable_verbose_after_construction(self, capfd, non_tty):
        mgr = OutputManager(no_color=True)
        mgr.enable_verbose()
        mgr.debug("late")
        assert mgr.is_verbose is True
        assert "[debug] late" in capfd.readouterr().err


class TestTrace:
    def test_trace_block(self, capfd, non_tty):
        mgr = OutputManager(no_color=True)
        mgr.trace(">", ["GET https://api.x.com/2/users/me", "User-Agent: xurl/1.0.0"])
        captured = capfd.readouterr()
        assert captured.out == ""
        assert captured.err.splitlines() == [
            "> GET https://api.x.com/2/users/me",
            "> User-Agent: xurl/1.0.0",
            ">",
        ]

    def test_trace_shown_without_verbose_flag(self, capfd, non_tty):
        OutputManager(no_color=True, quiet=True).trace("<", ["HTTP/1.1 200 OK"])
        assert "< HTTP/1.1 200 OK" in capfd.readouterr().err


# ------------------------------------------------------------------ #
# Response rendering
# ------------------------------------------------------------------ #


class TestFormatResponse:
    def test_json_is_indented(self, capfd, non_tty):
        OutputManager(no_color=True).format_response({"data": {"id": "1"}})
        out = capfd.readouterr().out
        assert out.startswith("{\n  ")

    def test_unicode_kept(self, capfd, non_tty):
        OutputManager(no_color=True).format_response({"text": "héllo 🌍"})
        assert "héllo 🌍" in capfd.readouterr().out

    @pytest.mark.parametrize("value", [{}, [], True, None, 42])
    def test_other_values(self, capfd, non_tty, value):
        OutputManager(no_color=True).format_response(value)
        assert json.loads(capfd.readouterr().out) == value

    def test_rich_mode_produces_output(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).format_response({"name": "xurl"})
        out = capfd.readouterr().out
        assert "name" in out
        assert "xurl" in out


class TestPrintTable:
    def test_table_json_mode(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.print_table(["name", "client"], [["default", "abc..."], ["work", "def..."]])
        parsed = json.loads(capfd.readouterr().out)
        assert parsed == [
            {"name": "default", "client": "abc..."},
            {"name": "work", "client": "def..."},
        ]

    def test_table_empty_rows(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON, no_color=True).print_table(["a"], [])
        assert json.loads(capfd.readouterr().out) == []

    def test_table_rich_mode(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.RICH, no_color=True)
        mgr.print_table(["app", "oauth2"], [["default", "alice"]], title="Apps")
        out = capfd.readouterr().out
        assert "app" in out
        assert "alice" in out
        assert "Apps" in out


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

    def test_reset_creates_new_instance(self):
        first = OutputManager(format=OutputFormat.JSON, no_color=True)
        set_output(first)
        reset_output()
        assert get_output() is not first


class TestConvenienceFunctions:
    def test_format_response(self, capfd, non_tty):
        set_output(OutputManager(format=OutputFormat.JSON, no_color=True))
        output_module.format_response({"a": 1})
        assert json.loads(capfd.readouterr().out) == {"a": 1}

    def test_print_table(self, capfd, non_tty):
        set_output(OutputManager(format=OutputFormat.JSON, no_color=True))
        output_module.print_table(["x"], [["1"]])
        assert json.loads(capfd.readouterr().out) == [{"x": "1"}]

    @pytest.mark.parametrize("name", ["info", "error", "success", "warning", "suggest"])
    def test_diagnostics(self, capfd, non_tty, name):
        set_output(OutputManager(no_color=True))
        getattr(output_module, name)("message")
        assert "message" in capfd.readouterr().err

    def test_debug(self, capfd, non_tty):
        set_output(OutputManager(no_color=True, verbose=True))
        output_module.debug("dbg")
        assert "dbg" in capfd.readouterr().err
