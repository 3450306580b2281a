"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- JSON and plain rendering of format_response and print_table
- Global instance management
"""

from __future__ import annotations

import json

import pytest

from storehooks import output as output_module
from storehooks.output import (
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
    monkeypatch.setattr("storehooks.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("storehooks.output._is_tty", lambda: True)


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

    def test_no_color_flag_forces_plain_on_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        assert OutputManager(no_color=True).format == OutputFormat.PLAIN

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

    def test_normal_term(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# Streams and verbosity
# ------------------------------------------------------------------ #


class TestStreams:
    def test_data_goes_to_stdout(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).print_data("payload")
        captured = capfd.readouterr()
        assert captured.out == "payload\n"
        assert captured.err == ""

    def test_info_goes_to_stderr(self, capfd, non_tty):
        OutputManager(no_color=True).info("status")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "status" in captured.err

    def test_error_prefix(self, capfd, non_tty):
        OutputManager(no_color=True).error("bad")
        assert capfd.readouterr().err == "Error: bad\n"

    def test_quiet_suppresses_info_not_error(self, capfd, non_tty):
        mgr = OutputManager(no_color=True, quiet=True)
        mgr.info("hidden")
        mgr.error("shown")
        err = capfd.readouterr().err
        assert "hidden" not in err
        assert "shown" in err

    def test_debug_only_when_verbose(self, capfd, non_tty):
        OutputManager(no_color=True).debug("quiet")
        OutputManager(no_color=True, verbose=True).debug("loud")
        err = capfd.readouterr().err
        assert "quiet" not in err
        assert "[debug] loud" in err


# ------------------------------------------------------------------ #
# Rendering
# ------------------------------------------------------------------ #


class TestRendering:
    def test_json_response(self, capfd):
        OutputManager(format=OutputFormat.JSON).format_response({"a": [1, 2]})
        assert json.loads(capfd.readouterr().out) == {"a": [1, 2]}

    def test_plain_response_key_value(self, capfd):
        OutputManager(format=OutputFormat.PLAIN).format_response({"a": 1, "b": "x"})
        assert capfd.readouterr().out == 'a\t1\nb\t"x"\n'

    def test_json_table(self, capfd):
        OutputManager(format=OutputFormat.JSON).print_table(["Name", "Kind"], [["x", "y"]])
        assert json.loads(capfd.readouterr().out) == [{"Name": "x", "Kind": "y"}]

    def test_plain_table(self, capfd):
        OutputManager(format=OutputFormat.PLAIN).print_table(["Name"], [["x"], ["y"]])
        assert capfd.readouterr().out == "x\ny\n"


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_get_output_creates_default(self):
        assert isinstance(get_output(), OutputManager)
        assert get_output() is get_output()

    def test_set_output(self, capfd):
        mgr = OutputManager(format=OutputFormat.JSON)
        set_output(mgr)
        assert get_output() is mgr
        output_module.print_table(["A"], [["1"]])
        assert json.loads(capfd.readouterr().out) == [{"A": "1"}]
