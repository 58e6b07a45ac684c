"""Tests for logging color output."""
from __future__ import annotations

import logging
import os
from unittest.mock import patch

from tts_gateway.core.logging import formatters
from tts_gateway.core.logging.formatters import (
    ColoredConsoleFormatter,
    Colors,
    colorize,
    get_tag_color,
    supports_color,
)


def _record(msg="synthesis_done", tag="SUCCESS", **attrs):
    record = logging.LogRecord("tts-gateway", logging.INFO, __file__, 1, msg, None, None)
    record.tag = tag
    record.request_id = attrs.pop("request_id", "-")
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


class TestColorSupport:
    """Test color support detection."""

    def test_no_color_env_disables_colors(self):
        with patch.dict(os.environ, {"TTS_GATEWAY_NO_COLOR": "1"}):
            assert supports_color() is False

    def test_no_color_standard_env(self):
        env = {k: v for k, v in os.environ.items() if k != "TTS_GATEWAY_NO_COLOR"}
        env["NO_COLOR"] = "1"
        with patch.dict(os.environ, env, clear=True):
            assert supports_color() is False

    def test_not_a_tty(self):
        class _Pipe:
            def isatty(self):
                return False

        env = {k: v for k, v in os.environ.items() if k not in ("NO_COLOR", "TTS_GATEWAY_NO_COLOR")}
        with patch.dict(os.environ, env, clear=True), patch("sys.stdout", _Pipe()):
            assert supports_color() is False


class TestColorCodes:
    """Test ANSI color codes are applied correctly."""

    def test_colorize_enabled(self):
        with patch.object(formatters, "USE_COLORS", True):
            result = colorize("test", Colors.RED)
        assert result == f"{Colors.RED}test{Colors.RESET}"

    def test_colorize_disabled(self):
        with patch.object(formatters, "USE_COLORS", False):
            assert colorize("test", Colors.RED) == "test"

    def test_tag_colors(self):
        assert get_tag_color("SUCCESS") == Colors.BRIGHT_GREEN
        assert get_tag_color("fail") == Colors.BRIGHT_RED
        assert get_tag_color("WARN") == Colors.BRIGHT_YELLOW
        assert get_tag_color("INFO") == Colors.BRIGHT_CYAN
        assert get_tag_color("UNKNOWN") == Colors.WHITE


class TestConsoleFormatter:
    """Test the console line layout."""

    def test_plain_line(self):
        record = _record(request_id="a1b2c3d4", seconds=0.412, extra_data={"provider": "azure"})
        with patch.object(formatters, "USE_COLORS", False):
            line = ColoredConsoleFormatter().format(record)

        assert "[SUCCESS]" in line
        assert "(a1b2c3d4)" in line
        assert line.endswith("synthesis_done 0.412s provider=azure")

    def test_no_request_id_omitted(self):
        with patch.object(formatters, "USE_COLORS", False):
            line = ColoredConsoleFormatter().format(_record())
        assert "(-)" not in line

    def test_timing_colors(self):
        formatter = ColoredConsoleFormatter()
        with patch.object(formatters, "USE_COLORS", True):
            fast = formatter.format(_record(seconds=0.1))
            medium = formatter.format(_record(seconds=1.0))
            slow = formatter.format(_record(seconds=3.0))

        assert f"{Colors.GREEN}0.100s" in fast
        assert f"{Colors.YELLOW}1.000s" in medium
        assert f"{Colors.RED}3.000s" in slow

    def test_field_colors(self):
        record = _record(extra_data={"provider": "google", "code": "NETWORK_ERROR"})
        with patch.object(formatters, "USE_COLORS", True):
            line = ColoredConsoleFormatter().format(record)

        assert f"{Colors.MAGENTA}provider=google" in line
        assert f"{Colors.RED}code=NETWORK_ERROR" in line
