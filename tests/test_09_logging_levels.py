"""Tests for the numeric logging level system."""
from __future__ import annotations

import io
import json
import logging
import os
from pathlib import Path
from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def restore_logging():
    """Leave a NORMAL console configuration behind for other tests."""
    yield
    from tts_gateway.core.logging import configure_logging

    configure_logging(level=2, force=True)


class TestLogLevelEnum:
    """Test LogLevel enum values."""

    def test_level_enum_values(self):
        from tts_gateway.core.logging import LogLevel

        assert LogLevel.MINIMAL == 1
        assert LogLevel.NORMAL == 2
        assert LogLevel.VERBOSE == 3
        assert LogLevel.DEBUG == 4

    def test_level_map(self):
        from tts_gateway.core.logging import LEVEL_MAP, LogLevel

        assert LEVEL_MAP[LogLevel.MINIMAL] == logging.WARNING
        assert LEVEL_MAP[LogLevel.NORMAL] == logging.INFO
        assert LEVEL_MAP[LogLevel.VERBOSE] == logging.DEBUG


class TestLevelCoercion:
    """Test level coercion from various input types."""

    def test_level_from_int(self):
        from tts_gateway.core.logging import LogLevel, coerce_level

        assert coerce_level(1) == LogLevel.MINIMAL
        assert coerce_level(4) == LogLevel.DEBUG

    def test_level_from_string_names(self):
        from tts_gateway.core.logging import LogLevel, coerce_level

        assert coerce_level("minimal") == LogLevel.MINIMAL
        assert coerce_level("VERBOSE") == LogLevel.VERBOSE
        assert coerce_level("trace") == LogLevel.DEBUG
        assert coerce_level(" 3 ") == LogLevel.VERBOSE

    def test_level_from_python_levels(self):
        from tts_gateway.core.logging import LogLevel, coerce_level

        assert coerce_level("INFO") == LogLevel.NORMAL
        assert coerce_level("WARNING") == LogLevel.MINIMAL
        assert coerce_level(logging.WARNING) == LogLevel.MINIMAL
        assert coerce_level(logging.INFO) == LogLevel.NORMAL

    def test_invalid_level_defaults_to_normal(self):
        from tts_gateway.core.logging import LogLevel, coerce_level

        assert coerce_level("invalid") == LogLevel.NORMAL
        assert coerce_level(None) == LogLevel.NORMAL
        assert coerce_level(True) == LogLevel.NORMAL


class TestLevelFiltering:
    """Test that log messages are filtered by level."""

    def test_level_filtering_minimal(self):
        from tts_gateway.core.logging import configure_logging, debug, fail, get_logger, info

        captured = io.StringIO()
        with patch("sys.stdout", captured):
            configure_logging(level=1, force=True)
            log = get_logger("test_minimal")

            info(log, "info message")
            fail(log, "fail message")
            debug(log, "debug message")

        output = captured.getvalue()
        assert "fail message" in output
        assert "info message" not in output
        assert "debug message" not in output

    def test_level_filtering_normal(self):
        from tts_gateway.core.logging import configure_logging, get_logger, info, verbose, warn

        captured = io.StringIO()
        with patch("sys.stdout", captured):
            configure_logging(level=2, force=True)
            log = get_logger("test_normal")

            info(log, "info message")
            warn(log, "warn message")
            verbose(log, "verbose message")

        output = captured.getvalue()
        assert "info message" in output
        assert "warn message" in output
        assert "verbose message" not in output

    def test_level_filtering_debug(self):
        from tts_gateway.core.logging import configure_logging, debug, get_logger, info, verbose

        captured = io.StringIO()
        with patch("sys.stdout", captured):
            configure_logging(level=4, force=True)
            log = get_logger("test_debug")

            info(log, "info message")
            verbose(log, "verbose message")
            debug(log, "debug message")

        output = captured.getvalue()
        assert "info message" in output
        assert "verbose message" in output
        assert "debug message" in output

    def test_fields_rendered(self):
        from tts_gateway.core.logging import configure_logging, get_logger, info

        captured = io.StringIO()
        with patch("sys.stdout", captured):
            configure_logging(level=2, force=True)
            info(get_logger("test_fields"), "synthesis_started", provider="azure", seconds=0.25)

        output = captured.getvalue()
        assert "provider=azure" in output
        assert "0.250s" in output


class TestRequestIdPropagation:
    """Test that request_id is included in logs."""

    def test_request_id_in_log_output(self):
        from tts_gateway.core.logging import configure_logging, get_logger, info, set_request_id

        captured = io.StringIO()
        with patch("sys.stdout", captured):
            configure_logging(level=2, force=True)
            set_request_id("test-rid-123")
            info(get_logger("test_rid"), "message with rid")

        assert "test-rid-123" in captured.getvalue()


class TestEnvOverride:
    """Test environment variable overrides."""

    def test_env_override_log_level(self):
        from tts_gateway.core.logging import LogLevel, configure_logging, get_level

        with patch.dict(os.environ, {"TTS_GATEWAY_LOG_LEVEL": "3"}):
            configure_logging(force=True)
            assert get_level() == LogLevel.VERBOSE

    def test_settings_file_level(self, tmp_path):
        from tts_gateway.core.logging import LogLevel, configure_logging, get_level

        path = tmp_path / "settings.yaml"
        path.write_text("logging:\n  level: MINIMAL\n", encoding="utf-8")
        with patch.dict(os.environ, {"TTS_GATEWAY_SETTINGS": str(path)}):
            configure_logging(force=True)
            assert get_level() == LogLevel.MINIMAL

    def test_broken_settings_file_ignored(self, tmp_path):
        from tts_gateway.core.logging import LogLevel, configure_logging, get_level

        path = tmp_path / "settings.yaml"
        path.write_text("logging: [unclosed\n", encoding="utf-8")
        with patch.dict(os.environ, {"TTS_GATEWAY_SETTINGS": str(path)}):
            configure_logging(force=True)
            assert get_level() == LogLevel.NORMAL


class TestJsonlOutput:
    """Test JSONL file output."""

    def test_jsonl_output_format(self, tmp_path):
        from tts_gateway.core.logging import configure_logging, get_logger, info, set_request_id

        jsonl_path = Path(tmp_path) / "test.jsonl"
        with patch.dict(os.environ, {
            "TTS_GATEWAY_LOG_DIR": str(tmp_path),
            "TTS_GATEWAY_JSONL_FILE": "test.jsonl",
        }):
            configure_logging(level=2, force=True)
            set_request_id("rid-jsonl")
            info(get_logger("test_jsonl"), "test message", key="value")

            root = logging.getLogger()
            for handler in root.handlers:
                handler.flush()
                handler.close()
            root.handlers = []

        lines = [line for line in jsonl_path.read_text(encoding="utf-8").splitlines() if line]
        records = [json.loads(line) for line in lines]
        record = next(r for r in records if r["message"] == "test message")
        assert record["level"] == 2
        assert record["tag"] == "INFO"
        assert record["request_id"] == "rid-jsonl"
        assert record["extra"] == {"key": "value"}
        assert "ts" in record


class TestGetLevelName:
    """Test get_level_name function."""

    def test_get_level_name(self):
        from tts_gateway.core.logging import configure_logging, get_level_name

        configure_logging(level=1, force=True)
        assert get_level_name() == "MINIMAL"

        configure_logging(level=3, force=True)
        assert get_level_name() == "VERBOSE"
