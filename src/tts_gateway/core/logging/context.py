"""
Request Context and Configuration State for Logging.

The request ID lives in a ContextVar so that every log line written
while handling one HTTP request (route, service, provider, retry) can
be correlated, across threads of the FastAPI threadpool as well as
async tasks.

Environment Variables:
    - TTS_GATEWAY_SETTINGS: Settings file (default config/settings.yaml)
    - TTS_GATEWAY_LOG_LEVEL: Override log level (1-4 or name)
    - TTS_GATEWAY_LOG_DIR: Enable JSONL file logging into this directory
    - TTS_GATEWAY_JSONL_FILE: JSONL filename
    - TTS_GATEWAY_LOG_ROTATE_BYTES: Max log file size
    - TTS_GATEWAY_LOG_ROTATE_BACKUP: Number of backup files
"""
from __future__ import annotations

import os
from contextvars import ContextVar
from typing import Any, Dict

import yaml

from .levels import LEVEL_NAMES, LogLevel

_request_id: ContextVar[str] = ContextVar("request_id", default="-")

_configured: bool = False
_log_config: Dict[str, Any] = {}
_current_level: LogLevel = LogLevel.NORMAL


def get_request_id() -> str:
    """Request ID of the current context, "-" outside a request."""
    return _request_id.get()


def set_request_id(rid: str) -> None:
    _request_id.set(rid)


def get_level() -> LogLevel:
    return _current_level


def set_level(level: LogLevel) -> None:
    global _current_level
    _current_level = level


def get_level_name() -> str:
    return LEVEL_NAMES.get(int(_current_level), "NORMAL")


def is_configured() -> bool:
    return _configured


def set_configured(value: bool) -> None:
    global _configured
    _configured = value


def get_log_config() -> Dict[str, Any]:
    return _log_config


def set_log_config(config: Dict[str, Any]) -> None:
    global _log_config
    _log_config = config


def _env_int(cfg: Dict[str, Any], key: str, env_name: str) -> None:
    value = os.getenv(env_name)
    if not value:
        return
    try:
        cfg[key] = int(value)
    except ValueError:
        pass  # keep file/default value


def read_logging_config() -> Dict[str, Any]:
    """
    Resolve the logging configuration.

    Priority (highest first):
        1. TTS_GATEWAY_LOG_* environment variables
        2. `logging` section of the settings file
        3. Defaults applied by configure_logging()

    A missing settings file is not an error; logging must work before
    (and without) any configuration.
    """
    from tts_gateway.core.config import load_settings

    cfg: Dict[str, Any] = {}

    settings_path = os.getenv("TTS_GATEWAY_SETTINGS", "config/settings.yaml")
    try:
        settings = load_settings(settings_path, missing_ok=True)
        cfg.update(settings.raw.get("logging", {}) or {})
    except (OSError, yaml.YAMLError):
        pass  # unreadable file, fall back to defaults

    if os.getenv("TTS_GATEWAY_LOG_LEVEL"):
        cfg["level"] = os.environ["TTS_GATEWAY_LOG_LEVEL"]
    if os.getenv("TTS_GATEWAY_LOG_DIR"):
        cfg["log_dir"] = os.environ["TTS_GATEWAY_LOG_DIR"]
    if os.getenv("TTS_GATEWAY_JSONL_FILE"):
        cfg["jsonl_file"] = os.environ["TTS_GATEWAY_JSONL_FILE"]
    _env_int(cfg, "rotate_max_bytes", "TTS_GATEWAY_LOG_ROTATE_BYTES")
    _env_int(cfg, "rotate_backup_count", "TTS_GATEWAY_LOG_ROTATE_BACKUP")

    return cfg
