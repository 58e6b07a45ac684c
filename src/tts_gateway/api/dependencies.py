"""
FastAPI Dependency Injection Providers.

Architecture:
    1. get_settings() - Loads and caches the gateway configuration
    2. get_tts_service() - Creates/returns the singleton TTSService

Both are singletons so that every request shares the same provider
clients (and their connection pools).

Usage in Route Handlers:
    from fastapi import Depends
    from tts_gateway.api.dependencies import get_tts_service

    @router.post("/v1/tts")
    def synthesize(req: TTSRequest, service: TTSService = Depends(get_tts_service)):
        ...

The settings file defaults to config/settings.yaml and can be moved
with TTS_GATEWAY_SETTINGS. A missing file means built-in defaults.
"""
from __future__ import annotations

import os
from functools import lru_cache

from tts_gateway.core.config import Settings, load_settings
from tts_gateway.services.tts_service import TTSService, get_service

DEFAULT_SETTINGS_PATH = "config/settings.yaml"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process."""
    path = os.getenv("TTS_GATEWAY_SETTINGS", DEFAULT_SETTINGS_PATH)
    return load_settings(path, missing_ok=True)


def get_tts_service() -> TTSService:
    return get_service(get_settings())
