"""
tts-gateway Services Layer.

Sits between the HTTP API / CLI and the provider adapters.

Components:
    - tts_service.py: TTSService (provider selection, retry, metrics)

The TTSService class handles:
    - Provider initialization from settings
    - Default provider selection
    - Retry with exponential backoff
    - Request logging and metrics
"""
from .tts_service import (
    ProviderNotAvailableError,
    TTSService,
    get_service,
    reset_service,
)

__all__ = [
    "TTSService",
    "ProviderNotAvailableError",
    "get_service",
    "reset_service",
]
