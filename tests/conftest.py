"""Shared fixtures: clean provider environment and synthetic MP3 frames."""
from __future__ import annotations

import pytest

PROVIDER_ENV_VARS = (
    "AZURE_SPEECH_KEY",
    "AZURE_SPEECH_REGION",
    "AZURE_SPEECH_ENDPOINT",
    "EDENAI_API_KEY",
    "GOOGLE_TTS_API_KEY",
    "GOOGLE_TTS_ACCESS_TOKEN",
    "GOOGLE_TTS_REGION",
    "FISH_AUDIO_API_KEY",
    "INWORLD_API_KEY",
    "TTS_DEFAULT_PROVIDER",
)

# MPEG-1 Layer III, 128 kbps, 44.1 kHz, no padding: 417 bytes, 1152 samples
FRAME_HEADER = b"\xff\xfb\x90\x00"
FRAME_SIZE = 417


@pytest.fixture(autouse=True)
def clean_provider_env(monkeypatch):
    """Tests never see real credentials from the developer's shell."""
    for name in PROVIDER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TTS_GATEWAY_SETTINGS", "does-not-exist.yaml")
    yield


@pytest.fixture
def mp3_frame() -> bytes:
    """One MPEG-1 Layer III frame (26 ms of audio)."""
    return FRAME_HEADER + b"\x00" * (FRAME_SIZE - len(FRAME_HEADER))


@pytest.fixture
def mp3_audio(mp3_frame) -> bytes:
    """Ten frames, 261 ms."""
    return mp3_frame * 10
