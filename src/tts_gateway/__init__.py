"""
tts-gateway: Multi-provider Text-to-Speech Gateway.

One request format for several cloud TTS providers, with EU data
residency defaults, retry with backoff and character-based billing
information.

Supported Providers:
    - Azure Speech (SSML, speaking styles)
    - Google Cloud Text-to-Speech (EU endpoint)
    - EdenAI (aggregator)
    - Fish Audio
    - Inworld AI

Key Features:
    - Unified API (/v1/tts) and CLI (tts-gateway synth)
    - MP3 duration estimation from frame headers, no decoding
    - Retry with exponential backoff and full jitter
    - Prometheus metrics

Example Usage:
    >>> from tts_gateway.core.config import load_settings
    >>> from tts_gateway.services import TTSService
    >>> from tts_gateway.providers.base import SynthesizeRequest
    >>>
    >>> service = TTSService(load_settings("config/settings.yaml"))
    >>> result = service.synthesize(SynthesizeRequest(text="Hallo", voice_id="de-DE-KatjaNeural"))
    >>> with open("hallo.mp3", "wb") as f:
    ...     f.write(result.audio)
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
