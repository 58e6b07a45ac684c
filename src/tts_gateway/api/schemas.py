"""
API Request/Response Schemas.

Pydantic models for the gateway endpoints. They provide request
validation, JSON (de)serialization and the OpenAPI documentation.

Models:
    AudioSettings: Output audio options of a TTSRequest
    RetrySettings: Per-request retry override
    TTSRequest: Input schema for POST /v1/tts
    ProvidersResponse: Output of GET /v1/providers
    DurationResponse: Output of POST /v1/audio/duration

Example Request:
    {
        "text": "Guten Tag, wie geht es Ihnen?",
        "voice_id": "de-DE-KatjaNeural",
        "provider": "azure",
        "audio": {"format": "mp3", "speed": 1.1},
        "provider_options": {"style": "cheerful"}
    }

See Also:
    - providers/base.py: SynthesizeRequest (what a TTSRequest becomes)
"""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from tts_gateway.core.config import RetryConfig
from tts_gateway.providers.base import AudioOptions, SynthesizeRequest

AudioFormat = Literal["mp3", "wav", "opus", "aac", "flac"]


class AudioSettings(BaseModel):
    """
    Output audio options.

    Attributes:
        format: Audio container/codec. Only mp3 gets a duration estimate.
        speed: Speaking rate, 1.0 = normal.
        pitch: Pitch shift in semitones (Google, Azure via SSML style).
        volume_gain_db: Volume gain in dB (Google, Fish Audio).
        sample_rate: Requested sample rate; provider default if omitted.
    """
    format: Optional[AudioFormat] = Field(default=None, description="Audio format (server default if omitted)")
    speed: Optional[float] = Field(default=None, ge=0.25, le=4.0)
    pitch: Optional[float] = Field(default=None, ge=-20.0, le=20.0)
    volume_gain_db: Optional[float] = Field(default=None, ge=-96.0, le=16.0)
    sample_rate: Optional[int] = Field(default=None, gt=0)


class RetrySettings(BaseModel):
    max_retries: int = Field(default=3, ge=0, le=10)
    initial_delay_ms: int = Field(default=1000, gt=0)
    multiplier: float = Field(default=2.0, gt=0)
    max_delay_ms: int = Field(default=30000, gt=0)


class TTSRequest(BaseModel):
    """
    Synthesis request for POST /v1/tts.

    Attributes:
        text: Text to synthesize. Length limits are enforced by the
            provider against tts.max_text_length.
        voice_id: Provider-specific voice ID ("de-DE-KatjaNeural",
            "de-DE-Neural2-B", a Fish Audio model ID, ...).
        provider: Provider name; the gateway default if omitted.
        audio: Output audio options.
        provider_options: Provider-specific settings, passed through.
        retry: true (default config), false (single attempt) or an
            explicit retry configuration.
    """
    text: str = Field(..., min_length=1, description="Text to synthesize")
    voice_id: str = Field(..., min_length=1, description="Provider-specific voice ID")
    provider: Optional[str] = Field(default=None, description="Provider name (default if omitted)")
    audio: AudioSettings = Field(default_factory=AudioSettings)
    provider_options: Dict[str, Any] = Field(default_factory=dict)
    retry: Union[bool, RetrySettings] = True

    def to_synthesize_request(self, default_format: str = "mp3") -> SynthesizeRequest:
        if isinstance(self.retry, RetrySettings):
            retry: Union[bool, RetryConfig] = RetryConfig(**self.retry.model_dump())
        else:
            retry = self.retry
        return SynthesizeRequest(
            text=self.text,
            voice_id=self.voice_id,
            provider=self.provider,
            audio=AudioOptions(
                format=self.audio.format or default_format,
                speed=self.audio.speed,
                pitch=self.audio.pitch,
                volume_gain_db=self.audio.volume_gain_db,
                sample_rate=self.audio.sample_rate,
            ),
            provider_options=dict(self.provider_options),
            retry=retry,
        )


class ProvidersResponse(BaseModel):
    default_provider: str
    available: List[str]
    implemented: List[str]


class DurationResponse(BaseModel):
    """Estimated playback length; null when the body is not a usable MP3."""
    duration_ms: Optional[int] = None
    bytes: int
