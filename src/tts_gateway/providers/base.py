"""
Provider Base Class, Request/Response Types and Errors.

Every speech provider adapter subclasses BaseTTSProvider and implements
a single method, `_synthesize(request) -> ProviderResult`. The base class
does everything else in one place so that all providers behave the same:

    synthesize(request)
      -> validate_request()          empty text, missing voice, too long
      -> _synthesize()               provider-specific HTTP call
      -> handle_error()              map failures to TTSError subclasses
      -> build_response()            timing, billing, mp3 duration

Error Model:
    TTSError(provider, code, message, cause)
      |- InvalidConfigError        INVALID_CONFIG        (401/403, bad request)
      |- InvalidVoiceError         INVALID_VOICE
      |- QuotaExceededError        QUOTA_EXCEEDED        (429)   retryable
      |- ProviderUnavailableError  PROVIDER_UNAVAILABLE  (5xx)   retryable
      |- SynthesisFailedError      SYNTHESIS_FAILED
      |- NetworkError              NETWORK_ERROR         (timeouts) retryable

HTTP:
    Providers share one lazily created httpx.Client per adapter. Tests
    inject a client built on httpx.MockTransport instead.

See Also:
    - providers/__init__.py: Provider registry
    - utils/retry.py: Which errors are retried
    - utils/mp3.py: Audio duration for mp3 responses
"""
from __future__ import annotations

import base64
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

import httpx

from tts_gateway.core.config import RetryConfig, Settings
from tts_gateway.core.logging import debug, fail, get_logger, success, verbose
from tts_gateway.utils.mp3 import get_mp3_duration
from tts_gateway.utils.text import count_billable_characters
from tts_gateway.utils.timeit import timeit


class TTSProviderName(str, Enum):
    """Known provider identifiers. Not all of them have an adapter."""
    AZURE = "azure"
    EDENAI = "edenai"
    OPENAI = "openai"
    ELEVENLABS = "elevenlabs"
    GOOGLE = "google"
    DEEPGRAM = "deepgram"
    FISH_AUDIO = "fish_audio"
    INWORLD = "inworld"


AUDIO_FORMATS = ("mp3", "wav", "opus", "aac", "flac")

MEDIA_TYPES = {
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "opus": "audio/ogg",
    "aac": "audio/aac",
    "flac": "audio/flac",
}


class ErrorCode:
    """Error codes shared by the service, the API and the CLI."""
    INVALID_CONFIG = "INVALID_CONFIG"
    INVALID_VOICE = "INVALID_VOICE"
    INVALID_INPUT = "INVALID_INPUT"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"
    SYNTHESIS_FAILED = "SYNTHESIS_FAILED"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


# ─────────────────────────────────────────────────────────────────────────────
# Errors
# ─────────────────────────────────────────────────────────────────────────────

class TTSError(Exception):
    """
    Base error for everything a provider call can fail with.

    Attributes:
        provider: Provider name ("azure", "google", ...).
        code: One of the ErrorCode constants.
        message: Human-readable description.
        cause: Underlying exception, if any.
        details: Extra structured data for API error payloads.
    """

    def __init__(
        self,
        provider: str,
        code: str,
        message: str,
        cause: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.code = code
        self.message = message
        self.cause = cause
        self.details = details or {}

    def __str__(self) -> str:
        text = f"[{self.provider}] {self.code}: {self.message}"
        if self.cause is not None:
            text += f" (caused by: {self.cause})"
        return text

    def to_dict(self) -> Dict[str, Any]:
        """API error payload."""
        payload: Dict[str, Any] = {
            "ok": False,
            "error": self.code,
            "message": self.message,
            "provider": self.provider,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidConfigError(TTSError):
    def __init__(self, provider: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(provider, ErrorCode.INVALID_CONFIG, message, cause)


class InvalidVoiceError(TTSError):
    def __init__(
        self,
        provider: str,
        voice_id: str,
        message: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(
            provider,
            ErrorCode.INVALID_VOICE,
            message or f"Voice not found: {voice_id}",
            cause,
            details={"voice": voice_id},
        )
        self.voice_id = voice_id


class QuotaExceededError(TTSError):
    def __init__(self, provider: str, message: Optional[str] = None, cause: Optional[BaseException] = None):
        super().__init__(
            provider,
            ErrorCode.QUOTA_EXCEEDED,
            message or "Provider quota or rate limit exceeded",
            cause,
        )


class ProviderUnavailableError(TTSError):
    def __init__(self, provider: str, message: Optional[str] = None, cause: Optional[BaseException] = None):
        super().__init__(
            provider,
            ErrorCode.PROVIDER_UNAVAILABLE,
            message or "Provider service is temporarily unavailable",
            cause,
        )


class SynthesisFailedError(TTSError):
    def __init__(self, provider: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(provider, ErrorCode.SYNTHESIS_FAILED, message, cause)


class NetworkError(TTSError):
    def __init__(self, provider: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(provider, ErrorCode.NETWORK_ERROR, message, cause)


# ─────────────────────────────────────────────────────────────────────────────
# Request / response types
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class AudioOptions:
    """
    Output audio options.

    Attributes:
        format: mp3, wav, opus, aac or flac.
        speed: Speaking rate multiplier (0.5-2.0, 1.0 = normal).
        pitch: Pitch shift in semitones (-20..20), where supported.
        volume_gain_db: Volume gain (-96..16 dB), where supported.
        sample_rate: Requested sample rate; provider default if None.
    """
    format: str = "mp3"
    speed: Optional[float] = None
    pitch: Optional[float] = None
    volume_gain_db: Optional[float] = None
    sample_rate: Optional[int] = None


@dataclass
class SynthesizeRequest:
    """
    Provider-agnostic synthesis request.

    `provider_options` carries provider-specific knobs (Azure style,
    EdenAI upstream provider, Fish Audio reference_id, ...) that the
    adapters read by name and otherwise ignore.
    """
    text: str
    voice_id: str
    provider: Optional[str] = None
    audio: AudioOptions = field(default_factory=AudioOptions)
    provider_options: Dict[str, Any] = field(default_factory=dict)
    retry: Union[bool, RetryConfig] = True


@dataclass
class ResponseMetadata:
    """
    Attributes:
        provider: Provider that served the request.
        voice: Voice ID used.
        duration: Wall-clock time of the provider call (ms).
        audio_format: Format of the returned audio.
        sample_rate: Sample rate of the returned audio (Hz).
        audio_duration: Playback length (ms); only set for mp3.
    """
    provider: str
    voice: str
    duration: int
    audio_format: str
    sample_rate: int
    audio_duration: Optional[int] = None


@dataclass
class BillingInfo:
    characters: int
    tokens_used: Optional[int] = None


@dataclass
class TTSResponse:
    audio: bytes
    metadata: ResponseMetadata
    billing: BillingInfo

    def to_dict(self, include_audio: bool = False) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "metadata": asdict(self.metadata),
            "billing": asdict(self.billing),
            "audio_bytes": len(self.audio),
        }
        if include_audio:
            payload["audio_base64"] = base64.b64encode(self.audio).decode("ascii")
        return payload


@dataclass
class ProviderResult:
    """What an adapter hands back to the base class."""
    audio: bytes
    sample_rate: int
    characters: Optional[int] = None
    tokens_used: Optional[int] = None


# ─────────────────────────────────────────────────────────────────────────────
# Base provider
# ─────────────────────────────────────────────────────────────────────────────

class BaseTTSProvider(ABC):
    """
    Abstract base class for provider adapters.

    Subclasses set `name` and `default_sample_rate` and implement
    `_synthesize`. Credentials are checked in `__init__`; a missing key
    raises InvalidConfigError so that the service can skip the provider.

    Args:
        settings: Loaded settings (provider options, limits, timeouts).
        client: Optional httpx.Client, mainly for tests.
    """

    name: str = ""
    default_sample_rate: int = 24000

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.Client] = None):
        self.settings = settings or Settings()
        self.options: Dict[str, Any] = self.settings.provider_options(self.name)
        self._client = client
        self._owns_client = client is None
        self._log = get_logger(f"tts-gateway.provider.{self.name}")

    # ---- HTTP ----

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self.settings.http_timeout_s)
        return self._client

    def close(self) -> None:
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def _post(self, url: str, **kwargs: Any) -> httpx.Response:
        """POST and raise httpx.HTTPStatusError on 4xx/5xx."""
        response = self.client.post(url, **kwargs)
        response.raise_for_status()
        verbose(
            self._log,
            "provider_response",
            provider=self.name,
            status=response.status_code,
            bytes=len(response.content),
        )
        return response

    def _get(self, url: str, **kwargs: Any) -> httpx.Response:
        response = self.client.get(url, **kwargs)
        response.raise_for_status()
        return response

    def _require_api_key(self, env_name: str) -> str:
        key = self.settings.api_key(self.name)
        if not key:
            raise InvalidConfigError(self.name, f"API key is required ({env_name})")
        return key

    # ---- request handling ----

    def validate_request(self, request: SynthesizeRequest) -> None:
        if not request.text or not request.text.strip():
            raise InvalidConfigError(self.name, "Text cannot be empty")
        if not request.voice_id:
            raise InvalidConfigError(self.name, "Voice ID is required")
        max_len = self.settings.max_text_length
        if len(request.text) > max_len:
            raise InvalidConfigError(
                self.name,
                f"Text too long: {len(request.text)} characters (maximum {max_len})",
            )
        if request.audio.format not in AUDIO_FORMATS:
            raise InvalidConfigError(
                self.name,
                f"Unsupported audio format: {request.audio.format}",
            )

    def count_characters(self, text: str) -> int:
        return count_billable_characters(text)

    def sample_rate_for(self, request: SynthesizeRequest) -> int:
        return request.audio.sample_rate or self.default_sample_rate

    def handle_error(self, exc: BaseException, context: Optional[str] = None) -> TTSError:
        """
        Map any exception to a TTSError.

        HTTP status codes are used when available; otherwise the error
        message is inspected for status codes and network failures.
        """
        if isinstance(exc, TTSError):
            return exc

        suffix = f": {context}" if context else ""

        if isinstance(exc, httpx.HTTPStatusError):
            status = exc.response.status_code
            body = exc.response.text[:500]
            if status in (401, 403):
                return InvalidConfigError(self.name, f"Authentication failed{suffix}", exc)
            if status == 429:
                return QuotaExceededError(self.name, f"Rate limit exceeded{suffix}", exc)
            if status in (502, 503, 504):
                return ProviderUnavailableError(self.name, f"Service temporarily unavailable{suffix}", exc)
            if status in (400, 404) and "voice" in body.lower():
                return InvalidVoiceError(self.name, "unknown", f"Voice not found: {body}", exc)
            return SynthesisFailedError(
                self.name,
                f"Synthesis failed{suffix}: HTTP {status} {body}".rstrip(),
                exc,
            )

        if isinstance(exc, httpx.TransportError):
            # TimeoutException, ConnectError, ReadError, ...
            return NetworkError(self.name, f"Network error{suffix}", exc)

        msg = str(exc).lower()
        if "401" in msg or "403" in msg:
            return InvalidConfigError(self.name, f"Authentication failed{suffix}", exc)
        if "429" in msg:
            return QuotaExceededError(self.name, f"Rate limit exceeded{suffix}", exc)
        if "502" in msg or "503" in msg or "504" in msg:
            return ProviderUnavailableError(self.name, f"Service temporarily unavailable{suffix}", exc)
        if "timeout" in msg or "econnrefused" in msg or "enotfound" in msg:
            return NetworkError(self.name, f"Network error{suffix}", exc)
        return SynthesisFailedError(self.name, f"Synthesis failed{suffix}: {exc}", exc)

    def build_response(
        self,
        request: SynthesizeRequest,
        result: ProviderResult,
        duration_ms: int,
    ) -> TTSResponse:
        audio_format = request.audio.format
        audio_duration = get_mp3_duration(result.audio) if audio_format == "mp3" else None
        characters = result.characters if result.characters is not None else self.count_characters(request.text)
        return TTSResponse(
            audio=result.audio,
            metadata=ResponseMetadata(
                provider=self.name,
                voice=request.voice_id,
                duration=duration_ms,
                audio_format=audio_format,
                sample_rate=result.sample_rate,
                audio_duration=audio_duration,
            ),
            billing=BillingInfo(characters=characters, tokens_used=result.tokens_used),
        )

    def synthesize(self, request: SynthesizeRequest) -> TTSResponse:
        """
        Synthesize speech for `request`.

        Raises:
            TTSError: Any failure, already mapped to a subclass.
        """
        self.validate_request(request)
        debug(
            self._log,
            "provider_request",
            provider=self.name,
            voice=request.voice_id,
            format=request.audio.format,
            chars=len(request.text),
        )

        with timeit(f"{self.name}.synthesize") as t:
            try:
                result = self._synthesize(request)
            except Exception as exc:
                err = self.handle_error(exc, "during synthesis")
                fail(
                    self._log,
                    "provider_failed",
                    provider=self.name,
                    voice=request.voice_id,
                    code=err.code,
                    error=err.message,
                )
                if err is exc:
                    raise
                raise err from exc

        assert t.timing is not None
        response = self.build_response(request, result, t.timing.ms)
        success(
            self._log,
            "provider_done",
            provider=self.name,
            voice=request.voice_id,
            characters=response.billing.characters,
            bytes=len(response.audio),
            seconds=round(t.timing.seconds, 3),
        )
        return response

    @abstractmethod
    def _synthesize(self, request: SynthesizeRequest) -> ProviderResult:
        """Call the provider and return raw audio."""


def language_from_voice(voice_id: str, default: str = "en-US") -> str:
    """
    Derive a BCP-47 language code from a voice name.

    "de-DE-KatjaNeural" -> "de-DE", "en-US-Neural2-A" -> "en-US".
    """
    parts = voice_id.split("-")
    if len(parts) >= 2 and parts[0] and parts[1]:
        return f"{parts[0]}-{parts[1]}"
    return default
