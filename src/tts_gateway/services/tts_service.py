"""
TTSService - Provider Routing and Request Lifecycle.

This module provides the central TTSService class. The HTTP API and the
CLI both go through it; neither talks to a provider directly.

Architecture:
    Request -> Resolve provider -> Retry loop -> Provider adapter -> Response
                                      |
                                      +-> metrics, logs, request ID

Provider Registry:
    At startup every enabled provider is constructed. A provider that
    raises TTSError while being constructed (usually a missing API key)
    is skipped with a warning, so a gateway with only Azure credentials
    still starts and serves Azure.

Default Provider:
    TTS_DEFAULT_PROVIDER env -> tts.default_provider -> "azure".
    The default may name a provider that failed to initialize; requests
    that rely on it then fail with ProviderNotAvailableError.

Retry:
    request.retry = True          use the configured RetryConfig
    request.retry = False         single attempt
    request.retry = RetryConfig   per-request override

Example:
    >>> from tts_gateway.services import TTSService
    >>> from tts_gateway.providers.base import SynthesizeRequest
    >>> service = TTSService(load_settings("config/settings.yaml"))
    >>> response = service.synthesize(
    ...     SynthesizeRequest(text="Hallo Welt", voice_id="de-DE-KatjaNeural"),
    ...     request_id="req-123",
    ... )
    >>> response.metadata.audio_duration
    1250
"""
from __future__ import annotations

import threading
import uuid
from typing import Any, Dict, List, Optional

from tts_gateway.core.config import GatewayConfig, RetryConfig, Settings
from tts_gateway.core.logging import (
    debug,
    error,
    fail,
    get_logger,
    info,
    set_request_id,
    success,
    warn,
)
from tts_gateway.core.metrics import TTSMetrics, metrics as default_metrics
from tts_gateway.providers import create_provider
from tts_gateway.providers.base import (
    BaseTTSProvider,
    ErrorCode,
    SynthesizeRequest,
    TTSError,
    TTSResponse,
)
from tts_gateway.utils.retry import execute_with_retry
from tts_gateway.utils.timeit import timeit

_LOG = get_logger("tts-gateway.service")


class ProviderNotAvailableError(TTSError):
    """Requested provider is unknown or was not initialized."""

    def __init__(self, provider: str, available: List[str], message: Optional[str] = None):
        names = ", ".join(available) or "none"
        super().__init__(
            provider,
            ErrorCode.PROVIDER_UNAVAILABLE,
            message or f"Provider '{provider}' is not available. Available providers: {names}",
            details={"available_providers": list(available)},
        )


class TTSService:
    """
    Routes synthesis requests to provider adapters.

    Args:
        settings: Loaded settings.
        providers: Pre-built providers by name. When given, no providers
            are constructed from settings (used by tests).
        metrics: Metrics collector, defaults to the global one.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        providers: Optional[Dict[str, BaseTTSProvider]] = None,
        metrics: Optional[TTSMetrics] = None,
    ):
        self._settings = settings or Settings()
        self._config = GatewayConfig.from_settings(self._settings)
        self._metrics = metrics or default_metrics
        self._retry_config = self._config.retry
        self._text_preview_chars = self._config.logging.text_preview_chars

        if providers is not None:
            self._providers: Dict[str, BaseTTSProvider] = dict(providers)
        else:
            self._providers = self._initialize_providers()

        self._default_provider = self._config.tts.default_provider.lower()

        info(
            _LOG,
            "service_initialized",
            default_provider=self._default_provider,
            available_providers=",".join(self._providers) or "none",
        )
        if self._default_provider not in self._providers:
            warn(_LOG, "default_provider_unavailable", provider=self._default_provider)

    def _initialize_providers(self) -> Dict[str, BaseTTSProvider]:
        providers: Dict[str, BaseTTSProvider] = {}
        for name in self._settings.enabled_providers:
            try:
                providers[name] = create_provider(name, self._settings)
            except TTSError as exc:
                warn(_LOG, "provider_skipped", provider=name, reason=exc.message)
                self._metrics.set_provider_available(name, False)
                continue
            except ValueError as exc:
                warn(_LOG, "provider_unknown", provider=name, reason=str(exc))
                continue
            self._metrics.set_provider_available(name, True)
            debug(_LOG, "provider_initialized", provider=name)
        return providers

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def config(self) -> GatewayConfig:
        return self._config

    @property
    def default_provider(self) -> str:
        return self._default_provider

    # =========================================================================
    # Provider registry
    # =========================================================================

    def available_providers(self) -> List[str]:
        return list(self._providers)

    def is_provider_available(self, name: str) -> bool:
        return name.strip().lower() in self._providers

    def get_provider(self, name: str) -> BaseTTSProvider:
        """
        Look up an initialized provider.

        Raises:
            ProviderNotAvailableError: If the provider is unknown or was
                skipped at startup.
        """
        key = name.strip().lower()
        provider = self._providers.get(key)
        if provider is None:
            raise ProviderNotAvailableError(key, self.available_providers())
        return provider

    def set_default_provider(self, name: str) -> None:
        key = name.strip().lower()
        if key not in self._providers:
            available = self.available_providers()
            raise ProviderNotAvailableError(
                key,
                available,
                f"Cannot set default provider '{key}': provider is not available. "
                f"Available providers: {', '.join(available) or 'none'}",
            )
        self._default_provider = key
        info(_LOG, "default_provider_changed", provider=key)

    def close(self) -> None:
        for provider in self._providers.values():
            provider.close()

    # =========================================================================
    # Synthesis
    # =========================================================================

    def _resolve_retry(self, request: SynthesizeRequest) -> Optional[RetryConfig]:
        if request.retry is False:
            return None
        if isinstance(request.retry, RetryConfig):
            return request.retry
        return self._retry_config

    def _preview(self, text: str) -> str:
        limit = self._text_preview_chars
        if limit <= 0:
            return ""
        return text if len(text) <= limit else text[:limit] + "..."

    def synthesize(self, request: SynthesizeRequest, request_id: Optional[str] = None) -> TTSResponse:
        """
        Synthesize speech with the requested (or default) provider.

        Args:
            request: Provider-agnostic synthesis request.
            request_id: Correlation ID; generated when omitted.

        Returns:
            TTSResponse with audio, metadata and billing.

        Raises:
            TTSError: Provider failure after retries, or an unavailable
                provider.
        """
        rid = request_id or uuid.uuid4().hex[:8]
        set_request_id(rid)

        name = (request.provider or self._default_provider).strip().lower()
        provider = self.get_provider(name)
        retry_config = self._resolve_retry(request)

        info(
            _LOG,
            "synthesis_started",
            provider=name,
            voice=request.voice_id,
            chars=len(request.text),
            format=request.audio.format,
            preview=self._preview(request.text),
        )

        def _on_retry(attempt: int, exc: BaseException, delay_ms: float) -> None:
            self._metrics.record_retry(name)

        with timeit("synthesis", meta={"provider": name}) as t:
            try:
                if retry_config is None:
                    response = provider.synthesize(request)
                else:
                    response = execute_with_retry(
                        lambda: provider.synthesize(request),
                        retry_config,
                        on_retry=_on_retry,
                    )
            except TTSError as exc:
                self._metrics.record_request(name, exc.code, t.elapsed_ms() / 1000.0)
                fail(_LOG, "synthesis_failed", provider=name, code=exc.code, error=exc.message)
                raise
            except Exception as exc:
                # Programming errors inside an adapter; surface as UNKNOWN_ERROR
                self._metrics.record_request(name, ErrorCode.UNKNOWN_ERROR, t.elapsed_ms() / 1000.0)
                error(_LOG, "synthesis_crashed", provider=name, error=repr(exc))
                raise TTSError(name, ErrorCode.UNKNOWN_ERROR, str(exc), cause=exc) from exc

        assert t.timing is not None
        self._metrics.record_request(
            name,
            "success",
            t.timing.seconds,
            characters=response.billing.characters,
            audio_bytes=len(response.audio),
            audio_duration_ms=response.metadata.audio_duration,
        )
        success(
            _LOG,
            "synthesis_done",
            provider=name,
            characters=response.billing.characters,
            bytes=len(response.audio),
            audio_ms=response.metadata.audio_duration,
            seconds=round(t.timing.seconds, 3),
        )
        return response

    def get_health_info(self) -> Dict[str, Any]:
        available = self.available_providers()
        return {
            "ok": bool(available),
            "default_provider": self._default_provider,
            "default_provider_available": self._default_provider in self._providers,
            "available_providers": available,
            "max_text_length": self._config.tts.max_text_length,
            "retry": {
                "max_retries": self._retry_config.max_retries,
                "initial_delay_ms": self._retry_config.initial_delay_ms,
                "max_delay_ms": self._retry_config.max_delay_ms,
            },
        }


# =============================================================================
# Global Service Singleton
# =============================================================================

_service: Optional[TTSService] = None
_service_lock = threading.Lock()


def get_service(settings: Optional[Settings] = None) -> TTSService:
    """Thread-safe lazy singleton used by the API dependencies."""
    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                _service = TTSService(settings)
    return _service


def reset_service() -> None:
    """Drop the global instance (tests)."""
    global _service
    with _service_lock:
        if _service is not None:
            _service.close()
        _service = None
