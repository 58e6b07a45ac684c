"""
Prometheus Metrics for tts-gateway.

Metrics Exposed:
    tts_gateway_requests_total            - Requests by provider and status
    tts_gateway_request_duration_seconds  - Provider call latency (incl. retries)
    tts_gateway_characters_total          - Billable characters by provider
    tts_gateway_audio_bytes_total         - Audio bytes returned to clients
    tts_gateway_audio_seconds_total       - Estimated audio length (mp3 only)
    tts_gateway_retries_total             - Retry attempts by provider
    tts_gateway_provider_available        - 1 if a provider initialized

Usage:
    from tts_gateway.core.metrics import metrics

    metrics.record_request(
        provider="azure",
        status="success",
        duration=0.42,
        characters=120,
        audio_bytes=20480,
        audio_duration_ms=5300,
    )
    content, content_type = metrics.get_metrics_response()

Each TTSMetrics instance owns its own CollectorRegistry so that tests
can create fresh collectors without clashing with the global one.

See Also:
    - api/routes.py: /metrics endpoint
    - services/tts_service.py: Records every synthesis
"""
from __future__ import annotations

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)


class TTSMetrics:
    """
    Gateway metrics collector.

    All prometheus_client operations are thread-safe, so a single
    instance is shared by every request thread.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self._registry = registry or CollectorRegistry()

        self._requests_total = Counter(
            "tts_gateway_requests_total",
            "Total synthesis requests",
            ["provider", "status"],
            registry=self._registry,
        )
        self._request_duration = Histogram(
            "tts_gateway_request_duration_seconds",
            "Synthesis duration in seconds, including retries",
            ["provider"],
            buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
            registry=self._registry,
        )
        self._characters_total = Counter(
            "tts_gateway_characters_total",
            "Billable characters sent to providers",
            ["provider"],
            registry=self._registry,
        )
        self._audio_bytes_total = Counter(
            "tts_gateway_audio_bytes_total",
            "Audio bytes returned",
            registry=self._registry,
        )
        self._audio_seconds_total = Counter(
            "tts_gateway_audio_seconds_total",
            "Estimated seconds of mp3 audio returned",
            ["provider"],
            registry=self._registry,
        )
        self._retries_total = Counter(
            "tts_gateway_retries_total",
            "Retry attempts",
            ["provider"],
            registry=self._registry,
        )
        self._provider_available = Gauge(
            "tts_gateway_provider_available",
            "Whether a provider is configured (1) or not (0)",
            ["provider"],
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def record_request(
        self,
        provider: str,
        status: str,
        duration: float,
        characters: int = 0,
        audio_bytes: int = 0,
        audio_duration_ms: Optional[int] = None,
    ) -> None:
        """
        Record a finished synthesis request.

        Args:
            provider: Provider name (e.g. "azure").
            status: "success" or an error code such as "QUOTA_EXCEEDED".
            duration: Wall-clock seconds.
            characters: Billable characters (success only).
            audio_bytes: Size of the returned audio.
            audio_duration_ms: Estimated audio length when known.
        """
        self._requests_total.labels(provider=provider, status=status).inc()
        self._request_duration.labels(provider=provider).observe(duration)
        if characters > 0:
            self._characters_total.labels(provider=provider).inc(characters)
        if audio_bytes > 0:
            self._audio_bytes_total.inc(audio_bytes)
        if audio_duration_ms:
            self._audio_seconds_total.labels(provider=provider).inc(audio_duration_ms / 1000.0)

    def record_retry(self, provider: str) -> None:
        self._retries_total.labels(provider=provider).inc()

    def set_provider_available(self, provider: str, available: bool) -> None:
        self._provider_available.labels(provider=provider).set(1 if available else 0)

    def get_metrics_response(self) -> tuple[bytes, str]:
        """Return (body, content type) in Prometheus text format."""
        return generate_latest(self._registry), CONTENT_TYPE_LATEST


# Global collector used by the service and the /metrics endpoint
metrics = TTSMetrics()
