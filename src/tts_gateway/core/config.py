"""
Configuration Management for tts-gateway.

This module provides centralized configuration handling with:
    - Default values (Defaults class)
    - Dataclass-based configuration objects
    - YAML file loading with environment variable overrides
    - Validation with meaningful error messages

Configuration Hierarchy (highest priority first):
    1. Environment variables (TTS_DEFAULT_PROVIDER, AZURE_SPEECH_REGION, ...)
    2. YAML config file (config/settings.yaml)
    3. Defaults class values

Secrets (API keys, access tokens) are read from the environment only
and are never taken from the YAML file.

Example settings.yaml:
    tts:
      default_provider: azure
      default_format: mp3
      max_text_length: 3000

    providers:
      azure:
        region: germanywestcentral
      google:
        region: eu

    retry:
      max_retries: 3

    logging:
      level: 2  # NORMAL
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
import os
import re
import yaml


class ConfigValidationError(Exception):
    """
    Raised when configuration validation fails.

    This exception is thrown when a configuration value is outside
    acceptable bounds or of the wrong type.
    """
    pass


class Defaults:
    """
    Centralized default configuration values.

    Sections:
        - TTS: Request defaults shared by all providers
        - Providers: Per-provider defaults
        - Retry: Backoff parameters
        - HTTP: Outbound client settings
        - Logging: Log level and formatting
    """

    # ─────────────────────────────────────────────────────────────────────────
    # TTS Defaults
    # ─────────────────────────────────────────────────────────────────────────
    TTS_DEFAULT_PROVIDER = "azure"      # Provider used when a request names none
    TTS_DEFAULT_FORMAT = "mp3"          # Output audio format
    TTS_DEFAULT_SAMPLE_RATE = 24000     # Output sample rate (Hz)
    TTS_MAX_TEXT_LENGTH = 3000          # Max characters per request
    TTS_MAX_AUDIO_BYTES = 10_000_000    # Max body size for /v1/audio/duration

    # ─────────────────────────────────────────────────────────────────────────
    # Provider Defaults
    # ─────────────────────────────────────────────────────────────────────────
    AZURE_REGION = "germanywestcentral"     # EU data residency by default
    AZURE_FREE_TIER_CHARS = 500_000         # Free characters per month
    GOOGLE_REGION = "eu"                    # EU multi-region endpoint
    EDENAI_PROVIDER = "google"              # Upstream engine behind EdenAI
    FISH_AUDIO_MODEL = "s1"
    INWORLD_MODEL = "inworld-tts-1.5-max"

    # ─────────────────────────────────────────────────────────────────────────
    # Retry
    # ─────────────────────────────────────────────────────────────────────────
    RETRY_MAX_RETRIES = 3
    RETRY_INITIAL_DELAY_MS = 1000
    RETRY_MULTIPLIER = 2.0
    RETRY_MAX_DELAY_MS = 30000

    # ─────────────────────────────────────────────────────────────────────────
    # HTTP
    # ─────────────────────────────────────────────────────────────────────────
    HTTP_TIMEOUT_S = 30.0               # Per-request timeout for provider calls

    # ─────────────────────────────────────────────────────────────────────────
    # Logging
    # ─────────────────────────────────────────────────────────────────────────
    LOGGING_TEXT_PREVIEW_CHARS = 80     # Characters to show in text preview
    LOGGING_LEVEL = 2                   # 1=MINIMAL, 2=NORMAL, 3=VERBOSE, 4=DEBUG


# Azure regions that keep data inside the EU/EEA (or adequacy countries)
EU_REGIONS = (
    "germanywestcentral",
    "northeurope",
    "westeurope",
    "francecentral",
    "switzerlandnorth",
    "uksouth",
)

# Environment variables holding provider secrets
PROVIDER_ENV_KEYS: Dict[str, str] = {
    "azure": "AZURE_SPEECH_KEY",
    "edenai": "EDENAI_API_KEY",
    "google": "GOOGLE_TTS_API_KEY",
    "fish_audio": "FISH_AUDIO_API_KEY",
    "inworld": "INWORLD_API_KEY",
}

_ALNUM_RE = re.compile(r"^[a-zA-Z0-9]+$")


@dataclass(frozen=True)
class RetryConfig:
    """
    Exponential backoff parameters.

    Attributes:
        max_retries: Retries after the first attempt (0 disables retry).
        initial_delay_ms: Cap of the first retry delay.
        multiplier: Growth factor per attempt.
        max_delay_ms: Upper bound for any single delay.
    """
    max_retries: int = Defaults.RETRY_MAX_RETRIES
    initial_delay_ms: int = Defaults.RETRY_INITIAL_DELAY_MS
    multiplier: float = Defaults.RETRY_MULTIPLIER
    max_delay_ms: int = Defaults.RETRY_MAX_DELAY_MS


@dataclass
class TTSConfig:
    """Request defaults applied when a request leaves a field unset."""
    default_provider: str = Defaults.TTS_DEFAULT_PROVIDER
    default_format: str = Defaults.TTS_DEFAULT_FORMAT
    default_sample_rate: int = Defaults.TTS_DEFAULT_SAMPLE_RATE
    max_text_length: int = Defaults.TTS_MAX_TEXT_LENGTH
    max_audio_bytes: int = Defaults.TTS_MAX_AUDIO_BYTES


@dataclass
class HttpConfig:
    timeout_s: float = Defaults.HTTP_TIMEOUT_S


@dataclass
class LoggingConfig:
    """
    Logging configuration.

    Log levels:
        1 = MINIMAL: Startup, shutdown, errors only
        2 = NORMAL: Request lifecycle (default)
        3 = VERBOSE: Provider payload sizes, retry details
        4 = DEBUG: Internal state, full tracing
    """
    text_preview_chars: int = Defaults.LOGGING_TEXT_PREVIEW_CHARS
    level: int = Defaults.LOGGING_LEVEL


@dataclass
class AzureConfig:
    """
    Azure Speech credentials and region.

    Attributes:
        key: Subscription key (AZURE_SPEECH_KEY).
        region: Azure region (AZURE_SPEECH_REGION).
        endpoint: Optional custom endpoint (AZURE_SPEECH_ENDPOINT).
        free_tier_chars_per_month: Monthly free character quota.
    """
    key: str = ""
    region: str = Defaults.AZURE_REGION
    endpoint: Optional[str] = None
    free_tier_chars_per_month: int = Defaults.AZURE_FREE_TIER_CHARS

    @property
    def dsgvo_compliant(self) -> bool:
        """True when the region keeps data inside the EU (DSGVO/GDPR)."""
        return self.region.lower() in EU_REGIONS

    def validate(self) -> List[str]:
        """
        Check the credentials for obvious mistakes.

        Returns:
            List of problems, empty when the configuration looks usable.
        """
        errors: List[str] = []
        if not self.key:
            errors.append("AZURE_SPEECH_KEY is required when using Azure provider")
        elif not _ALNUM_RE.match(self.key):
            errors.append("AZURE_SPEECH_KEY should be alphanumeric")
        if not self.region:
            errors.append("AZURE_SPEECH_REGION is required when using Azure provider")
        elif re.search(r"\s", self.region):
            errors.append("AZURE_SPEECH_REGION cannot contain spaces")
        if self.endpoint and not self.endpoint.startswith("https://"):
            errors.append("AZURE_SPEECH_ENDPOINT must start with https://")
        return errors


@dataclass
class GatewayConfig:
    """
    Validated configuration for the gateway.

    Usage:
        settings = load_settings("config/settings.yaml")
        config = GatewayConfig.from_settings(settings)
        print(config.retry.max_retries)
    """
    tts: TTSConfig = field(default_factory=TTSConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "GatewayConfig":
        """
        Create GatewayConfig from Settings with validation.

        Raises:
            ConfigValidationError: If any value fails validation.
        """
        raw = settings.raw

        # ─────────────────────────────────────────────────────────────────────
        # TTS defaults
        # ─────────────────────────────────────────────────────────────────────
        tts = TTSConfig(
            default_provider=settings.default_provider,
            default_format=settings.default_format,
            default_sample_rate=settings.default_sample_rate,
            max_text_length=settings.max_text_length,
            max_audio_bytes=settings.max_audio_bytes,
        )
        cls._validate_positive("tts.default_sample_rate", tts.default_sample_rate)
        cls._validate_positive("tts.max_text_length", tts.max_text_length)
        cls._validate_positive("tts.max_audio_bytes", tts.max_audio_bytes)

        # ─────────────────────────────────────────────────────────────────────
        # HTTP
        # ─────────────────────────────────────────────────────────────────────
        http = HttpConfig(timeout_s=settings.http_timeout_s)
        cls._validate_positive("http.timeout_s", http.timeout_s)

        # ─────────────────────────────────────────────────────────────────────
        # Retry
        # ─────────────────────────────────────────────────────────────────────
        retry = settings.retry_config
        cls._validate_non_negative("retry.max_retries", retry.max_retries)
        cls._validate_positive("retry.initial_delay_ms", retry.initial_delay_ms)
        cls._validate_positive("retry.multiplier", retry.multiplier)
        cls._validate_positive("retry.max_delay_ms", retry.max_delay_ms)

        # ─────────────────────────────────────────────────────────────────────
        # Logging
        # ─────────────────────────────────────────────────────────────────────
        logging_raw = raw.get("logging", {}) or {}
        log_level_raw = logging_raw.get("level", Defaults.LOGGING_LEVEL)
        if isinstance(log_level_raw, str):
            level_map = {
                "MINIMAL": 1, "1": 1,
                "NORMAL": 2, "INFO": 2, "2": 2,
                "VERBOSE": 3, "3": 3,
                "DEBUG": 4, "TRACE": 4, "4": 4,
            }
            log_level = level_map.get(log_level_raw.upper(), Defaults.LOGGING_LEVEL)
        else:
            log_level = int(log_level_raw)

        logging_cfg = LoggingConfig(
            text_preview_chars=int(logging_raw.get("text_preview_chars", Defaults.LOGGING_TEXT_PREVIEW_CHARS)),
            level=log_level,
        )
        cls._validate_non_negative("logging.text_preview_chars", logging_cfg.text_preview_chars)
        cls._validate_range("logging.level", logging_cfg.level, 1, 4)

        return cls(tts=tts, http=http, retry=retry, logging=logging_cfg)

    @staticmethod
    def _validate_positive(name: str, value: int | float) -> None:
        """Validate that a value is positive (> 0)."""
        if value <= 0:
            raise ConfigValidationError(f"{name} must be positive, got {value}")

    @staticmethod
    def _validate_non_negative(name: str, value: int | float) -> None:
        """Validate that a value is non-negative (>= 0)."""
        if value < 0:
            raise ConfigValidationError(f"{name} must be non-negative, got {value}")

    @staticmethod
    def _validate_range(name: str, value: int | float, min_val: int | float, max_val: int | float) -> None:
        """Validate that a value is within a range [min_val, max_val]."""
        if not (min_val <= value <= max_val):
            raise ConfigValidationError(f"{name} must be between {min_val} and {max_val}, got {value}")


@dataclass(frozen=True)
class Settings:
    """
    Immutable settings container loaded from YAML.

    This is the raw settings object before validation. Use
    get_gateway_config() to get a validated GatewayConfig.

    Attributes:
        raw: Dictionary of raw configuration values.
    """
    raw: Dict[str, Any] = field(default_factory=dict)

    def _tts(self) -> Dict[str, Any]:
        return self.raw.get("tts", {}) or {}

    @property
    def default_provider(self) -> str:
        """Default provider (TTS_DEFAULT_PROVIDER overrides the file)."""
        env = os.getenv("TTS_DEFAULT_PROVIDER")
        if env:
            return env.strip().lower()
        return str(self._tts().get("default_provider", Defaults.TTS_DEFAULT_PROVIDER))

    @property
    def default_format(self) -> str:
        return str(self._tts().get("default_format", Defaults.TTS_DEFAULT_FORMAT))

    @property
    def default_sample_rate(self) -> int:
        return int(self._tts().get("default_sample_rate", Defaults.TTS_DEFAULT_SAMPLE_RATE))

    @property
    def max_text_length(self) -> int:
        return int(self._tts().get("max_text_length", Defaults.TTS_MAX_TEXT_LENGTH))

    @property
    def max_audio_bytes(self) -> int:
        return int(self._tts().get("max_audio_bytes", Defaults.TTS_MAX_AUDIO_BYTES))

    @property
    def enabled_providers(self) -> List[str]:
        """
        Providers the service should try to initialize.

        Defaults to every implemented provider; providers without
        credentials are skipped at startup.
        """
        configured = self._tts().get("providers")
        if configured:
            return [str(p).lower() for p in configured]
        return list(PROVIDER_ENV_KEYS)

    @property
    def http_timeout_s(self) -> float:
        return float((self.raw.get("http", {}) or {}).get("timeout_s", Defaults.HTTP_TIMEOUT_S))

    @property
    def retry_config(self) -> RetryConfig:
        raw = self.raw.get("retry", {}) or {}
        return RetryConfig(
            max_retries=int(raw.get("max_retries", Defaults.RETRY_MAX_RETRIES)),
            initial_delay_ms=int(raw.get("initial_delay_ms", Defaults.RETRY_INITIAL_DELAY_MS)),
            multiplier=float(raw.get("multiplier", Defaults.RETRY_MULTIPLIER)),
            max_delay_ms=int(raw.get("max_delay_ms", Defaults.RETRY_MAX_DELAY_MS)),
        )

    @property
    def text_preview_chars(self) -> int:
        logging_raw = self.raw.get("logging", {}) or {}
        return int(logging_raw.get("text_preview_chars", Defaults.LOGGING_TEXT_PREVIEW_CHARS))

    @property
    def azure(self) -> AzureConfig:
        """Azure credentials from the environment, region/endpoint falling back to the file."""
        opts = self.provider_options("azure")
        region = (os.getenv("AZURE_SPEECH_REGION") or "").strip()
        return AzureConfig(
            key=os.getenv("AZURE_SPEECH_KEY", ""),
            region=region or str(opts.get("region", Defaults.AZURE_REGION)),
            endpoint=os.getenv("AZURE_SPEECH_ENDPOINT") or opts.get("endpoint"),
        )

    def provider_options(self, name: str) -> Dict[str, Any]:
        """Non-secret options of one provider (providers.<name> section)."""
        providers = self.raw.get("providers", {}) or {}
        return dict(providers.get(name, {}) or {})

    def api_key(self, name: str) -> str:
        """API key of a provider from its environment variable, or ""."""
        env_name = PROVIDER_ENV_KEYS.get(name)
        return os.getenv(env_name, "") if env_name else ""

    def get_gateway_config(self) -> GatewayConfig:
        """
        Get validated GatewayConfig from these settings.

        Raises:
            ConfigValidationError: If validation fails.
        """
        return GatewayConfig.from_settings(self)


def load_settings(path: str = "config/settings.yaml", missing_ok: bool = False) -> Settings:
    """
    Load settings from a YAML configuration file.

    Args:
        path: Path to the YAML configuration file.
        missing_ok: Return empty settings (defaults + environment)
            instead of raising when the file does not exist.

    Returns:
        Settings object with loaded configuration.

    Raises:
        FileNotFoundError: If the settings file doesn't exist and
            missing_ok is False.
    """
    p = Path(path)
    if not p.exists():
        if missing_ok:
            return Settings(raw={})
        raise FileNotFoundError(f"settings file not found: {p.resolve()}")

    with p.open("r", encoding="utf-8") as f:
        raw: Dict[str, Any] = yaml.safe_load(f) or {}

    return Settings(raw=raw)
