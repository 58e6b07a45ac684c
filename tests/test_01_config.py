"""
Tests for configuration validation and defaults.

Tests cover:
- GatewayConfig.from_settings() - all sections
- Defaults class values
- ConfigValidationError on invalid values
- String log level coercion ("DEBUG" -> 4)
- Settings properties and environment overrides
- AzureConfig validation and EU region check
- load_settings() from YAML
"""

import pytest

from tts_gateway.core.config import (
    AzureConfig,
    ConfigValidationError,
    Defaults,
    GatewayConfig,
    PROVIDER_ENV_KEYS,
    RetryConfig,
    Settings,
    load_settings,
)


class TestDefaults:
    """Tests for Defaults class values."""

    def test_tts_defaults(self):
        """Defaults should have correct TTS values."""
        assert Defaults.TTS_DEFAULT_PROVIDER == "azure"
        assert Defaults.TTS_DEFAULT_FORMAT == "mp3"
        assert Defaults.TTS_DEFAULT_SAMPLE_RATE == 24000
        assert Defaults.TTS_MAX_TEXT_LENGTH == 3000

    def test_retry_defaults(self):
        """Defaults should match RetryConfig defaults."""
        retry = RetryConfig()
        assert retry.max_retries == Defaults.RETRY_MAX_RETRIES == 3
        assert retry.initial_delay_ms == Defaults.RETRY_INITIAL_DELAY_MS == 1000
        assert retry.multiplier == Defaults.RETRY_MULTIPLIER == 2.0
        assert retry.max_delay_ms == Defaults.RETRY_MAX_DELAY_MS == 30000

    def test_provider_defaults(self):
        """Provider defaults keep data in the EU."""
        assert Defaults.AZURE_REGION == "germanywestcentral"
        assert Defaults.GOOGLE_REGION == "eu"

    def test_logging_defaults(self):
        assert Defaults.LOGGING_TEXT_PREVIEW_CHARS == 80
        assert Defaults.LOGGING_LEVEL == 2


class TestGatewayConfigFromSettings:
    """Tests for GatewayConfig.from_settings()."""

    def test_from_settings_with_empty_raw(self):
        """from_settings should use defaults for empty raw dict."""
        config = GatewayConfig.from_settings(Settings(raw={}))

        assert config.tts.default_provider == "azure"
        assert config.tts.max_text_length == Defaults.TTS_MAX_TEXT_LENGTH
        assert config.tts.max_audio_bytes == Defaults.TTS_MAX_AUDIO_BYTES
        assert config.http.timeout_s == Defaults.HTTP_TIMEOUT_S
        assert config.retry == RetryConfig()
        assert config.logging.level == Defaults.LOGGING_LEVEL

    def test_from_settings_with_tts_section(self):
        settings = Settings(raw={
            "tts": {
                "default_provider": "google",
                "default_format": "wav",
                "default_sample_rate": 16000,
                "max_text_length": 5000,
                "max_audio_bytes": 1024,
            }
        })
        config = GatewayConfig.from_settings(settings)

        assert config.tts.default_provider == "google"
        assert config.tts.default_format == "wav"
        assert config.tts.default_sample_rate == 16000
        assert config.tts.max_text_length == 5000
        assert config.tts.max_audio_bytes == 1024

    def test_from_settings_with_retry_section(self):
        settings = Settings(raw={
            "retry": {
                "max_retries": 5,
                "initial_delay_ms": 200,
                "multiplier": 1.5,
                "max_delay_ms": 4000,
            }
        })
        config = GatewayConfig.from_settings(settings)

        assert config.retry == RetryConfig(5, 200, 1.5, 4000)

    def test_from_settings_with_logging_section(self):
        settings = Settings(raw={"logging": {"level": 3, "text_preview_chars": 50}})
        config = GatewayConfig.from_settings(settings)

        assert config.logging.level == 3
        assert config.logging.text_preview_chars == 50

    def test_get_gateway_config_shortcut(self):
        settings = Settings(raw={"http": {"timeout_s": 5}})
        assert settings.get_gateway_config().http.timeout_s == 5.0


class TestLogLevelCoercion:
    """Tests for string log level coercion."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("MINIMAL", 1),
            ("NORMAL", 2),
            ("INFO", 2),
            ("VERBOSE", 3),
            ("DEBUG", 4),
            ("TRACE", 4),
            ("debug", 4),
            ("3", 3),
        ],
    )
    def test_string_levels(self, raw, expected):
        config = GatewayConfig.from_settings(Settings(raw={"logging": {"level": raw}}))
        assert config.logging.level == expected

    def test_string_level_unknown_uses_default(self):
        """Unknown level names should use default."""
        config = GatewayConfig.from_settings(Settings(raw={"logging": {"level": "UNKNOWN"}}))
        assert config.logging.level == Defaults.LOGGING_LEVEL


class TestConfigValidation:
    """Tests for configuration validation."""

    def test_zero_max_text_length_raises(self):
        settings = Settings(raw={"tts": {"max_text_length": 0}})
        with pytest.raises(ConfigValidationError) as exc_info:
            GatewayConfig.from_settings(settings)
        assert "tts.max_text_length" in str(exc_info.value)
        assert "positive" in str(exc_info.value).lower()

    def test_zero_max_audio_bytes_raises(self):
        settings = Settings(raw={"tts": {"max_audio_bytes": 0}})
        with pytest.raises(ConfigValidationError) as exc_info:
            GatewayConfig.from_settings(settings)
        assert "tts.max_audio_bytes" in str(exc_info.value)

    def test_negative_timeout_raises(self):
        settings = Settings(raw={"http": {"timeout_s": -1}})
        with pytest.raises(ConfigValidationError) as exc_info:
            GatewayConfig.from_settings(settings)
        assert "http.timeout_s" in str(exc_info.value)

    def test_negative_max_retries_raises(self):
        settings = Settings(raw={"retry": {"max_retries": -1}})
        with pytest.raises(ConfigValidationError) as exc_info:
            GatewayConfig.from_settings(settings)
        assert "retry.max_retries" in str(exc_info.value)

    def test_zero_max_retries_allowed(self):
        """Zero retries disables retrying, which is valid."""
        config = GatewayConfig.from_settings(Settings(raw={"retry": {"max_retries": 0}}))
        assert config.retry.max_retries == 0

    def test_zero_initial_delay_raises(self):
        settings = Settings(raw={"retry": {"initial_delay_ms": 0}})
        with pytest.raises(ConfigValidationError):
            GatewayConfig.from_settings(settings)

    def test_logging_level_above_range_raises(self):
        settings = Settings(raw={"logging": {"level": 5}})
        with pytest.raises(ConfigValidationError) as exc_info:
            GatewayConfig.from_settings(settings)
        assert "logging.level" in str(exc_info.value)
        assert "between" in str(exc_info.value).lower()

    def test_negative_text_preview_chars_raises(self):
        settings = Settings(raw={"logging": {"text_preview_chars": -1}})
        with pytest.raises(ConfigValidationError):
            GatewayConfig.from_settings(settings)


class TestSettingsProperties:
    """Tests for Settings class properties."""

    def test_default_provider_from_file(self):
        settings = Settings(raw={"tts": {"default_provider": "google"}})
        assert settings.default_provider == "google"

    def test_default_provider_env_override(self, monkeypatch):
        monkeypatch.setenv("TTS_DEFAULT_PROVIDER", "EdenAI")
        settings = Settings(raw={"tts": {"default_provider": "google"}})
        assert settings.default_provider == "edenai"

    def test_enabled_providers_default_to_all(self):
        assert Settings(raw={}).enabled_providers == list(PROVIDER_ENV_KEYS)

    def test_enabled_providers_from_file(self):
        settings = Settings(raw={"tts": {"providers": ["Azure", "google"]}})
        assert settings.enabled_providers == ["azure", "google"]

    def test_provider_options(self):
        settings = Settings(raw={"providers": {"google": {"region": "europe-west3"}}})
        assert settings.provider_options("google") == {"region": "europe-west3"}
        assert settings.provider_options("azure") == {}

    def test_api_key_from_env_only(self, monkeypatch):
        settings = Settings(raw={"providers": {"edenai": {"api_key": "from-file"}}})
        assert settings.api_key("edenai") == ""
        monkeypatch.setenv("EDENAI_API_KEY", "from-env")
        assert settings.api_key("edenai") == "from-env"

    def test_api_key_unknown_provider(self):
        assert Settings(raw={}).api_key("openai") == ""

    def test_azure_settings(self, monkeypatch):
        monkeypatch.setenv("AZURE_SPEECH_KEY", "abc123")
        settings = Settings(raw={"providers": {"azure": {"region": "westeurope"}}})
        azure = settings.azure
        assert azure.key == "abc123"
        assert azure.region == "westeurope"
        assert azure.endpoint is None

    def test_azure_region_env_wins(self, monkeypatch):
        monkeypatch.setenv("AZURE_SPEECH_REGION", "northeurope")
        settings = Settings(raw={"providers": {"azure": {"region": "westeurope"}}})
        assert settings.azure.region == "northeurope"


class TestAzureConfig:
    """Tests for AzureConfig.validate() and dsgvo_compliant."""

    def test_valid_config(self):
        assert AzureConfig(key="abc123", region="germanywestcentral").validate() == []

    def test_missing_key(self):
        errors = AzureConfig(key="", region="westeurope").validate()
        assert any("AZURE_SPEECH_KEY is required" in e for e in errors)

    def test_non_alphanumeric_key(self):
        errors = AzureConfig(key="abc-123", region="westeurope").validate()
        assert any("alphanumeric" in e for e in errors)

    def test_region_with_spaces(self):
        errors = AzureConfig(key="abc", region="west europe").validate()
        assert any("cannot contain spaces" in e for e in errors)

    def test_endpoint_must_be_https(self):
        errors = AzureConfig(key="abc", region="westeurope", endpoint="http://x").validate()
        assert any("https://" in e for e in errors)

    @pytest.mark.parametrize("region", ["germanywestcentral", "WestEurope", "northeurope"])
    def test_eu_regions_compliant(self, region):
        assert AzureConfig(key="k", region=region).dsgvo_compliant is True

    @pytest.mark.parametrize("region", ["eastus", "westus2", "southeastasia"])
    def test_non_eu_regions_not_compliant(self, region):
        assert AzureConfig(key="k", region=region).dsgvo_compliant is False


class TestLoadSettings:
    """Tests for load_settings()."""

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("tts:\n  default_provider: google\nretry:\n  max_retries: 1\n", encoding="utf-8")
        settings = load_settings(str(path))
        assert settings.default_provider == "google"
        assert settings.retry_config.max_retries == 1

    def test_empty_yaml_gives_defaults(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("", encoding="utf-8")
        assert load_settings(str(path)).raw == {}

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(str(tmp_path / "missing.yaml"))

    def test_missing_file_ok(self, tmp_path):
        settings = load_settings(str(tmp_path / "missing.yaml"), missing_ok=True)
        assert settings.raw == {}

    def test_repo_settings_file_is_valid(self):
        from pathlib import Path

        path = Path(__file__).parent.parent / "config" / "settings.yaml"
        config = GatewayConfig.from_settings(load_settings(str(path)))
        assert config.tts.default_provider == "azure"
