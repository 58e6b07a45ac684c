"""
Speech Provider Adapters.

Available Providers:
    - azure:      Azure Speech (REST + SSML), EU region by default
    - edenai:     EdenAI aggregator (google, amazon, microsoft, ...)
    - google:     Google Cloud Text-to-Speech, EU endpoint by default
    - fish_audio: Fish Audio voice models
    - inworld:    Inworld AI TTS

openai, elevenlabs and deepgram are recognised provider names without
an adapter; asking for them raises ValueError.

Usage:
    from tts_gateway.providers import create_provider

    provider = create_provider("azure", settings)
    response = provider.synthesize(SynthesizeRequest(text="Hallo", voice_id="de-DE-KatjaNeural"))

Adding New Providers:
    1. Create providers/new_provider.py with a BaseTTSProvider subclass
    2. Add it to _REGISTRY below
    3. Add its API key variable to core.config.PROVIDER_ENV_KEYS

See Also:
    - providers/base.py: BaseTTSProvider, request/response types, errors
    - services/tts_service.py: Provider selection and retry
"""
from __future__ import annotations

import importlib
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple, Type

from tts_gateway.providers.base import TTSProviderName

if TYPE_CHECKING:
    import httpx

    from tts_gateway.core.config import Settings
    from tts_gateway.providers.base import BaseTTSProvider

# name -> (module, class)
_REGISTRY: Dict[str, Tuple[str, str]] = {
    "azure": ("tts_gateway.providers.azure", "AzureProvider"),
    "edenai": ("tts_gateway.providers.edenai", "EdenAIProvider"),
    "google": ("tts_gateway.providers.google", "GoogleCloudTTSProvider"),
    "fish_audio": ("tts_gateway.providers.fish_audio", "FishAudioProvider"),
    "inworld": ("tts_gateway.providers.inworld", "InworldProvider"),
}


def implemented_providers() -> List[str]:
    return list(_REGISTRY)


def get_provider_class(name: str) -> Type["BaseTTSProvider"]:
    """
    Resolve a provider class by name, importing its module lazily.

    Raises:
        ValueError: Unknown name, or a known name without an adapter.
    """
    key = name.strip().lower()
    if key not in _REGISTRY:
        known = {p.value for p in TTSProviderName}
        if key in known:
            raise ValueError(f"Provider '{key}' is not implemented yet")
        raise ValueError(f"Unknown provider '{name}'. Available: {', '.join(_REGISTRY)}")
    module_name, class_name = _REGISTRY[key]
    module = importlib.import_module(module_name)
    return getattr(module, class_name)


def create_provider(
    name: str,
    settings: Optional["Settings"] = None,
    client: Optional["httpx.Client"] = None,
) -> "BaseTTSProvider":
    """Instantiate a provider; raises InvalidConfigError without credentials."""
    return get_provider_class(name)(settings, client)


__all__ = [
    "create_provider",
    "get_provider_class",
    "implemented_providers",
]
