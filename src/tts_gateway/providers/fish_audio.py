"""
Fish Audio Provider.

    POST https://api.fish.audio/v1/tts
    Authorization: Bearer <FISH_AUDIO_API_KEY>
    model: s1

The response body is the raw audio. The voice ID is a Fish Audio
reference (voice model) ID; "default" means no reference voice.

Provider Options:
    reference_id        overrides the voice ID
    model               TTS model header (default "s1")
    temperature, top_p, repetition_penalty
    latency             "normal" or "balanced"
    chunk_length, normalize
    mp3_bitrate, opus_bitrate
"""
from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from tts_gateway.core.config import Defaults, Settings
from tts_gateway.core.logging import info
from tts_gateway.providers.base import (
    BaseTTSProvider,
    ProviderResult,
    SynthesizeRequest,
)

DEFAULT_API_URL = "https://api.fish.audio/v1/tts"

# provider_options keys copied into the body unchanged when set
_PASSTHROUGH = (
    "temperature",
    "top_p",
    "repetition_penalty",
    "chunk_length",
    "normalize",
    "opus_bitrate",
)


class FishAudioProvider(BaseTTSProvider):
    name = "fish_audio"
    default_sample_rate = 44100

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.Client] = None):
        super().__init__(settings, client)
        self.api_key = self._require_api_key("FISH_AUDIO_API_KEY")
        self.api_url = str(self.options.get("api_url") or DEFAULT_API_URL)
        info(self._log, "fish_audio_initialized", api_url=self.api_url)

    def model_for(self, request: SynthesizeRequest) -> str:
        return str(
            request.provider_options.get("model")
            or self.options.get("model")
            or Defaults.FISH_AUDIO_MODEL
        )

    def build_payload(self, request: SynthesizeRequest) -> Dict[str, Any]:
        opts = request.provider_options
        body: Dict[str, Any] = {"text": request.text, "format": request.audio.format}

        reference_id = opts.get("reference_id") or (
            request.voice_id if request.voice_id != "default" else None
        )
        if reference_id:
            body["reference_id"] = reference_id

        for key in _PASSTHROUGH:
            if opts.get(key) is not None:
                body[key] = opts[key]
        if opts.get("latency"):
            body["latency"] = opts["latency"]
        if opts.get("mp3_bitrate"):
            body["mp3_bitrate"] = opts["mp3_bitrate"]
        if request.audio.sample_rate:
            body["sample_rate"] = request.audio.sample_rate

        prosody: Dict[str, Any] = {}
        if request.audio.speed:
            prosody["speed"] = request.audio.speed
        if request.audio.volume_gain_db:
            prosody["volume"] = request.audio.volume_gain_db
        if prosody:
            body["prosody"] = prosody
        return body

    def _synthesize(self, request: SynthesizeRequest) -> ProviderResult:
        response = self._post(
            self.api_url,
            json=self.build_payload(request),
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "model": self.model_for(request),
            },
        )
        return ProviderResult(audio=response.content, sample_rate=self.sample_rate_for(request))
