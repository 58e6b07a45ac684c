"""
Inworld AI Provider.

    POST https://api.inworld.ai/tts/v1/voice
    Authorization: Basic <INWORLD_API_KEY>

The key is already the base64 "Basic" credential issued by Inworld.
Audio comes back base64-encoded in `audioContent`; when the response
reports `usage.processedCharactersCount`, that number is billed instead
of the local count.

Provider Options:
    model_id                 default "inworld-tts-1.5-max"
    bit_rate                 encoder bitrate
    temperature              sampling temperature
    timestamp_type           "WORD" or "CHARACTER"
    apply_text_normalization "ON" or "OFF"
"""
from __future__ import annotations

import base64
from typing import Any, Dict, Optional

import httpx

from tts_gateway.core.config import Defaults, Settings
from tts_gateway.core.logging import info
from tts_gateway.providers.base import (
    BaseTTSProvider,
    ProviderResult,
    SynthesisFailedError,
    SynthesizeRequest,
)

DEFAULT_API_URL = "https://api.inworld.ai/tts/v1/voice"

AUDIO_ENCODINGS = {
    "mp3": "MP3",
    "wav": "LINEAR16",
    "opus": "OGG_OPUS",
    "flac": "FLAC",
}


class InworldProvider(BaseTTSProvider):
    name = "inworld"
    default_sample_rate = 48000

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.Client] = None):
        super().__init__(settings, client)
        self.api_key = self._require_api_key("INWORLD_API_KEY")
        self.api_url = str(self.options.get("api_url") or DEFAULT_API_URL)
        info(self._log, "inworld_initialized", api_url=self.api_url)

    def build_payload(self, request: SynthesizeRequest) -> Dict[str, Any]:
        opts = request.provider_options
        body: Dict[str, Any] = {
            "text": request.text,
            "voiceId": request.voice_id,
            "modelId": opts.get("model_id") or self.options.get("model") or Defaults.INWORLD_MODEL,
        }

        audio_config: Dict[str, Any] = {
            "audioEncoding": AUDIO_ENCODINGS.get(request.audio.format, "MP3"),
        }
        if opts.get("bit_rate") is not None:
            audio_config["bitRate"] = opts["bit_rate"]
        if request.audio.sample_rate:
            audio_config["sampleRateHertz"] = request.audio.sample_rate
        if request.audio.speed is not None:
            audio_config["speakingRate"] = request.audio.speed
        body["audioConfig"] = audio_config

        if opts.get("temperature") is not None:
            body["temperature"] = opts["temperature"]
        if opts.get("timestamp_type"):
            body["timestampType"] = opts["timestamp_type"]
        if opts.get("apply_text_normalization"):
            body["applyTextNormalization"] = opts["apply_text_normalization"]
        return body

    def _synthesize(self, request: SynthesizeRequest) -> ProviderResult:
        response = self._post(
            self.api_url,
            json=self.build_payload(request),
            headers={"Authorization": f"Basic {self.api_key}"},
        )
        data = response.json()
        content = data.get("audioContent")
        if not content:
            raise SynthesisFailedError(self.name, "No audio content in Inworld AI response")

        usage = data.get("usage") or {}
        processed = usage.get("processedCharactersCount")
        return ProviderResult(
            audio=base64.b64decode(content),
            sample_rate=self.sample_rate_for(request),
            characters=int(processed) if processed is not None else None,
        )
