"""
Google Cloud Text-to-Speech Provider.

Uses the REST endpoint `POST https://{endpoint}/v1/text:synthesize`.
The endpoint follows the configured region so that requests can stay
inside the EU:

    eu            -> eu-texttospeech.googleapis.com   (default)
    europe-west3  -> europe-west3-texttospeech.googleapis.com
    global        -> texttospeech.googleapis.com      (no data residency)
    us-central1   -> texttospeech.googleapis.com

Region resolution (first match wins):
    provider_options["region"] -> GOOGLE_TTS_REGION -> providers.google.region -> "eu"

Authentication:
    GOOGLE_TTS_API_KEY       sent as ?key=...
    GOOGLE_TTS_ACCESS_TOKEN  OAuth bearer token (e.g. from gcloud)

Voice IDs are full Google voice names ("de-DE-Neural2-B"); the language
code is the first two dash-separated parts.
"""
from __future__ import annotations

import base64
import os
from typing import Any, Dict, Optional

import httpx

from tts_gateway.core.config import Defaults, Settings
from tts_gateway.core.logging import info, verbose, warn
from tts_gateway.providers.base import (
    BaseTTSProvider,
    InvalidConfigError,
    ProviderResult,
    SynthesisFailedError,
    SynthesizeRequest,
)

AUDIO_ENCODINGS = {
    "mp3": "MP3",
    "wav": "LINEAR16",
    "opus": "OGG_OPUS",
    "aac": "MP3",
    "flac": "LINEAR16",
}

NON_EU_REGIONS = ("global", "us-central1")


def get_api_endpoint(region: str) -> str:
    if region == "eu":
        return "eu-texttospeech.googleapis.com"
    if region in NON_EU_REGIONS:
        return "texttospeech.googleapis.com"
    return f"{region}-texttospeech.googleapis.com"


def parse_voice_id(voice_id: str) -> Dict[str, str]:
    parts = voice_id.split("-")
    language = f"{parts[0]}-{parts[1]}" if len(parts) >= 2 else voice_id
    return {"languageCode": language, "name": voice_id}


class GoogleCloudTTSProvider(BaseTTSProvider):
    name = "google"
    default_sample_rate = 24000

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.Client] = None):
        super().__init__(settings, client)
        self.api_key = self.settings.api_key(self.name)
        self.access_token = os.getenv("GOOGLE_TTS_ACCESS_TOKEN", "")
        if not self.api_key and not self.access_token:
            raise InvalidConfigError(
                self.name,
                "Google Cloud credentials are required (GOOGLE_TTS_API_KEY or GOOGLE_TTS_ACCESS_TOKEN)",
            )
        self.region = (
            os.getenv("GOOGLE_TTS_REGION")
            or str(self.options.get("region") or "")
            or Defaults.GOOGLE_REGION
        )
        if self.region in NON_EU_REGIONS:
            warn(self._log, "google_region_outside_eu", region=self.region)
        info(self._log, "google_initialized", region=self.region, auth="api_key" if self.api_key else "token")

    def build_payload(self, request: SynthesizeRequest) -> Dict[str, Any]:
        audio = request.audio
        audio_config: Dict[str, Any] = {"audioEncoding": AUDIO_ENCODINGS.get(audio.format, "MP3")}
        if audio.speed is not None:
            audio_config["speakingRate"] = audio.speed
        if audio.pitch is not None:
            audio_config["pitch"] = audio.pitch
        if audio.volume_gain_db is not None:
            audio_config["volumeGainDb"] = audio.volume_gain_db
        if audio.sample_rate is not None:
            audio_config["sampleRateHertz"] = audio.sample_rate
        effects = request.provider_options.get("effects_profile_id")
        if effects:
            audio_config["effectsProfileId"] = list(effects)

        return {
            "input": {"text": request.text},
            "voice": parse_voice_id(request.voice_id),
            "audioConfig": audio_config,
        }

    def _synthesize(self, request: SynthesizeRequest) -> ProviderResult:
        region = str(request.provider_options.get("region") or self.region)
        url = f"https://{get_api_endpoint(region)}/v1/text:synthesize"
        verbose(self._log, "google_endpoint", region=region, url=url)

        headers: Dict[str, str] = {}
        params: Dict[str, str] = {}
        if self.api_key:
            params["key"] = self.api_key
        else:
            headers["Authorization"] = f"Bearer {self.access_token}"

        response = self._post(url, json=self.build_payload(request), params=params, headers=headers)
        content = response.json().get("audioContent")
        if not content:
            raise SynthesisFailedError(self.name, "No audio content in Google Cloud TTS response")
        return ProviderResult(audio=base64.b64decode(content), sample_rate=self.sample_rate_for(request))
