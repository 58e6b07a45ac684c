"""
EdenAI Provider.

EdenAI is an aggregator: one request is forwarded to an upstream engine
(google, amazon, microsoft, openai, ...) chosen per request.

    POST https://api.edenai.run/v2/audio/text_to_speech
    Authorization: Bearer <EDENAI_API_KEY>
    {"text": ..., "language": "de-DE", "providers": "google", "option": "FEMALE"}

The response is keyed by upstream provider. The first entry that did
not fail wins; its audio is either inline (base64 `audio`) or must be
downloaded from `audio_resource_url`.

Provider Options:
    provider: upstream engine (default "google")
    option: "FEMALE" or "MALE" (default "FEMALE")
    model: upstream model name, sent as settings.model
    fallback_providers: list of engines EdenAI tries on failure
"""
from __future__ import annotations

import base64
import re
from typing import Any, Dict, Optional

import httpx

from tts_gateway.core.config import Defaults, Settings
from tts_gateway.core.logging import debug, info, warn
from tts_gateway.providers.base import (
    BaseTTSProvider,
    ProviderResult,
    SynthesisFailedError,
    SynthesizeRequest,
)

DEFAULT_API_URL = "https://api.edenai.run/v2/audio/text_to_speech"

_LANGUAGE_RE = re.compile(r"^([a-z]{2}(-[A-Z]{2})?)")


def extract_language(voice_id: str) -> str:
    match = _LANGUAGE_RE.match(voice_id)
    return match.group(1) if match else voice_id


class EdenAIProvider(BaseTTSProvider):
    name = "edenai"
    default_sample_rate = 24000

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.Client] = None):
        super().__init__(settings, client)
        self.api_key = self._require_api_key("EDENAI_API_KEY")
        self.api_url = str(self.options.get("api_url") or DEFAULT_API_URL)
        info(self._log, "edenai_initialized", api_url=self.api_url)

    def build_payload(self, request: SynthesizeRequest) -> Dict[str, Any]:
        opts = request.provider_options
        payload: Dict[str, Any] = {
            "text": request.text,
            "language": extract_language(request.voice_id),
            "providers": opts.get("provider") or self.options.get("provider") or Defaults.EDENAI_PROVIDER,
            "option": opts.get("option") or "FEMALE",
        }
        if opts.get("model"):
            payload["settings"] = {"model": opts["model"]}
        if opts.get("fallback_providers"):
            payload["fallback_providers"] = list(opts["fallback_providers"])
        return payload

    def _extract_audio(self, data: Dict[str, Any]) -> Optional[bytes]:
        for upstream, result in data.items():
            if not isinstance(result, dict):
                continue
            if result.get("error") or result.get("status") == "fail":
                warn(self._log, "edenai_upstream_failed", upstream=upstream, error=result.get("error"))
                continue
            if result.get("audio"):
                debug(self._log, "edenai_inline_audio", upstream=upstream)
                return base64.b64decode(result["audio"])
            url = result.get("audio_resource_url")
            if url:
                try:
                    return self._get(url).content
                except httpx.HTTPError as exc:
                    warn(self._log, "edenai_download_failed", upstream=upstream, error=str(exc))
                    continue
        return None

    def _synthesize(self, request: SynthesizeRequest) -> ProviderResult:
        response = self._post(
            self.api_url,
            json=self.build_payload(request),
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        audio = self._extract_audio(response.json())
        if not audio:
            raise SynthesisFailedError(self.name, "No audio data in EdenAI response")
        return ProviderResult(audio=audio, sample_rate=self.sample_rate_for(request))
