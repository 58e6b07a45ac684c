"""
Azure Speech Provider.

Talks to the Azure Speech REST API:
    POST https://{region}.tts.speech.microsoft.com/cognitiveservices/v1
    Ocp-Apim-Subscription-Key: <AZURE_SPEECH_KEY>
    Content-Type: application/ssml+xml
    X-Microsoft-OutputFormat: audio-24khz-160kbitrate-mono-mp3

The request body is SSML built from the plain text:
    <speak ... xml:lang="de-DE">
      <voice name="de-DE-KatjaNeural">
        <mstts:express-as style="cheerful">      (optional)
          <prosody rate="110%">text</prosody>
        </mstts:express-as>
      </voice>
    </speak>

Billing counts the plain input text, never the generated SSML.

Provider Options:
    style / emotion: speaking style for mstts:express-as
    style_degree: style intensity (0.01-2)
    role: role-play persona (e.g. "YoungAdultFemale")

Configuration:
    AZURE_SPEECH_KEY        required
    AZURE_SPEECH_REGION     default germanywestcentral (EU)
    AZURE_SPEECH_ENDPOINT   optional full URL, overrides the region URL
"""
from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from tts_gateway.core.config import Settings
from tts_gateway.core.logging import info, warn
from tts_gateway.providers.base import (
    BaseTTSProvider,
    InvalidConfigError,
    ProviderResult,
    SynthesizeRequest,
    language_from_voice,
)
from tts_gateway.utils.text import escape_xml

# (format, sample rate) -> X-Microsoft-OutputFormat
OUTPUT_FORMATS: Dict[str, str] = {
    "mp3_8000": "audio-16khz-32kbitrate-mono-mp3",
    "mp3_16000": "audio-16khz-128kbitrate-mono-mp3",
    "mp3_24000": "audio-24khz-160kbitrate-mono-mp3",
    "mp3_48000": "audio-48khz-192kbitrate-mono-mp3",
    "wav_8000": "riff-8khz-16bit-mono-pcm",
    "wav_16000": "riff-16khz-16bit-mono-pcm",
    "wav_24000": "riff-24khz-16bit-mono-pcm",
    "wav_48000": "riff-48khz-16bit-mono-pcm",
    "opus_8000": "ogg-16khz-16bit-mono-opus",
    "opus_16000": "ogg-16khz-16bit-mono-opus",
    "opus_24000": "ogg-24khz-16bit-mono-opus",
    "opus_48000": "ogg-48khz-16bit-mono-opus",
}

# Used when the sample rate has no exact match; aac/flac are not offered
DEFAULT_OUTPUT_FORMATS: Dict[str, str] = {
    "mp3": "audio-24khz-160kbitrate-mono-mp3",
    "wav": "riff-24khz-16bit-mono-pcm",
    "opus": "ogg-24khz-16bit-mono-opus",
    "aac": "audio-24khz-160kbitrate-mono-mp3",
    "flac": "riff-24khz-16bit-mono-pcm",
}


def get_output_format(audio_format: str, sample_rate: int) -> str:
    return (
        OUTPUT_FORMATS.get(f"{audio_format}_{sample_rate}")
        or DEFAULT_OUTPUT_FORMATS.get(audio_format)
        or DEFAULT_OUTPUT_FORMATS["mp3"]
    )


def speed_to_prosody_rate(speed: Optional[float]) -> str:
    """1.0 -> "medium", 1.1 -> "110%"."""
    if not speed or speed == 1.0:
        return "medium"
    return f"{int(round(speed * 100))}%"


def build_ssml(text: str, voice_id: str, speed: Optional[float] = None, options: Optional[Dict[str, Any]] = None) -> str:
    options = options or {}
    language = language_from_voice(voice_id)
    style = options.get("style") or options.get("emotion")

    parts = [
        '<speak version="1.0" xmlns="http://www.w3.org/2001/10/synthesis" '
        f'xmlns:mstts="https://www.w3.org/2001/mstts" xml:lang="{language}">',
        f'<voice name="{escape_xml(voice_id)}">',
    ]
    if style:
        attrs = f'style="{escape_xml(str(style))}"'
        if options.get("style_degree") is not None:
            attrs += f' styledegree="{options["style_degree"]}"'
        if options.get("role"):
            attrs += f' role="{escape_xml(str(options["role"]))}"'
        parts.append(f"<mstts:express-as {attrs}>")
    parts.append(f'<prosody rate="{speed_to_prosody_rate(speed)}">')
    parts.append(escape_xml(text))
    parts.append("</prosody>")
    if style:
        parts.append("</mstts:express-as>")
    parts.append("</voice></speak>")
    return "".join(parts)


class AzureProvider(BaseTTSProvider):
    name = "azure"
    default_sample_rate = 24000

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.Client] = None):
        super().__init__(settings, client)
        self.config = self.settings.azure
        if not self.config.key:
            raise InvalidConfigError(self.name, "Azure Speech subscription key is required (AZURE_SPEECH_KEY)")
        if not self.config.region:
            raise InvalidConfigError(self.name, "Azure Speech region is required (AZURE_SPEECH_REGION)")
        if not self.config.dsgvo_compliant:
            warn(self._log, "azure_region_outside_eu", region=self.config.region)
        info(
            self._log,
            "azure_initialized",
            region=self.config.region,
            has_endpoint=bool(self.config.endpoint),
        )

    @property
    def url(self) -> str:
        if self.config.endpoint:
            return self.config.endpoint
        return f"https://{self.config.region}.tts.speech.microsoft.com/cognitiveservices/v1"

    def _synthesize(self, request: SynthesizeRequest) -> ProviderResult:
        sample_rate = self.sample_rate_for(request)
        ssml = build_ssml(request.text, request.voice_id, request.audio.speed, request.provider_options)
        response = self._post(
            self.url,
            content=ssml.encode("utf-8"),
            headers={
                "Ocp-Apim-Subscription-Key": self.config.key,
                "Content-Type": "application/ssml+xml",
                "X-Microsoft-OutputFormat": get_output_format(request.audio.format, sample_rate),
                "User-Agent": "tts-gateway",
            },
        )
        return ProviderResult(audio=response.content, sample_rate=sample_rate)
