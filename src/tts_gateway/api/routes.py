"""
Gateway API Routes.

Endpoints:
    POST /v1/tts             - Synthesize speech (returns audio bytes)
    GET  /v1/providers       - Default, initialized and implemented providers
    POST /v1/audio/duration  - Estimate the playback length of an MP3 body (413 above tts.max_audio_bytes)
    GET  /health             - Health check for load balancers and probes
    GET  /metrics            - Prometheus metrics

Error Handling:
    Errors are returned as JSON:
    {
        "ok": false,
        "error": "<ERROR_CODE>",
        "message": "<human readable message>",
        "provider": "<provider>",
        "request_id": "<id>"
    }

    HTTP status codes are mapped from TTSError codes:
        - INVALID_CONFIG, INVALID_VOICE, INVALID_INPUT -> 400
        - QUOTA_EXCEEDED -> 429
        - PROVIDER_UNAVAILABLE -> 503
        - NETWORK_ERROR -> 504
        - anything else -> 500

Example Usage:
    curl -X POST http://localhost:8000/v1/tts \\
        -H "Content-Type: application/json" \\
        -d '{"text": "Hallo Welt", "voice_id": "de-DE-KatjaNeural"}' \\
        --output hallo.mp3
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from tts_gateway.api.dependencies import get_settings, get_tts_service
from tts_gateway.api.schemas import DurationResponse, ProvidersResponse, TTSRequest
from tts_gateway.core.config import Settings
from tts_gateway.core.logging import error, get_logger, set_request_id, verbose, warn
from tts_gateway.core.metrics import metrics
from tts_gateway.providers import implemented_providers
from tts_gateway.providers.base import MEDIA_TYPES, ErrorCode, TTSError
from tts_gateway.services.tts_service import TTSService
from tts_gateway.utils.mp3 import get_mp3_duration

router = APIRouter()

_LOG = get_logger("tts-gateway.api")

STATUS_MAP = {
    ErrorCode.INVALID_CONFIG: 400,
    ErrorCode.INVALID_VOICE: 400,
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.QUOTA_EXCEEDED: 429,
    ErrorCode.PROVIDER_UNAVAILABLE: 503,
    ErrorCode.NETWORK_ERROR: 504,
}


def status_for(code: str) -> int:
    return STATUS_MAP.get(code, 500)


def _error_response(err: TTSError, request_id: str) -> JSONResponse:
    content = err.to_dict()
    content["request_id"] = request_id
    return JSONResponse(
        status_code=status_for(err.code),
        content=content,
        headers={"X-Request-Id": request_id},
    )


@router.post("/v1/tts", response_class=Response)
def tts_v1(
    req: TTSRequest,
    service: TTSService = Depends(get_tts_service),
):
    """
    Synthesize speech and return the raw audio.

    Response headers:
        X-Request-Id, X-Provider, X-Voice, X-Characters, X-Synthesis-Ms,
        X-Sample-Rate, and X-Audio-Duration-Ms when the audio is mp3 and
        its duration could be estimated.
    """
    rid = str(uuid.uuid4())[:12]
    set_request_id(rid)

    synth_request = req.to_synthesize_request(service.config.tts.default_format)
    try:
        result = service.synthesize(synth_request, rid)
    except TTSError as e:
        return _error_response(e, rid)
    except Exception as e:
        error(_LOG, "request_crashed", error=repr(e))
        return JSONResponse(
            status_code=500,
            content={
                "ok": False,
                "error": ErrorCode.UNKNOWN_ERROR,
                "message": "Internal server error",
                "request_id": rid,
            },
            headers={"X-Request-Id": rid},
        )

    meta = result.metadata
    headers = {
        "X-Request-Id": rid,
        "X-Provider": meta.provider,
        "X-Voice": meta.voice,
        "X-Characters": str(result.billing.characters),
        "X-Synthesis-Ms": str(meta.duration),
        "X-Sample-Rate": str(meta.sample_rate),
    }
    if meta.audio_duration is not None:
        headers["X-Audio-Duration-Ms"] = str(meta.audio_duration)

    return Response(
        content=result.audio,
        media_type=MEDIA_TYPES.get(meta.audio_format, "application/octet-stream"),
        headers=headers,
    )


@router.get("/v1/providers", response_model=ProvidersResponse)
def list_providers(service: TTSService = Depends(get_tts_service)):
    return ProvidersResponse(
        default_provider=service.default_provider,
        available=service.available_providers(),
        implemented=implemented_providers(),
    )


@router.post("/v1/audio/duration", response_model=DurationResponse)
async def audio_duration(request: Request, settings: Settings = Depends(get_settings)):
    """
    Estimate the duration of an MP3 sent as the raw request body.

    Returns duration_ms = null for bodies that are too short or contain
    no valid MPEG audio frame. Bodies larger than tts.max_audio_bytes
    are rejected with 413. The frame walk runs in the threadpool.
    """
    limit = settings.max_audio_bytes
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        return _too_large(int(declared), limit)

    body = await request.body()
    if len(body) > limit:
        return _too_large(len(body), limit)

    duration = await run_in_threadpool(get_mp3_duration, body)
    verbose(_LOG, "duration_estimated", bytes=len(body), duration_ms=duration)
    return DurationResponse(duration_ms=duration, bytes=len(body))


def _too_large(size: int, limit: int) -> JSONResponse:
    warn(_LOG, "audio_too_large", bytes=size, limit=limit)
    return JSONResponse(
        status_code=413,
        content={
            "ok": False,
            "error": ErrorCode.INVALID_INPUT,
            "message": f"Audio body of {size} bytes exceeds the limit of {limit} bytes",
        },
    )


@router.get("/health")
def health(service: TTSService = Depends(get_tts_service)):
    """Provider availability and limits, for probes and dashboards."""
    return service.get_health_info()


@router.get("/metrics")
def prometheus_metrics():
    content, content_type = metrics.get_metrics_response()
    return Response(content=content, media_type=content_type)
