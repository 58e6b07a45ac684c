"""
Command-Line Interface for tts-gateway.

Synthesizes speech without running the HTTP server, estimates MP3
durations and lists providers.

Usage Examples:
    # Synthesize with the default provider
    tts-gateway synth "Hallo Welt" --voice de-DE-KatjaNeural --out hallo.mp3

    # Pick a provider and print a JSON summary
    tts-gateway synth "Hallo Welt" --voice de-DE-Neural2-B --provider google --json

    # Estimate the length of an MP3 file
    tts-gateway duration hallo.mp3

    # Show implemented and configured providers
    tts-gateway providers

    # Run the HTTP API
    tts-gateway serve --host 0.0.0.0 --port 8000

Exit Codes:
    0  success
    1  synthesis failed, or duration could not be determined
    2  usage error (argparse)

Environment Variables:
    TTS_GATEWAY_SETTINGS: settings file (default config/settings.yaml)
    TTS_DEFAULT_PROVIDER: default provider override
    Provider keys: AZURE_SPEECH_KEY, GOOGLE_TTS_API_KEY, ...
"""
from __future__ import annotations

import argparse
import json
import os
from pathlib import Path
from typing import List, Optional
from uuid import uuid4

from tts_gateway.core.config import load_settings
from tts_gateway.core.logging import configure_logging, get_logger, info
from tts_gateway.providers import implemented_providers
from tts_gateway.providers.base import AUDIO_FORMATS, AudioOptions, SynthesizeRequest, TTSError
from tts_gateway.services.tts_service import TTSService
from tts_gateway.utils.mp3 import get_mp3_duration


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="tts-gateway", description="tts-gateway CLI")
    parser.add_argument(
        "--settings",
        default=os.getenv("TTS_GATEWAY_SETTINGS", "config/settings.yaml"),
        help="Settings YAML (missing file = defaults)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    synth = sub.add_parser("synth", help="Synthesize text to an audio file")
    synth.add_argument("text", help="Text to synthesize")
    synth.add_argument("--voice", required=True, help="Provider-specific voice ID")
    synth.add_argument("--provider", help="Provider (default from settings)")
    synth.add_argument("--format", choices=AUDIO_FORMATS, help="Audio format")
    synth.add_argument("--speed", type=float, help="Speaking rate (1.0 = normal)")
    synth.add_argument("--sample-rate", type=int, help="Sample rate in Hz")
    synth.add_argument("--out", help="Output path (default out.<format>)")
    synth.add_argument("--no-retry", action="store_true", help="Single attempt, no retry")
    synth.add_argument("--json", action="store_true", help="Print JSON summary")

    duration = sub.add_parser("duration", help="Estimate MP3 duration")
    duration.add_argument("file", help="MP3 file")
    duration.add_argument("--json", action="store_true", help="Print JSON")

    sub.add_parser("providers", help="List providers")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    return parser.parse_args(argv)


def _cmd_synth(args: argparse.Namespace) -> int:
    log = get_logger("tts-gateway.cli")
    settings = load_settings(args.settings, missing_ok=True)
    service = TTSService(settings)

    audio_format = args.format or settings.default_format
    request = SynthesizeRequest(
        text=args.text,
        voice_id=args.voice,
        provider=args.provider,
        audio=AudioOptions(format=audio_format, speed=args.speed, sample_rate=args.sample_rate),
        retry=not args.no_retry,
    )
    out_path = Path(args.out or f"out.{audio_format}")

    try:
        result = service.synthesize(request, str(uuid4())[:12])
    except TTSError as e:
        if args.json:
            print(json.dumps(e.to_dict(), ensure_ascii=False))
        else:
            print(f"[FAILED] {e}")
        return 1
    finally:
        service.close()

    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(result.audio)
    info(log, "audio_written", out=str(out_path), bytes=len(result.audio))

    payload = {"ok": True, "out": str(out_path), **result.to_dict()}
    if args.json:
        print(json.dumps(payload, ensure_ascii=False))
    else:
        meta = result.metadata
        length = f"{meta.audio_duration} ms" if meta.audio_duration is not None else "unknown length"
        print(
            f"[OK] {out_path} ({len(result.audio)} bytes, {length}, "
            f"{meta.provider}/{meta.voice}, {result.billing.characters} chars)"
        )
    return 0


def _cmd_duration(args: argparse.Namespace) -> int:
    try:
        data = Path(args.file).read_bytes()
    except OSError as e:
        if args.json:
            print(json.dumps({"ok": False, "file": args.file, "message": str(e)}, ensure_ascii=False))
        else:
            print(f"[FAILED] {args.file}: {e.strerror or e}")
        return 1
    duration = get_mp3_duration(data)
    if args.json:
        print(json.dumps({"file": args.file, "bytes": len(data), "duration_ms": duration}))
    elif duration is None:
        print(f"{args.file}: duration unknown")
    else:
        print(f"{args.file}: {duration} ms")
    return 0 if duration is not None else 1


def _cmd_providers(args: argparse.Namespace) -> int:
    settings = load_settings(args.settings, missing_ok=True)
    service = TTSService(settings)
    try:
        available = service.available_providers()
        for name in implemented_providers():
            status = "available" if name in available else "not configured"
            marker = "*" if name == service.default_provider else " "
            print(f"{marker} {name:<12} {status}")
    finally:
        service.close()
    return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    os.environ["TTS_GATEWAY_SETTINGS"] = args.settings
    uvicorn.run("tts_gateway.main:app", host=args.host, port=args.port)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = _parse_args(argv)
    configure_logging()

    commands = {
        "synth": _cmd_synth,
        "duration": _cmd_duration,
        "providers": _cmd_providers,
        "serve": _cmd_serve,
    }
    return commands[args.command](args)


if __name__ == "__main__":
    raise SystemExit(main())
