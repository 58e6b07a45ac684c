"""
MP3 Duration Estimation.

This module computes the playback duration of an MP3 byte buffer by
walking its MPEG audio frame headers. No audio is decoded: each frame
header tells us how many PCM samples the frame carries and how long the
frame is in bytes, so the duration is simply the sum of samples divided
by the sample rate.

Pipeline (per buffer):
    1. Skip an ID3v2 tag at the very start of the buffer
    2. Walk the buffer with a cursor:
        - ID3v1 "TAG" block at the cursor  -> skip 128 bytes
        - Frame sync (11 set bits)         -> decode header
            - valid header   -> count samples, jump by frame size
            - invalid header -> advance one byte (resync)
        - anything else                    -> jump to the next candidate
    3. Convert total samples to milliseconds using the first frame's
       sample rate

Header Layout (32 bits, big-endian):
    AAAAAAAA AAABBCCD EEEEFFGH IIJJKLMM
        A: frame sync (all ones)
        B: MPEG version (00=2.5, 01=reserved, 10=2, 11=1)
        C: layer (00=reserved, 01=III, 10=II, 11=I)
        D: protection bit
        E: bitrate index
        F: sample rate index
        G: padding bit
        H..M: private, channel mode, copyright, emphasis (unused here)

Frame Size:
    Layer I:       floor((12 * bitrate / sample_rate + padding) * 4)
    Layer II/III:  floor(samples / 8 * bitrate / sample_rate + padding)

Robustness:
    The estimator never raises. Garbage bytes, truncated buffers and
    unknown encodings all degrade to "unknown" (None) or to a duration
    computed from the frames that were found. A frame cut short by the
    end of the buffer is still counted.

    The walk is linear in the buffer length: the cursor only moves
    forward and the next "TAG" offset is searched once and reused until
    the cursor passes it.

Example:
    >>> from tts_gateway.utils.mp3 import get_mp3_duration
    >>> get_mp3_duration(response.audio)
    2612

See Also:
    - providers/base.py: Fills metadata.audio_duration for mp3 responses
    - cli.py: `tts-gateway duration FILE`
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple, Union

BytesLike = Union[bytes, bytearray, memoryview]

# Buffers shorter than this cannot hold a meaningful MP3 payload
MIN_MP3_BYTES = 100

ID3V2_HEADER_SIZE = 10
ID3V2_FOOTER_SIZE = 10
ID3V2_FOOTER_FLAG = 0x10
ID3V1_TAG_SIZE = 128

_ID3V2_MAGIC = b"ID3"
_ID3V1_MAGIC = b"TAG"
_HEADER_SIZE = 4

# Version bits -> version label (index 1 is reserved)
VERSIONS = ("2.5", None, "2", "1")

# Layer bits -> layer number (index 0 is reserved)
LAYERS = (None, 3, 2, 1)

# Bitrates in kbps, indexed by the 4-bit bitrate index (15 is invalid)
BITRATES_KBPS = {
    "V1L1": (0, 32, 64, 96, 128, 160, 192, 224, 256, 288, 320, 352, 384, 416, 448),
    "V1L2": (0, 32, 48, 56, 64, 80, 96, 112, 128, 160, 192, 224, 256, 320, 384),
    "V1L3": (0, 32, 40, 48, 56, 64, 80, 96, 112, 128, 160, 192, 224, 256, 320),
    "V2L1": (0, 32, 48, 56, 64, 80, 96, 112, 128, 144, 160, 176, 192, 224, 256),
    "V2L2": (0, 8, 16, 24, 32, 40, 48, 56, 64, 80, 96, 112, 128, 144, 160),
    "V2L3": (0, 8, 16, 24, 32, 40, 48, 56, 64, 80, 96, 112, 128, 144, 160),
}

SAMPLE_RATES = {
    "1": (44100, 48000, 32000),
    "2": (22050, 24000, 16000),
    "2.5": (11025, 12000, 8000),
}

SAMPLES_PER_FRAME = {
    "1": {1: 384, 2: 1152, 3: 1152},
    "2": {1: 384, 2: 1152, 3: 576},
    "2.5": {1: 384, 2: 1152, 3: 576},
}


@dataclass(frozen=True)
class FrameHeader:
    """
    Decoded MPEG audio frame header.

    Attributes:
        version: MPEG version label ("1", "2" or "2.5").
        layer: Layer number (1, 2 or 3).
        bitrate: Bitrate in bits per second.
        sample_rate: Sample rate in Hz.
        padding: Padding bit (0 or 1).
        samples: PCM samples carried by this frame.
        frame_size: Frame length in bytes, header included.
    """
    version: str
    layer: int
    bitrate: int
    sample_rate: int
    padding: int
    samples: int
    frame_size: int


def skip_id3v2(data: BytesLike) -> int:
    """
    Return the offset of the first byte after a leading ID3v2 tag.

    Returns 0 when the buffer does not start with a well-formed ID3v2
    header. The tag size is a 28-bit synchsafe integer; a size byte
    with its top bit set means the header is not ID3v2 at all.
    """
    if len(data) < ID3V2_HEADER_SIZE or bytes(data[0:3]) != _ID3V2_MAGIC:
        return 0

    size_bytes = data[6:10]
    if any(b & 0x80 for b in size_bytes):
        return 0

    size = (
        (size_bytes[0] << 21)
        | (size_bytes[1] << 14)
        | (size_bytes[2] << 7)
        | size_bytes[3]
    )
    skip = ID3V2_HEADER_SIZE + size
    if data[5] & ID3V2_FOOTER_FLAG:
        skip += ID3V2_FOOTER_SIZE
    return skip


def skip_metadata(data: BytesLike, pos: int) -> int:
    """
    Skip a metadata block starting exactly at `pos`.

    Args:
        data: MP3 buffer.
        pos: Cursor offset.

    Returns:
        Offset past the metadata block, or `pos` unchanged when there
        is no metadata at the cursor.
    """
    if pos == 0:
        skipped = skip_id3v2(data)
        if skipped:
            return skipped
    if bytes(data[pos:pos + 3]) == _ID3V1_MAGIC:
        return pos + ID3V1_TAG_SIZE
    return pos


def is_sync(data: BytesLike, pos: int) -> bool:
    """True if an 11-bit frame sync starts at `pos`."""
    return (
        pos + 1 < len(data)
        and data[pos] == 0xFF
        and (data[pos + 1] & 0xE0) == 0xE0
    )


def find_sync(data: BytesLike, pos: int = 0) -> Optional[int]:
    """
    Find the next frame sync at or after `pos`.

    Returns:
        Offset of the sync, or None if the buffer holds no more syncs.
    """
    buf = bytes(data) if isinstance(data, memoryview) else data
    end = len(buf) - 1
    i = buf.find(b"\xff", pos)
    while 0 <= i < end:
        if (buf[i + 1] & 0xE0) == 0xE0:
            return i
        i = buf.find(b"\xff", i + 1)
    return None


def parse_frame_header(data: BytesLike, pos: int) -> Optional[FrameHeader]:
    """
    Decode the 4-byte frame header at `pos`.

    Returns None for anything that is not a usable header: missing
    sync, reserved version or layer, free-format or "bad" bitrate,
    reserved sample rate, or a computed frame size of zero.
    """
    if pos + _HEADER_SIZE > len(data) or not is_sync(data, pos):
        return None

    b1 = data[pos + 1]
    b2 = data[pos + 2]

    version = VERSIONS[(b1 >> 3) & 0x03]
    layer = LAYERS[(b1 >> 1) & 0x03]
    if version is None or layer is None:
        return None

    bitrate_index = (b2 >> 4) & 0x0F
    sample_rate_index = (b2 >> 2) & 0x03
    padding = (b2 >> 1) & 0x01
    if bitrate_index in (0, 15) or sample_rate_index == 3:
        return None

    table = ("V1L%d" if version == "1" else "V2L%d") % layer
    bitrate = BITRATES_KBPS[table][bitrate_index] * 1000
    sample_rate = SAMPLE_RATES[version][sample_rate_index]
    samples = SAMPLES_PER_FRAME[version][layer]

    if layer == 1:
        frame_size = math.floor((12 * bitrate / sample_rate + padding) * 4)
    else:
        frame_size = math.floor(samples / 8 * bitrate / sample_rate + padding)
    if frame_size <= 0:
        return None

    return FrameHeader(
        version=version,
        layer=layer,
        bitrate=bitrate,
        sample_rate=sample_rate,
        padding=padding,
        samples=samples,
        frame_size=frame_size,
    )


def _next_candidate(
    buf: Union[bytes, bytearray], pos: int, tag_at: Optional[int]
) -> Tuple[Optional[int], int]:
    """
    Next offset that is either a frame sync or an ID3v1 signature.

    `tag_at` is the cached result of the last "TAG" search (None before
    the first one, -1 once no signature is left). It is only searched
    again when the cursor has moved past it.

    Returns:
        (candidate offset or None, updated tag_at)
    """
    if tag_at is None or 0 <= tag_at < pos:
        tag_at = buf.find(_ID3V1_MAGIC, pos)
    sync = find_sync(buf, pos)
    candidates = [c for c in (sync, tag_at) if c is not None and c >= 0]
    return (min(candidates) if candidates else None), tag_at


def get_mp3_duration(data: Optional[BytesLike]) -> Optional[int]:
    """
    Estimate the playback duration of an MP3 buffer.

    Args:
        data: Raw MP3 bytes (ID3 tags allowed).

    Returns:
        Duration in whole milliseconds (half rounded up), or None when
        the buffer is missing, too short or contains no valid frame.
    """
    if data is None or len(data) < MIN_MP3_BYTES:
        return None

    if isinstance(data, memoryview):
        data = bytes(data)

    total_samples = 0
    sample_rate: Optional[int] = None
    tag_at: Optional[int] = None
    pos = skip_id3v2(data)
    end = len(data)

    while pos + _HEADER_SIZE <= end:
        skipped = skip_metadata(data, pos)
        if skipped != pos:
            pos = skipped
            continue

        if is_sync(data, pos):
            header = parse_frame_header(data, pos)
            if header is None:
                pos += 1
                continue
            total_samples += header.samples
            if sample_rate is None:
                sample_rate = header.sample_rate
            pos += header.frame_size
            continue

        nxt, tag_at = _next_candidate(data, pos, tag_at)
        if nxt is None:
            break
        pos = nxt

    if not total_samples or not sample_rate:
        return None
    return math.floor(total_samples / sample_rate * 1000 + 0.5)
