"""
Character Counting Utilities.

Every provider bills by characters, so the gateway counts them the same
way everywhere: Python string length, which is the number of Unicode
code points. Markup that a provider receives but does not speak (SSML
tags) is excluded from billable counts.

Functions:
    count_characters: Raw code point count
    count_characters_without_ssml: Count after removing <...> tags
    count_billable_characters: What a provider charges for
    validate_character_count: Enforce min/max length
    estimate_audio_duration: Rough speech length from text length
    format_character_count: Human-readable counts ("1.2K chars")
    escape_xml: Escape text before embedding it in SSML

Example:
    >>> count_characters_without_ssml("<speak>Hallo</speak>")
    5
    >>> format_character_count(1500)
    '1.5K chars'
"""
from __future__ import annotations

import math
import re
from typing import Optional

_SSML_TAG_RE = re.compile(r"<[^>]+>")

# Average speaking speed used for duration estimates
DEFAULT_CHARS_PER_SECOND = 15


class CharacterCountError(ValueError):
    """Raised when text length falls outside the allowed range."""


def count_characters(text: str) -> int:
    return len(text)


def count_characters_without_ssml(text: str) -> int:
    return len(_SSML_TAG_RE.sub("", text))


def count_billable_characters(text: str, is_ssml: bool = False) -> int:
    """
    Count the characters a provider bills for.

    Args:
        text: Input text or SSML document.
        is_ssml: Strip markup before counting.
    """
    if is_ssml:
        return count_characters_without_ssml(text)
    return count_characters(text)


def validate_character_count(
    text: str,
    min_length: int = 0,
    max_length: Optional[int] = None,
) -> bool:
    """
    Check that the text length lies within [min_length, max_length].

    Raises:
        CharacterCountError: If the text is shorter than `min_length`
            or longer than `max_length`.
    """
    count = count_characters(text)
    if count < min_length:
        raise CharacterCountError(
            f"Text must have at least {min_length} characters (got {count})"
        )
    if max_length is not None and count > max_length:
        raise CharacterCountError(
            f"Text must have at most {max_length} characters (got {count})"
        )
    return True


def estimate_audio_duration(
    text: str,
    speed: float = 1.0,
    chars_per_second: float = DEFAULT_CHARS_PER_SECOND,
) -> int:
    """
    Estimate spoken length in milliseconds.

    This is a planning figure only; use utils.mp3.get_mp3_duration for
    the length of actual audio.
    """
    if speed <= 0:
        raise ValueError("speed must be > 0")
    seconds = count_characters(text) / (chars_per_second * speed)
    return math.floor(seconds * 1000 + 0.5)


def format_character_count(count: int) -> str:
    if count >= 1_000_000:
        return f"{count / 1_000_000:.1f}M chars"
    if count >= 1_000:
        return f"{count / 1_000:.1f}K chars"
    return f"{count} chars"


def escape_xml(text: str) -> str:
    """Escape the five XML special characters."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )
