"""
Timing Utilities.

Measures wall-clock time of provider calls. The measured time is
reported in three places:
    - ResponseMetadata.duration (milliseconds of the API call)
    - The request_duration histogram in core/metrics.py
    - The `seconds` field of service log lines

Uses time.perf_counter() for high-resolution timing.

Example:
    with timeit("synthesize", meta={"provider": "azure"}) as t:
        audio = client.post(...)
    print(f"Took {t.timing.ms} ms")
"""
from __future__ import annotations

from dataclasses import dataclass
from time import perf_counter
from typing import Any, Dict, Optional


@dataclass
class Timing:
    """
    Timing measurement result.

    Attributes:
        name: Identifier for what was timed (e.g., "synthesize").
        seconds: Duration in seconds (float, high precision).
        meta: Optional metadata dictionary for additional context.
    """
    name: str
    seconds: float
    meta: Optional[Dict[str, Any]] = None

    @property
    def ms(self) -> int:
        return int(round(self.seconds * 1000))


class timeit:
    """
    Context manager for timing code blocks.

    The result is stored on `timing` when the block exits, including
    when it exits with an exception.
    """

    def __init__(self, name: str, meta: Optional[Dict[str, Any]] = None):
        self.name = name
        self.meta = meta
        self._t0: float | None = None
        self.timing: Timing | None = None

    def __enter__(self) -> "timeit":
        self._t0 = perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        t1 = perf_counter()
        assert self._t0 is not None
        self.timing = Timing(name=self.name, seconds=(t1 - self._t0), meta=self.meta)

    def elapsed_ms(self) -> int:
        """Milliseconds since the block started (usable inside the block)."""
        assert self._t0 is not None
        return int(round((perf_counter() - self._t0) * 1000))
