"""Clip boundary planning."""

import math

from badgerclips.models import ClipBoundary


def estimate_clip_count(duration: float, length: int) -> int:
    """Number of clips needed to cover *duration*; used for progress display."""
    if duration <= 0:
        return 0
    return math.ceil(duration / length)


def plan_clips(duration: float, length: int) -> list[ClipBoundary]:
    """Cut [0, duration] into contiguous clips of at most *length* seconds.

    Boundaries are derived from the clip index rather than a running sum so
    long inputs don't accumulate drift. The last clip ends exactly at
    *duration* and may be shorter than *length*.
    """
    if length <= 0:
        raise ValueError(f"Clip length must be positive, got {length}")

    boundaries: list[ClipBoundary] = []
    i = 0
    while i * length < duration:
        start = float(i * length)
        end = min(float((i + 1) * length), duration)
        boundaries.append(ClipBoundary(start=start, end=end, index=i + 1))
        i += 1
    return boundaries
