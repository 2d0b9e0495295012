"""
OEE Monitor - Interval Arithmetic

Overlap of time ranges. Every aggregation in the OEE engine clips job runs,
downtime events and calendar days against a window through these helpers.
"""

from datetime import datetime, timedelta
from typing import Iterable, Optional, Tuple


def overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> timedelta:
    """
    Overlap duration of ``[a_start, a_end)`` and ``[b_start, b_end)``.

    Defined as ``max(0, min(a_end, b_end) - max(a_start, b_start))``; disjoint
    or touching ranges give a zero duration, never a negative one.
    """
    start = a_start if a_start > b_start else b_start
    end = a_end if a_end < b_end else b_end
    return end - start if end > start else timedelta(0)


def overlap_seconds(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> float:
    """Overlap of two ranges in seconds."""
    return overlap(a_start, a_end, b_start, b_end).total_seconds()


def effective_end(end: Optional[datetime], now: datetime, limit: datetime) -> datetime:
    """End of an interval that may still be open: open intervals run until ``min(now, limit)``."""
    if end is not None:
        return end
    return now if now < limit else limit


def clip(start: datetime, end: datetime, window_start: datetime, window_end: datetime):
    """Clip ``[start, end)`` to a window. Returns None when nothing is left."""
    clipped_start = start if start > window_start else window_start
    clipped_end = end if end < window_end else window_end
    if clipped_end <= clipped_start:
        return None
    return clipped_start, clipped_end


def merged_seconds(spans: Iterable[Tuple[datetime, datetime]]) -> float:
    """Total length of the union of ``[start, end)`` spans; overlapping parts count once."""
    total = 0.0
    current_start = current_end = None
    for start, end in sorted(spans):
        if current_end is None or start > current_end:
            if current_end is not None:
                total += (current_end - current_start).total_seconds()
            current_start, current_end = start, end
        elif end > current_end:
            current_end = end
    if current_end is not None:
        total += (current_end - current_start).total_seconds()
    return total
