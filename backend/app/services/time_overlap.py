from __future__ import annotations

import datetime as dt

TimeValue = str | dt.time | None


def time_to_minutes(value: TimeValue) -> int | None:
    """Minutes since midnight for ``HH:MM``, ``HH:MM:SS`` or a ``time``.

    Seconds are ignored and a missing minutes part counts as zero. Anything
    that does not parse returns ``None``; hours and minutes are not range checked.
    """
    if isinstance(value, dt.time):
        return value.hour * 60 + value.minute
    if value is None:
        return None
    parts = str(value).strip().split(":")
    try:
        hours = int(parts[0])
        minutes = int(parts[1]) if len(parts) > 1 and parts[1].strip() else 0
    except ValueError:
        return None
    return hours * 60 + minutes


def time_ranges_overlap(start1: TimeValue, end1: TimeValue, start2: TimeValue, end2: TimeValue) -> bool:
    """Half-open overlap test: ``start1 < end2 and start2 < end1``.

    Back-to-back ranges (10:00-11:00 and 11:00-12:00) do not overlap. If any
    bound fails to parse the ranges are treated as not overlapping.
    """
    bounds = [time_to_minutes(value) for value in (start1, end1, start2, end2)]
    if any(bound is None for bound in bounds):
        return False
    start1_minutes, end1_minutes, start2_minutes, end2_minutes = bounds
    return start1_minutes < end2_minutes and start2_minutes < end1_minutes
