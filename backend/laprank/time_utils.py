"""Helpers for lap times and timezone-aware datetimes."""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone

from .exceptions import InvalidLapTime, LapTimeFormatError

# [minutes:]seconds.centiseconds, e.g. "1:23.45", "12:03.10" or "59.99"
LAP_TIME_RE = re.compile(r"^(?:(\d+):)?(\d{1,2})\.(\d{2})$")


def parse_lap_time(text: str) -> int:
    """Parse a lap time string into integer milliseconds.

    Raises:
        LapTimeFormatError: If ``text`` is not a string, does not match the
            ``[m:]ss.cc`` grammar, or has 60 or more seconds.
    """

    if not isinstance(text, str):
        raise LapTimeFormatError(text)

    match = LAP_TIME_RE.match(text.strip())
    if not match:
        raise LapTimeFormatError(text)

    minutes = int(match.group(1) or 0)
    seconds = int(match.group(2))
    centis = int(match.group(3))
    if seconds >= 60:
        raise LapTimeFormatError(text)

    return minutes * 60_000 + seconds * 1_000 + centis * 10


def format_lap_time(ms: int | float) -> str:
    """Render milliseconds as ``m:ss.cc``; sub-centisecond digits are dropped."""

    # bool is a subclass of int
    if isinstance(ms, bool) or not isinstance(ms, (int, float)):
        raise InvalidLapTime(ms)
    if math.isnan(ms) or math.isinf(ms) or ms < 0:
        raise InvalidLapTime(ms)

    total = int(ms)
    minutes, rest = divmod(total, 60_000)
    seconds, millis = divmod(rest, 1_000)
    return f"{minutes}:{seconds:02d}.{millis // 10:02d}"


def coerce_utc(value: datetime | None) -> datetime | None:
    """Return a UTC-normalized datetime, assuming naive values are already UTC."""

    if value is None:
        return None

    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)

    return value.astimezone(timezone.utc)
