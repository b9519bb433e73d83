"""Lesson duration parsing and display helpers.

Lesson durations are stored as free-form strings typed by tutors ("1h30", "1:30",
"1.5", "90"). They are converted to a numeric hour value once, when a lesson is
read, and only that value is used afterwards.
"""

import math
import re

_LEADING_FLOAT = re.compile(r"^\s*(\d+\.?\d*|\.\d+)(e[+-]?\d+)?")
_LEADING_DIGITS = re.compile(r"^\s*(\d+)")


def _finite_or_zero(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def _leading_float(text: str) -> float:
    match = _LEADING_FLOAT.match(text)
    if not match:
        return 0.0
    return _finite_or_zero(float(match.group(0)))


def _leading_minutes(text: str) -> float | None:
    match = _LEADING_DIGITS.match(text)
    if not match:
        return None
    # Digit runs past the float range come back as inf
    return float(match.group(1))


def parse_duration_to_hours(duration: str | None) -> float:
    """Convert a duration string to fractional hours; unparseable input yields 0.

    Forms are tried in a fixed order: "XhY", "X:Y", decimal hours, then a bare
    integer read as minutes. "1.30" is therefore 1.3 hours, never 1h30.
    """
    if not duration or not isinstance(duration, str):
        return 0.0

    clean = duration.strip().lower()
    if not clean:
        return 0.0

    if "h" in clean:
        parts = clean.split("h")
        if len(parts) == 2:
            hours = _leading_float(parts[0])
            minutes = _leading_float(parts[1])
            return _finite_or_zero(hours + minutes / 60)

    if ":" in clean:
        parts = clean.split(":")
        hours = _leading_float(parts[0])
        minutes = _leading_float(parts[1]) if len(parts) > 1 else 0.0
        return _finite_or_zero(hours + minutes / 60)

    if "." in clean:
        return _leading_float(clean)

    minutes = _leading_minutes(clean)
    if minutes is not None:
        return _finite_or_zero(minutes / 60)

    return 0.0


def format_hours(hours: float) -> str:
    """Render an hour value as "XhYmin", omitting zero minutes ("2h")."""
    if not hours or not math.isfinite(hours) or hours <= 0:
        return "0h"
    total_minutes = int(round(hours * 60))
    whole_hours, minutes = divmod(total_minutes, 60)
    if minutes:
        return f"{whole_hours}h{minutes}min"
    return f"{whole_hours}h"


def format_duration(duration: str | None) -> str:
    return format_hours(parse_duration_to_hours(duration))
