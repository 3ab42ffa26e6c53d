"""Parsing of /tldr range tokens such as ``24h``, ``3d`` or ``1w``."""

import re

from .models import ParsedRange, RangeError

INVALID_FORMAT_MESSAGE = "Invalid format. Use like `24h`, `3d`, `1w`"
NON_POSITIVE_MESSAGE = "Duration must be greater than 0"

_RANGE_PATTERN = re.compile(r"([0-9]+)([mhdw])")

# unit letter -> (milliseconds, singular, plural)
UNITS = {
    "m": (60 * 1000, "minute", "minutes"),
    "h": (60 * 60 * 1000, "hour", "hours"),
    "d": (24 * 60 * 60 * 1000, "day", "days"),
    "w": (7 * 24 * 60 * 60 * 1000, "week", "weeks"),
}


def parse_time_range(token: str) -> ParsedRange:
    """Turn a range token into a duration in milliseconds and a label.

    The whole token must match ``<digits><unit>``; nothing is trimmed.
    Returns a failed ``ParsedRange`` carrying the user-facing message
    instead of raising.
    """
    match = _RANGE_PATTERN.fullmatch(token.lower())
    if not match:
        return ParsedRange.failure(RangeError.INVALID_FORMAT, INVALID_FORMAT_MESSAGE)

    amount = int(match.group(1))
    if amount == 0:
        return ParsedRange.failure(RangeError.NON_POSITIVE_DURATION, NON_POSITIVE_MESSAGE)

    unit_ms, singular, plural = UNITS[match.group(2)]
    label = singular if amount == 1 else plural
    return ParsedRange.ok(amount * unit_ms, f"{amount} {label}")
