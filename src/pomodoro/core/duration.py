"""Duration codec -- human duration strings to seconds and back.

A bare integer is read as minutes (``"25"`` -> 1500).  Anything else is
treated as a compound ``"1h 30m 10s"`` string.  Malformed segments count
as zero instead of failing the whole parse.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

_UINT = re.compile(r"\+?[0-9]+")
_UINT_MAX = 2**64 - 1

# Order matters: "minute" must be replaced before "min", "second" before "sec".
_UNIT_ALIASES = (
    ("hour", "h"),
    ("minute", "m"),
    ("min", "m"),
    ("second", "s"),
    ("sec", "s"),
)


def _parse_uint(text: str) -> int | None:
    """Return *text* as an unsigned 64-bit integer, or ``None``."""
    if _UINT.fullmatch(text) is None:
        return None
    value = int(text)
    if value > _UINT_MAX:
        return None
    return value


def _take_segment(text: str, marker: str) -> tuple[int, str]:
    """Split *text* on *marker* and return ``(value, remainder)``.

    The remainder is the text between the first and second occurrence of
    *marker*, mirroring a plain ``split``.
    """
    parts = text.split(marker)
    value = _parse_uint(parts[0])
    if value is None:
        if parts[0]:
            logger.warning("Ignoring malformed %r segment %r", marker, parts[0])
        value = 0
    return value, parts[1]


def parse_duration(text: str) -> int:
    """Parse *text* into a number of seconds.

    >>> parse_duration("100")
    6000
    >>> parse_duration("1H 30Min 10SeC")
    5410
    """
    minutes_only = _parse_uint(text)
    if minutes_only is not None:
        return minutes_only * 60

    normalized = "".join(ch for ch in text.lower() if not ch.isspace())
    for alias, unit in _UNIT_ALIASES:
        normalized = normalized.replace(alias, unit)

    hours = minutes = seconds = 0
    if "h" in normalized:
        hours, normalized = _take_segment(normalized, "h")
    if "m" in normalized:
        minutes, normalized = _take_segment(normalized, "m")
    if "s" in normalized:
        seconds, _ = _take_segment(normalized, "s")
    return hours * 3600 + minutes * 60 + seconds


def format_duration(seconds: int) -> str:
    """Format *seconds* as ``"1h 30m 10s"``, dropping zero hours/minutes."""
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)

    pieces = []
    if hours > 0:
        pieces.append(f"{hours}h")
    if minutes > 0:
        pieces.append(f"{minutes}m")
    pieces.append(f"{secs}s")
    return " ".join(pieces)
