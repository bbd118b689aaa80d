"""
Time handling: HH:MM[:SS] strings to minutes since midnight, ISO dates.
Malformed input raises ParseError; nothing defaults to midnight.
"""
import re
from datetime import date

from timesheet_server.core.errors import ParseError

MINUTES_PER_DAY = 24 * 60

# HH:MM or HH:MM:SS, optional fractional seconds
TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2})(?:\.\d+)?)?$")


def _parse_fields(value):
    if not isinstance(value, str):
        raise ParseError(f"Time must be a string, got {type(value).__name__}")
    m = TIME_RE.match(value.strip())
    if not m:
        raise ParseError(f"Malformed time '{value}', expected HH:MM:SS")
    h, mn = int(m.group(1)), int(m.group(2))
    sec = int(m.group(3)) if m.group(3) is not None else 0
    if h > 23 or mn > 59 or sec > 59:
        raise ParseError(f"Time '{value}' out of range")
    return h, mn, sec


def to_minutes(value: str) -> int:
    """Parse HH:MM:SS to minutes since midnight in [0, 1440). Seconds are dropped."""
    h, mn, _ = _parse_fields(value)
    return h * 60 + mn


def normalize_time(value: str) -> str:
    """Normalize HH:MM or HH:MM:SS(.ffffff) to HH:MM:SS."""
    h, mn, sec = _parse_fields(value)
    return f"{h:02d}:{mn:02d}:{sec:02d}"


def parse_date(value: str) -> date:
    """Parse YYYY-MM-DD."""
    if not isinstance(value, str):
        raise ParseError(f"Date must be a string, got {type(value).__name__}")
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ParseError(f"Malformed date '{value}', expected YYYY-MM-DD")
