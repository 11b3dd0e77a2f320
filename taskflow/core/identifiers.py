"""Record identifiers and timestamps."""

import math
import uuid
from datetime import UTC, datetime

from dateutil import parser as date_parser


def generate_id() -> str:
    """Return a new unique record id."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def to_iso(value: datetime) -> str:
    """Format a datetime as ISO-8601 with a trailing Z."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def now_iso() -> str:
    """Current UTC timestamp in ISO-8601 form."""
    return to_iso(utc_now())


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (Python's round() is banker's)."""
    return math.floor(value + 0.5)


def percent(part: int, whole: int) -> int:
    """Integer percentage of part over whole, 0 when whole is 0."""
    if whole <= 0:
        return 0
    return round_half_up(100 * part / whole)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-ish date string leniently; naive values are taken as UTC.

    Raises:
        ValueError: If the string is not a recognizable date
    """
    try:
        parsed = date_parser.parse(value)
    except OverflowError as e:
        raise ValueError(f"Date out of range: {value}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
