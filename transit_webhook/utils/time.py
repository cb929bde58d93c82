import math
from datetime import datetime, timezone
from typing import Optional

from transit_webhook.errors import ErrorKind, RouteError


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp that carries an explicit UTC offset."""
    text = (value or "").strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError as e:
        raise RouteError(ErrorKind.INVALID_TIME, f"unparsable arrival time {value!r}") from e
    if dt.tzinfo is None or dt.utcoffset() is None:
        raise RouteError(ErrorKind.INVALID_TIME, f"arrival time {value!r} has no timezone")
    return dt


def to_epoch_seconds(arrival_time_iso: Optional[str]) -> int:
    """
    Convert an arrival time to whole epoch seconds, truncating fractions.
    None stands for "arrive as soon as possible" and resolves to the current instant.
    """
    if arrival_time_iso is None:
        dt = datetime.now(timezone.utc)
    else:
        dt = parse_iso_datetime(arrival_time_iso)
    return math.floor(dt.timestamp())
