from datetime import datetime, time, timezone
from typing import Optional


format_norm = "%H:%M"


def parse_time(raw_time: str) -> time:
    """
    Parse a time string in either 24-hour format (HH:MM) or 12-hour format (HH:MMAM/PM).

    Args:
        raw_time: Time string in format "06:32" or "6:32AM"

    Returns:
        datetime.time object
    """
    try:
        return datetime.strptime(raw_time, format_norm).time()
    except ValueError:
        try:
            return datetime.strptime(raw_time, "%I:%M%p").time()
        except ValueError:
            raise ValueError(f"Time '{raw_time}' does not match expected formats: 'HH:MM' or 'HH:MMAM/PM'")


def try_parse_time(raw_time: Optional[str]) -> Optional[time]:
    if not raw_time:
        return None
    try:
        return parse_time(raw_time)
    except ValueError:
        return None


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp as sent by the backend ("Z" suffix allowed).
    Naive values are read as UTC. Unparseable values give None.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def timestamp_sort_key(value: Optional[str]) -> float:
    parsed = parse_timestamp(value)
    return parsed.timestamp() if parsed else 0.0
