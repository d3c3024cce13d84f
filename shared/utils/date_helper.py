from datetime import date, datetime, time, timezone
from typing import Any, Optional


def utc_now() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 date or datetime into naive UTC.

    Returns None for empty input and raises ValueError for anything that is
    not a recognisable date.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        return to_naive_utc(value)

    if isinstance(value, date):
        return datetime.combine(value, time.min)

    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return to_naive_utc(datetime.fromisoformat(text))


def start_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.min)


def start_of_month(value: datetime, offset: int = 0) -> datetime:
    month_index = value.year * 12 + (value.month - 1) + offset
    return datetime(month_index // 12, month_index % 12 + 1, 1)
