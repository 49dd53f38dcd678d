"""Datetime helpers. All persisted timestamps are naive UTC."""
from datetime import date, datetime, timezone
from typing import Optional, Union


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC; naive values pass through."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def as_date(value: Union[None, str, date, datetime]) -> Optional[date]:
    """Reduce a datetime, date or ISO string to its calendar date."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_naive_utc(value).date()
    if isinstance(value, date):
        return value
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    return to_naive_utc(parsed).date()
