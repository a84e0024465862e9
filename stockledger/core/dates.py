import time
from datetime import date, datetime, timezone
from typing import Optional, Union

from stockledger.core.exceptions import ValidationError


def now_ms() -> int:
    return int(time.time() * 1000)


def ms_to_datetime(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def date_key(value: int) -> str:
    """UTC calendar day (YYYY-MM-DD) of a millisecond timestamp."""
    return ms_to_datetime(value).date().isoformat()


def parse_day(value: Union[str, date, None]) -> Optional[str]:
    """Day filter as a ``date_key``; ``None`` or blank text means no filter."""
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text).isoformat()
    except ValueError:
        raise ValidationError("Date must be YYYY-MM-DD, got {!r}.".format(value)) from None


__all__ = ["date_key", "ms_to_datetime", "now_ms", "parse_day"]
