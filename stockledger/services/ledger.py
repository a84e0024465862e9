"""Bounded, newest-first history ledger and quantity arithmetic."""

import math
import secrets
from typing import Any, Iterable, Optional

from stockledger.core.constants import HISTORY_LIMIT, JOB_SESSION_PREFIX
from stockledger.core.dates import now_ms
from stockledger.core.exceptions import ValidationError
from stockledger.schemas.base import Quantity
from stockledger.schemas.product import HistoryEntry


def normalize_number(value: Quantity) -> Quantity:
    if isinstance(value, float):
        value = round(value, 6)
        if value.is_integer():
            return int(value)
    return value


def clamp_quantity(value: Quantity) -> Quantity:
    return normalize_number(max(0, value))


def parse_number(
    raw: Any,
    *,
    field: str = "quantity",
    allow_zero: bool = True,
    allow_negative: bool = False,
) -> Quantity:
    """Parse user input (number or text) into an int or float."""
    if raw is None or isinstance(raw, bool):
        raise ValidationError("{} is required.".format(field))

    if isinstance(raw, (int, float)):
        value = raw
    else:
        text = str(raw).strip().replace(",", ".")
        if not text:
            raise ValidationError("{} is required.".format(field))
        try:
            value = int(text)
        except ValueError:
            try:
                value = float(text)
            except ValueError:
                raise ValidationError("{} must be a number, got {!r}.".format(field, raw)) from None

    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError("{} must be a finite number.".format(field))
    if value < 0 and not allow_negative:
        raise ValidationError("{} cannot be negative.".format(field))
    if value == 0 and not allow_zero:
        raise ValidationError("{} must be different from zero.".format(field))
    return normalize_number(value)


def format_quantity(value: Optional[Quantity]) -> str:
    if value is None:
        return ""
    value = normalize_number(value)
    return str(value)


def prepend_entry(
    history: Iterable[HistoryEntry],
    entry: HistoryEntry,
    limit: int = HISTORY_LIMIT,
) -> list[HistoryEntry]:
    """New entry first, then the existing ledger, cut to ``limit`` entries."""
    return [entry, *history][:limit]


def strip_session(history: Iterable[HistoryEntry], session_id: str) -> list[HistoryEntry]:
    return [entry for entry in history if entry.session_id != session_id]


def new_session_id(prefix: str = JOB_SESSION_PREFIX, timestamp: Optional[int] = None) -> str:
    if timestamp is None:
        timestamp = now_ms()
    return "{}{}_{}".format(prefix, timestamp, secrets.token_hex(5))


__all__ = [
    "clamp_quantity",
    "format_quantity",
    "new_session_id",
    "normalize_number",
    "parse_number",
    "prepend_entry",
    "strip_session",
]
