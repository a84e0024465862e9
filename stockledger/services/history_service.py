"""Global activity feed built from every product's ledger."""

from datetime import date
from typing import Iterable, Optional, Union

from stockledger.core.constants import ENTRY_DETAILS_EDIT, ENTRY_EDIT
from stockledger.core.dates import date_key, parse_day
from stockledger.schemas.product import FeedEntry, HistoryEntry, Product
from stockledger.services.ledger import format_quantity


def flatten_history(products: Iterable[Product]) -> list[FeedEntry]:
    feed = []
    for product in products:
        for entry in product.history:
            feed.append(
                FeedEntry(
                    **entry.model_dump(),
                    product_id=product.id,
                    product_name=product.name,
                    unit=product.unit,
                )
            )
    feed.sort(key=lambda item: item.timestamp, reverse=True)
    return feed


def filter_feed(
    feed: Iterable[FeedEntry],
    *,
    search: Optional[str] = None,
    day: Union[str, date, None] = None,
) -> list[FeedEntry]:
    needle = (search or "").strip().casefold()
    day_key = parse_day(day)
    return [
        item
        for item in feed
        if needle in item.product_name.casefold()
        and (day_key is None or date_key(item.timestamp) == day_key)
    ]


def history_dates(feed: Iterable[FeedEntry]) -> list[str]:
    return sorted({date_key(item.timestamp) for item in feed})


def describe_entry(entry: HistoryEntry, unit: str = "") -> str:
    if entry.type == ENTRY_DETAILS_EDIT:
        return "Modificado: {}".format(", ".join(entry.changes) if entry.changes else "Varios")
    if entry.type == ENTRY_EDIT:
        return "Ajuste: {} -> {}".format(format_quantity(entry.previous), format_quantity(entry.new))

    amount = entry.amount or 0
    verb = "Agregaste" if amount > 0 else "Usaste"
    return " ".join(part for part in (verb, format_quantity(abs(amount)), unit) if part)


__all__ = ["describe_entry", "filter_feed", "flatten_history", "history_dates"]
