from typing import Optional

from fastapi import APIRouter, Depends, Query

from stockledger.container import Services
from stockledger.dependencies import get_services, require_login
from stockledger.schemas.user import User
from stockledger.services.history_service import describe_entry, filter_feed, flatten_history, history_dates

router = APIRouter(prefix="/history", tags=["History"])


@router.get("")
def history_feed(
    search: Optional[str] = Query(None, description="Case-insensitive product name filter"),
    day: Optional[str] = Query(None, alias="date", description="YYYY-MM-DD (UTC)"),
    services: Services = Depends(get_services),
    _user: User = Depends(require_login),
):
    feed = filter_feed(flatten_history(services.products.products), search=search, day=day)
    return [
        dict(item.model_dump(by_alias=True, exclude_none=True), description=describe_entry(item, item.unit))
        for item in feed
    ]


@router.get("/dates")
def history_feed_dates(
    services: Services = Depends(get_services),
    _user: User = Depends(require_login),
):
    return history_dates(flatten_history(services.products.products))
