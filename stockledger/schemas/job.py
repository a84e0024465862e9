from typing import Literal, Optional

from pydantic import Field

from stockledger.schemas.base import DocumentModel, Quantity, RequestModel
from stockledger.schemas.product import RawNumber


class JobDetail(DocumentModel):
    product_id: str
    delta: Quantity
    product_name: Optional[str] = None
    unit: Optional[str] = None
    previous: Optional[Quantity] = None
    new: Optional[Quantity] = None


class Job(DocumentModel):
    id: Optional[str] = None
    timestamp: int
    user: str
    role: str
    session_id: str
    summary: list[str] = Field(default_factory=list)
    details: list[JobDetail] = Field(default_factory=list)


class WorkLogItem(DocumentModel):
    """One confirmed change inside a work session (kept in memory)."""

    product_id: str
    product_name: str
    unit: str = ""
    action: Literal["used", "restocked"]
    amount: Quantity
    delta: Quantity
    previous_qty: Quantity
    new_qty: Quantity


class UsageRequest(RequestModel):
    product_id: str
    amount: RawNumber = None
    restock_amount: RawNumber = None


class RestockRequest(RequestModel):
    product_id: str
    amount: RawNumber = None


__all__ = ["Job", "JobDetail", "RestockRequest", "UsageRequest", "WorkLogItem"]
