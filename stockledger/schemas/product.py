from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from stockledger.schemas.base import DocumentModel, Quantity

EntryType = Literal["restock", "usage", "edit", "details_edit"]
RawNumber = Union[int, float, str, None]


class HistoryEntry(DocumentModel):
    model_config = ConfigDict(frozen=True)

    timestamp: int
    type: EntryType
    amount: Optional[Quantity] = None
    previous: Optional[Quantity] = None
    new: Optional[Quantity] = None
    changes: Optional[list[str]] = None
    user: Optional[str] = None
    session_id: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _type_from_amount(cls, data: Any):
        # Early documents stored bare {timestamp, amount, user} entries.
        if isinstance(data, dict) and not data.get("type"):
            amount = data.get("amount")
            if isinstance(amount, (int, float)) and not isinstance(amount, bool):
                data = dict(data)
                data["type"] = "restock" if amount > 0 else "usage"
        return data


class Product(DocumentModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    unit: str = ""
    image: Optional[str] = None
    quantity: Quantity = 0
    is_active: bool = True
    history: list[HistoryEntry] = Field(default_factory=list)

    @field_validator("quantity")
    @classmethod
    def _non_negative(cls, value):
        if value < 0:
            raise ValueError("quantity cannot be negative")
        return value

    @classmethod
    def from_document(cls, document: dict) -> "Product":
        return cls.model_validate(document)


class FeedEntry(HistoryEntry):
    """History entry annotated with the product it belongs to."""

    product_id: str
    product_name: str
    unit: str = ""


class ProductCreate(BaseModel):
    name: str = ""
    description: str = ""
    unit: str = ""
    image: Optional[str] = None
    quantity: RawNumber = None


class AmountRequest(BaseModel):
    amount: RawNumber = None


__all__ = [
    "AmountRequest",
    "EntryType",
    "FeedEntry",
    "HistoryEntry",
    "Product",
    "ProductCreate",
    "RawNumber",
]
