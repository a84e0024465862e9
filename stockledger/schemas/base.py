from typing import Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

Quantity = Union[int, float]


class RequestModel(BaseModel):
    """Request body accepting camelCase or snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DocumentModel(BaseModel):
    """Model persisted as a camelCase document."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"id"})


__all__ = ["DocumentModel", "Quantity", "RequestModel"]
