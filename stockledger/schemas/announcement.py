from typing import Optional

from pydantic import BaseModel

from stockledger.schemas.base import DocumentModel, RequestModel


class Announcement(DocumentModel):
    id: Optional[str] = None
    message: str
    is_active: bool = True
    timestamp: int


class AnnouncementCreate(BaseModel):
    message: str = ""


class AnnouncementUpdate(RequestModel):
    message: Optional[str] = None
    is_active: Optional[bool] = None


class SeenRequest(BaseModel):
    ids: list[str]


__all__ = ["Announcement", "AnnouncementCreate", "AnnouncementUpdate", "SeenRequest"]
