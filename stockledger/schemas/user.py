from typing import Optional

from pydantic import BaseModel

from stockledger.core.constants import ROLE_USER
from stockledger.schemas.base import DocumentModel


class User(DocumentModel):
    id: Optional[str] = None
    username: str
    name: str
    role: str = ROLE_USER
    password: Optional[str] = None

    def public(self) -> "User":
        return self.model_copy(update={"password": None})


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


__all__ = ["LoginRequest", "User"]
