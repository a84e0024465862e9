"""Credential matching against the users collection."""

from __future__ import annotations

import hmac
import json
import logging
from typing import Optional

from pydantic import ValidationError as SchemaValidationError

from stockledger.core.constants import ROLE_ADMIN, SESSION_USER_KEY, USERS_COLLECTION
from stockledger.core.exceptions import AuthenticationError, PermissionDeniedError
from stockledger.core.session_store import SessionStore
from stockledger.schemas.user import User
from stockledger.services.document_store import DocumentStore

logger = logging.getLogger(__name__)


def _matches(expected, provided: str) -> bool:
    if not isinstance(expected, str):
        return False
    return hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))


class AuthService:
    def __init__(self, documents: DocumentStore):
        self._documents = documents

    def login(self, username: str, password: str, store: SessionStore) -> User:
        username = (username or "").strip()
        if not username or not password:
            raise AuthenticationError("Username and password are required.")

        for document in self._documents.get_where(USERS_COLLECTION, "username", "==", username):
            if _matches(document.get("password"), password):
                user = User.model_validate(document).public()
                store.set_item(SESSION_USER_KEY, user.model_dump_json(by_alias=True, exclude_none=True))
                logger.info("User %s logged in", username)
                return user

        logger.warning("Failed login for %s", username)
        raise AuthenticationError("Invalid username or password.")

    def logout(self, store: SessionStore) -> None:
        store.remove_item(SESSION_USER_KEY)

    def current_user(self, store: SessionStore) -> Optional[User]:
        raw = store.get_item(SESSION_USER_KEY)
        if not raw:
            return None
        try:
            return User.model_validate(json.loads(raw)).public()
        except (json.JSONDecodeError, SchemaValidationError):
            logger.warning("Discarding unreadable saved session")
            store.remove_item(SESSION_USER_KEY)
            return None


def require_user(user: Optional[User]) -> User:
    if user is None:
        raise AuthenticationError("Log in first.")
    return user


def require_admin(user: Optional[User]) -> User:
    user = require_user(user)
    if user.role != ROLE_ADMIN:
        raise PermissionDeniedError("Only administrators can do this.")
    return user


__all__ = ["AuthService", "require_admin", "require_user"]
