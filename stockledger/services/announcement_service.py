from __future__ import annotations

import json
import logging
from typing import Callable, Iterable, Optional

from stockledger.core.constants import ANNOUNCEMENTS_COLLECTION, ROLE_ADMIN, SEEN_ANNOUNCEMENTS_KEY
from stockledger.core.dates import now_ms
from stockledger.core.exceptions import NotFoundError, ValidationError
from stockledger.core.session_store import SessionStore
from stockledger.schemas.announcement import Announcement
from stockledger.schemas.user import User
from stockledger.services.document_store import DocumentStore

logger = logging.getLogger(__name__)


class AnnouncementService:
    def __init__(self, documents: DocumentStore, *, clock: Callable[[], int] = now_ms):
        self._documents = documents
        self._clock = clock

    def _require(self, announcement_id: str) -> Announcement:
        document = self._documents.get(ANNOUNCEMENTS_COLLECTION, announcement_id)
        if document is None:
            raise NotFoundError(
                "Announcement {} does not exist.".format(announcement_id),
                collection=ANNOUNCEMENTS_COLLECTION,
                doc_id=announcement_id,
            )
        return Announcement.model_validate(document)

    @staticmethod
    def _clean_message(message: Optional[str]) -> str:
        text = (message or "").strip()
        if not text:
            raise ValidationError("Announcement message cannot be empty.")
        return text

    def list_all(self) -> list[Announcement]:
        items = [Announcement.model_validate(doc) for doc in self._documents.get_all(ANNOUNCEMENTS_COLLECTION)]
        return sorted(items, key=lambda item: item.timestamp, reverse=True)

    def list_active(self) -> list[Announcement]:
        return [item for item in self.list_all() if item.is_active]

    def add(self, message: str) -> Announcement:
        announcement = Announcement(message=self._clean_message(message), is_active=True, timestamp=self._clock())
        announcement_id = self._documents.create_document(ANNOUNCEMENTS_COLLECTION, announcement.to_document())
        logger.info("Announcement %s published", announcement_id)
        return announcement.model_copy(update={"id": announcement_id})

    def update(self, announcement_id: str, *, message: Optional[str] = None, is_active: Optional[bool] = None) -> Announcement:
        current = self._require(announcement_id)
        changes = {}
        if message is not None:
            changes["message"] = self._clean_message(message)
        if is_active is not None:
            changes["is_active"] = bool(is_active)
        if not changes:
            return current

        self._documents.update_document(
            ANNOUNCEMENTS_COLLECTION,
            announcement_id,
            {"isActive" if key == "is_active" else key: value for key, value in changes.items()},
        )
        return current.model_copy(update=changes)

    def delete(self, announcement_id: str) -> None:
        self._require(announcement_id)
        self._documents.delete_document(ANNOUNCEMENTS_COLLECTION, announcement_id)
        logger.info("Announcement %s deleted", announcement_id)

    # ------------------------------------------------------------------
    # Seen tracking
    # ------------------------------------------------------------------

    @staticmethod
    def seen_ids(store: SessionStore) -> list[str]:
        raw = store.get_item(SEEN_ANNOUNCEMENTS_KEY)
        if not raw:
            return []
        try:
            ids = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding unreadable list of seen announcements")
            return []
        return [str(item) for item in ids] if isinstance(ids, list) else []

    def mark_seen(self, store: SessionStore, ids: Iterable[str]) -> list[str]:
        seen = self.seen_ids(store)
        for announcement_id in ids:
            if announcement_id not in seen:
                seen.append(announcement_id)
        store.set_item(SEEN_ANNOUNCEMENTS_KEY, json.dumps(seen))
        return seen

    def unseen_for(self, user: Optional[User], store: SessionStore) -> list[Announcement]:
        """Active announcements this non-admin user has not been shown yet."""
        if user is None or user.role == ROLE_ADMIN:
            return []
        seen = set(self.seen_ids(store))
        return [item for item in self.list_active() if item.id not in seen]


__all__ = ["AnnouncementService"]
