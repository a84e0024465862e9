"""Quantity and detail mutations for single products.

Every operation computes the next quantity and the next (bounded) history
from the latest known state, persists both in one document update, and
returns the product as it will appear once the feed catches up.

The read, compute and write steps run under ``InventoryService.lock``, which
rollbacks and work sessions share, so two mutations of the same product never
interleave. The feed is delivered before a write returns, so the next holder
of the lock always reads the committed state.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Mapping, Optional

from pydantic.alias_generators import to_camel

from stockledger.core.constants import (
    EDITABLE_DETAIL_FIELDS,
    ENTRY_DETAILS_EDIT,
    ENTRY_EDIT,
    ENTRY_RESTOCK,
    ENTRY_USAGE,
    HISTORY_LIMIT,
    INITIAL_SESSION_PREFIX,
    PRODUCT_DEACTIVATED,
    PRODUCT_RESTORED,
    PRODUCTS_COLLECTION,
)
from stockledger.core.dates import now_ms
from stockledger.core.exceptions import NotFoundError, PersistenceError, ValidationError
from stockledger.schemas.product import HistoryEntry, Product
from stockledger.schemas.user import User
from stockledger.services.document_store import DocumentStore
from stockledger.services.ledger import clamp_quantity, parse_number, prepend_entry
from stockledger.services.product_store import ProductStore

logger = logging.getLogger(__name__)

_CREATE_FIELDS = EDITABLE_DETAIL_FIELDS + ("image",)
_REQUIRED_FIELDS = ("name", "unit")


def _clean_fields(fields: Any, allowed: tuple[str, ...]) -> dict[str, str]:
    if not isinstance(fields, Mapping):
        raise ValidationError("Product fields must be an object.")
    unknown = sorted(set(fields) - set(allowed))
    if unknown:
        raise ValidationError("These fields cannot be set here: {}.".format(", ".join(unknown)))

    cleaned = {}
    for key, value in fields.items():
        text = "" if value is None else str(value).strip()
        if key in _REQUIRED_FIELDS and not text:
            raise ValidationError("{} is required.".format(key))
        cleaned[key] = text
    return cleaned


class InventoryService:
    def __init__(
        self,
        documents: DocumentStore,
        products: ProductStore,
        *,
        history_limit: int = HISTORY_LIMIT,
        unknown_user: str = "Desconocido",
        clock: Callable[[], int] = now_ms,
        lock: Optional[threading.RLock] = None,
    ):
        self._documents = documents
        self.products = products
        self._history_limit = history_limit
        self._unknown_user = unknown_user
        self._clock = clock
        self.lock = lock or threading.RLock()

    def user_name(self, acting_user: Optional[User]) -> str:
        if acting_user is not None and acting_user.name:
            return acting_user.name
        return self._unknown_user

    def _entry(self, entry_type: str, acting_user: Optional[User], **details) -> HistoryEntry:
        return HistoryEntry(
            timestamp=self._clock(),
            type=entry_type,
            user=self.user_name(acting_user),
            **details,
        )

    def _persist(self, product: Product, changes: dict, entry: Optional[HistoryEntry]) -> Product:
        fields = {to_camel(key): value for key, value in changes.items()}
        history = product.history
        if entry is not None:
            history = prepend_entry(product.history, entry, self._history_limit)
            fields["history"] = [item.to_document() for item in history]
        if not fields:
            return product

        try:
            self._documents.update_document(PRODUCTS_COLLECTION, product.id, fields)
        except NotFoundError as exc:
            raise NotFoundError(
                "Product {} no longer exists; refresh and try again.".format(product.id),
                collection=PRODUCTS_COLLECTION,
                doc_id=product.id,
            ) from exc
        except PersistenceError:
            logger.error("Error updating product %s", product.id)
            raise
        return product.model_copy(update=dict(changes, history=history))

    # ------------------------------------------------------------------
    # Quantity
    # ------------------------------------------------------------------

    def apply_delta(
        self,
        product_id: str,
        delta: Any,
        acting_user: Optional[User] = None,
        session_id: Optional[str] = None,
    ) -> Product:
        # Zero is a valid delta: it leaves the quantity alone and logs a usage entry.
        amount = parse_number(delta, field="delta", allow_negative=True)
        with self.lock:
            product = self.products.get(product_id)
            new_quantity = clamp_quantity(product.quantity + amount)
            entry = self._entry(
                ENTRY_RESTOCK if amount > 0 else ENTRY_USAGE,
                acting_user,
                amount=amount,
                previous=product.quantity,
                new=new_quantity,
                session_id=session_id,
            )
            updated = self._persist(product, {"quantity": new_quantity}, entry)
        logger.info(
            "%s %s on %s: %s -> %s (session %s)",
            entry.type, amount, product.id, product.quantity, new_quantity, session_id or "-",
            extra={"product_id": product.id, "session_id": session_id, "user": entry.user},
        )
        return updated

    def restock(self, product_id: str, amount: Any, acting_user: Optional[User] = None) -> Product:
        added = parse_number(amount, field="amount", allow_zero=False)
        return self.apply_delta(product_id, added, acting_user)

    def set_absolute(self, product_id: str, new_quantity: Any, acting_user: Optional[User] = None) -> Product:
        quantity = parse_number(new_quantity, field="quantity")
        with self.lock:
            product = self.products.get(product_id)
            entry = self._entry(ENTRY_EDIT, acting_user, previous=product.quantity, new=quantity)
            updated = self._persist(product, {"quantity": quantity}, entry)
        logger.info(
            "Quantity of %s set to %s (was %s)", product.id, quantity, product.quantity,
            extra={"product_id": product.id, "user": entry.user},
        )
        return updated

    # ------------------------------------------------------------------
    # Details and lifecycle
    # ------------------------------------------------------------------

    def edit_details(self, product_id: str, field_updates: Any, acting_user: Optional[User] = None) -> Product:
        updates = _clean_fields(field_updates, EDITABLE_DETAIL_FIELDS)
        with self.lock:
            product = self.products.get(product_id)
            changed = [
                key for key in EDITABLE_DETAIL_FIELDS if key in updates and updates[key] != getattr(product, key)
            ]
            entry = self._entry(ENTRY_DETAILS_EDIT, acting_user, changes=changed) if changed else None
            return self._persist(product, updates, entry)

    def _set_active(self, product_id: str, active: bool, acting_user: Optional[User]) -> Product:
        label = PRODUCT_RESTORED if active else PRODUCT_DEACTIVATED
        with self.lock:
            product = self.products.get(product_id)
            entry = self._entry(ENTRY_DETAILS_EDIT, acting_user, changes=[label])
            logger.info("%s product %s", "Reactivating" if active else "Deactivating", product.id)
            return self._persist(product, {"is_active": active}, entry)

    def deactivate(self, product_id: str, acting_user: Optional[User] = None) -> Product:
        return self._set_active(product_id, False, acting_user)

    def reactivate(self, product_id: str, acting_user: Optional[User] = None) -> Product:
        return self._set_active(product_id, True, acting_user)

    def purge(self, product_id: str) -> None:
        """Delete the product document for good. There is no undo."""
        with self.lock:
            if self._documents.get(PRODUCTS_COLLECTION, product_id) is None:
                raise NotFoundError(
                    "Product {} does not exist.".format(product_id),
                    collection=PRODUCTS_COLLECTION,
                    doc_id=product_id,
                )
            self._documents.delete_document(PRODUCTS_COLLECTION, product_id)
        logger.warning("Product %s permanently deleted", product_id)

    def create_product(self, fields: Any, initial_quantity: Any, acting_user: Optional[User] = None) -> str:
        values = _clean_fields(fields, _CREATE_FIELDS)
        missing = [key for key in _REQUIRED_FIELDS if key not in values]
        if missing:
            raise ValidationError("Missing fields for new product: {}".format(", ".join(missing)))
        quantity = parse_number(initial_quantity, field="initial quantity")

        timestamp = self._clock()
        seed = HistoryEntry(
            timestamp=timestamp,
            type=ENTRY_RESTOCK,
            amount=quantity,
            previous=0,
            new=quantity,
            user=self.user_name(acting_user),
            session_id="{}{}".format(INITIAL_SESSION_PREFIX, timestamp),
        )
        document = {
            "name": values["name"],
            "description": values.get("description", ""),
            "unit": values["unit"],
            "quantity": quantity,
            "isActive": True,
            "history": [seed.to_document()],
        }
        if values.get("image"):
            document["image"] = values["image"]

        product_id = self._documents.create_document(PRODUCTS_COLLECTION, document)
        logger.info("Created product %s (%s) with %s %s", product_id, values["name"], quantity, values["unit"])
        return product_id


__all__ = ["InventoryService"]
