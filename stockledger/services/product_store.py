from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Callable, Optional, Union

from pydantic import ValidationError as SchemaValidationError

from stockledger.core.constants import (
    DEFAULT_UNIT,
    PRODUCTS_COLLECTION,
    USERS_COLLECTION,
)
from stockledger.core.exceptions import FormatError, NotFoundError, PersistenceError
from stockledger.schemas.product import Product
from stockledger.services.document_store import DocumentStore, Snapshot

logger = logging.getLogger(__name__)


def load_seed_file(path: Union[str, Path]) -> list[dict]:
    path = Path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise FormatError("{} is not valid JSON: {}".format(path, exc)) from exc
    if not isinstance(payload, list):
        raise FormatError("{} must contain a JSON array.".format(path))
    return payload


def seed_product_document(item: dict) -> dict:
    """Fill the defaults a freshly seeded product needs; the store assigns the id.

    Only the known product fields are copied; anything else in the seed item is dropped.
    """
    document = {
        "name": item.get("name", ""),
        "description": item.get("description") or "",
        "quantity": item.get("quantity") or 0,
        "unit": item.get("unit") or DEFAULT_UNIT,
        "isActive": True,
        "history": [],
    }
    if item.get("image"):
        document["image"] = item["image"]
    return document


class ProductStore:
    """In-memory reflection of the products collection.

    The list is replaced wholesale on every snapshot from the document store;
    nothing else writes to it.
    """

    def __init__(
        self,
        documents: DocumentStore,
        *,
        seed_products: Optional[list[dict]] = None,
        seed_users: Optional[list[dict]] = None,
    ):
        self._documents = documents
        self._seed_products = list(seed_products or [])
        self._seed_users = list(seed_users or [])
        self._products: list[Product] = []
        self._lock = threading.RLock()
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._loading = True
        self._seeded = False
        self._has_seen_products = False
        self.last_error: Optional[Exception] = None

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def started(self) -> bool:
        return self._unsubscribe is not None

    def start(self) -> None:
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self._documents.subscribe_collection(
            PRODUCTS_COLLECTION, self._on_snapshot, self._on_error
        )
        self.seed_users_if_needed()
        self._loading = False
        with self._lock:
            is_empty = not self._products
        if is_empty and self._should_seed():
            self._seed_products_once()

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # ------------------------------------------------------------------
    # Feed
    # ------------------------------------------------------------------

    def _on_snapshot(self, snapshot: Snapshot) -> None:
        products = []
        for document in snapshot:
            try:
                products.append(Product.from_document(document))
            except SchemaValidationError as exc:
                logger.warning("Ignoring malformed product %s: %s", document.get("id"), exc.errors()[0]["msg"])

        if not products and not self._loading and self._should_seed():
            self._seed_products_once()
            return

        with self._lock:
            self._products = products
            if products:
                self._has_seen_products = True
        self.last_error = None

    def _on_error(self, exc: Exception) -> None:
        logger.error("Error fetching products: %s", exc)
        self.last_error = exc

    def _should_seed(self) -> bool:
        return bool(self._seed_products) and not self._seeded and not self._has_seen_products

    def _seed_products_once(self) -> None:
        self._seeded = True
        logger.info("Seeding database with %d default products", len(self._seed_products))
        try:
            batch = self._documents.batch()
            for item in self._seed_products:
                batch.create(PRODUCTS_COLLECTION, seed_product_document(item))
            batch.commit()
        except PersistenceError:
            self._seeded = False
            raise

    def seed_users_if_needed(self) -> int:
        if not self._seed_users:
            return 0
        if self._documents.get_all(USERS_COLLECTION):
            return 0
        logger.info("Seeding %d users", len(self._seed_users))
        batch = self._documents.batch()
        for user in self._seed_users:
            batch.create(USERS_COLLECTION, user)
        batch.commit()
        return len(self._seed_users)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def products(self) -> list[Product]:
        with self._lock:
            return list(self._products)

    def active_products(self) -> list[Product]:
        return [product for product in self.products if product.is_active]

    def inactive_products(self) -> list[Product]:
        inactive = [product for product in self.products if not product.is_active]
        return sorted(inactive, key=lambda product: product.name.casefold())

    def find(self, product_id: str) -> Optional[Product]:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def get(self, product_id: str) -> Product:
        product = self.find(product_id)
        if product is None:
            raise NotFoundError(
                "Product {} is not in the current inventory; refresh and try again.".format(product_id),
                collection=PRODUCTS_COLLECTION,
                doc_id=product_id,
            )
        return product


__all__ = ["ProductStore", "load_seed_file", "seed_product_document"]
