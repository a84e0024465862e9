"""Product snapshots: export, destructive restore, seeding and full reset.

Restore and reset work in chunked batches and are not atomic as a whole: a
failure part way leaves the collection partially modified, and the error
says how far it got.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from pydantic import ValidationError as SchemaValidationError

from stockledger.core.constants import (
    BACKUP_FILENAME_TEMPLATE,
    DEFAULT_CHUNK_SIZE,
    JOBS_COLLECTION,
    PRODUCTS_COLLECTION,
)
from stockledger.core.exceptions import FormatError, PersistenceError, RestoreFailedError
from stockledger.schemas.product import Product
from stockledger.services.document_store import DocumentStore, chunked
from stockledger.services.product_store import seed_product_document

logger = logging.getLogger(__name__)


@dataclass
class RestoreResult:
    deleted: int = 0
    inserted: int = 0

    def as_dict(self) -> dict:
        return {"deleted": self.deleted, "inserted": self.inserted}


@dataclass
class ResetResult:
    products_reset: int = 0
    jobs_deleted: int = 0

    def as_dict(self) -> dict:
        return {"productsReset": self.products_reset, "jobsDeleted": self.jobs_deleted}


def snapshot_filename(day: Optional[date] = None) -> str:
    day = day or date.today()
    return BACKUP_FILENAME_TEMPLATE.format(date=day.isoformat())


def parse_snapshot(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise FormatError("Backup file is not valid JSON: {}".format(exc)) from exc


def validate_snapshot(snapshot: Any) -> list[dict]:
    """Check every item before anything is deleted."""
    if not isinstance(snapshot, list):
        raise FormatError("Backup must be a JSON array of products.")

    seen_ids = set()
    for index, item in enumerate(snapshot):
        if not isinstance(item, dict):
            raise FormatError("Item {} of the backup is not a product object.".format(index))
        try:
            Product.model_validate(dict(item, id=str(item.get("id") or "new")))
        except SchemaValidationError as exc:
            error = exc.errors()[0]
            location = ".".join(str(part) for part in error["loc"])
            raise FormatError("Item {} of the backup is invalid ({}: {}).".format(index, location, error["msg"])) from exc

        product_id = item.get("id")
        if product_id:
            if str(product_id) in seen_ids:
                raise FormatError("Product id {} appears more than once in the backup.".format(product_id))
            seen_ids.add(str(product_id))
    return snapshot


class BackupService:
    def __init__(self, documents: DocumentStore, *, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size < 1 or chunk_size > documents.max_batch_operations:
            raise ValueError(
                "chunk_size must be between 1 and the store batch limit ({})".format(documents.max_batch_operations)
            )
        self._documents = documents
        self.chunk_size = chunk_size

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_snapshot(self) -> list[dict]:
        return self._documents.get_all(PRODUCTS_COLLECTION)

    def export_json(self) -> str:
        return json.dumps(self.export_snapshot(), indent=2, ensure_ascii=False)

    # ------------------------------------------------------------------
    # Restore
    # ------------------------------------------------------------------

    def restore_json(self, text: str) -> RestoreResult:
        return self.restore(parse_snapshot(text))

    def restore(self, snapshot: Any) -> RestoreResult:
        items = validate_snapshot(snapshot)
        result = RestoreResult()
        existing = self._documents.get_all(PRODUCTS_COLLECTION)
        logger.warning("Restoring %d product(s); deleting %d existing", len(items), len(existing))

        phase = "delete"
        try:
            for chunk in chunked(existing, self.chunk_size):
                batch = self._documents.batch()
                for document in chunk:
                    batch.delete(PRODUCTS_COLLECTION, document["id"])
                batch.commit()
                result.deleted += len(chunk)

            phase = "insert"
            for chunk in chunked(items, self.chunk_size):
                batch = self._documents.batch()
                for item in chunk:
                    if item.get("id"):
                        batch.set(PRODUCTS_COLLECTION, str(item["id"]), item)
                    else:
                        batch.create(PRODUCTS_COLLECTION, item)
                batch.commit()
                result.inserted += len(chunk)
        except PersistenceError as exc:
            logger.error("Restore failed during %s phase after %s", phase, result.as_dict())
            raise RestoreFailedError(
                "Restore stopped during the {} phase ({} deleted, {} inserted); "
                "the inventory may be incomplete.".format(phase, result.deleted, result.inserted),
                phase=phase,
                deleted=result.deleted,
                inserted=result.inserted,
            ) from exc

        logger.info("Restore finished: %s", result.as_dict())
        return result

    def replace_with_seed(self, items: Any) -> RestoreResult:
        """Swap the whole collection for fresh products with empty histories."""
        if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
            raise FormatError("Seed data must be a JSON array of product objects.")
        return self.restore([seed_product_document(item) for item in items])

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def reset_inventory(self) -> ResetResult:
        """Zero every quantity, clear every history and delete every job."""
        result = ResetResult()
        products = self._documents.get_all(PRODUCTS_COLLECTION)
        jobs = self._documents.get_all(JOBS_COLLECTION)
        logger.warning("Resetting inventory: %d product(s), %d job(s)", len(products), len(jobs))

        for chunk in chunked(products, self.chunk_size):
            batch = self._documents.batch()
            for document in chunk:
                batch.update(PRODUCTS_COLLECTION, document["id"], {"quantity": 0, "history": []})
            batch.commit()
            result.products_reset += len(chunk)

        for chunk in chunked(jobs, self.chunk_size):
            batch = self._documents.batch()
            for document in chunk:
                batch.delete(JOBS_COLLECTION, document["id"])
            batch.commit()
            result.jobs_deleted += len(chunk)

        logger.info("Inventory reset: %s", result.as_dict())
        return result


__all__ = [
    "BackupService",
    "ResetResult",
    "RestoreResult",
    "parse_snapshot",
    "snapshot_filename",
    "validate_snapshot",
]
