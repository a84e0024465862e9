"""Error taxonomy shared by every inventory operation.

Core operations either succeed or raise one of these; the HTTP layer and the
CLI are the only places that turn them into user-facing messages.
"""

from typing import Iterable, Optional


class InventoryError(Exception):
    """Base class for inventory failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(InventoryError):
    """Malformed or out-of-range user input. Nothing was written."""

    status_code = 400


class NotFoundError(InventoryError):
    status_code = 404

    def __init__(self, message: str, *, collection: Optional[str] = None, doc_id: Optional[str] = None):
        super().__init__(message)
        self.collection = collection
        self.doc_id = doc_id


class PersistenceError(InventoryError):
    """The store rejected a write or a read. Nothing was applied."""

    status_code = 503


class BatchLimitExceededError(PersistenceError):
    def __init__(self, limit: int):
        super().__init__("Batch exceeds the store limit of {} operations.".format(limit))
        self.limit = limit


class FormatError(InventoryError):
    """Snapshot input is not an array of products."""

    status_code = 400


class RestoreFailedError(InventoryError):
    """Restore stopped part way; the collection may be partially modified."""

    status_code = 500

    def __init__(self, message: str, *, phase: str, deleted: int = 0, inserted: int = 0):
        super().__init__(message)
        self.phase = phase
        self.deleted = deleted
        self.inserted = inserted


class AuthenticationError(InventoryError):
    status_code = 401


class PermissionDeniedError(InventoryError):
    status_code = 403


class PartialRollbackWarning(UserWarning):
    """Rollback finished but some referenced products no longer exist."""

    def __init__(self, skipped_product_ids: Iterable[str]):
        self.skipped_product_ids = list(skipped_product_ids)
        super().__init__(
            "Rollback skipped {} missing product(s): {}".format(
                len(self.skipped_product_ids), ", ".join(self.skipped_product_ids)
            )
        )


__all__ = [
    "AuthenticationError",
    "BatchLimitExceededError",
    "FormatError",
    "InventoryError",
    "NotFoundError",
    "PartialRollbackWarning",
    "PermissionDeniedError",
    "PersistenceError",
    "RestoreFailedError",
    "ValidationError",
]
