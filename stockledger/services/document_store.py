"""Document collections on top of SQLAlchemy.

This is the remote store the rest of the package talks to: named collections
of JSON documents keyed by an opaque id, change subscriptions per collection,
and atomic write batches with a bounded number of operations per commit.
"""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from stockledger.core.constants import DEFAULT_MAX_BATCH_OPERATIONS
from stockledger.core.exceptions import BatchLimitExceededError, NotFoundError, PersistenceError
from stockledger.models.document import Document

logger = logging.getLogger(__name__)

Snapshot = list[dict]
OnChange = Callable[[Snapshot], None]
OnError = Callable[[Exception], None]

OP_SET = "set"
OP_CREATE = "create"
OP_UPDATE = "update"
OP_DELETE = "delete"


def _compare(op: str, left: Any, right: Any) -> bool:
    try:
        if op == "==":
            return left == right
        if op == "!=":
            return left != right
        if op == "<":
            return left < right
        if op == "<=":
            return left <= right
        if op == ">":
            return left > right
        if op == ">=":
            return left >= right
        if op == "in":
            return left in right
        if op == "array-contains":
            return isinstance(left, list) and right in left
    except TypeError:
        return False
    raise ValueError("Unsupported query operator: {}".format(op))


def new_document_id() -> str:
    return uuid.uuid4().hex[:20]


def chunked(items: Iterable, size: int) -> Iterator[list]:
    chunk = []
    for item in items:
        chunk.append(item)
        if len(chunk) >= size:
            yield chunk
            chunk = []
    if chunk:
        yield chunk


def _payload(fields: dict) -> dict:
    # The document id is the key, never part of the stored body.
    return {key: copy.deepcopy(value) for key, value in fields.items() if key != "id"}


@dataclass(eq=False)
class _Listener:
    on_change: OnChange
    on_error: Optional[OnError]


@dataclass(frozen=True)
class WriteOperation:
    kind: str
    collection: str
    doc_id: Optional[str]
    fields: Optional[dict] = None


class WriteBatch:
    """Operations committed together in a single transaction."""

    def __init__(self, store: "DocumentStore", max_operations: int):
        self._store = store
        self._max_operations = max_operations
        self._operations: list[WriteOperation] = []
        self._committed = False

    def __len__(self) -> int:
        return len(self._operations)

    def _add(self, operation: WriteOperation) -> None:
        if self._committed:
            raise PersistenceError("Batch has already been committed.")
        if len(self._operations) >= self._max_operations:
            raise BatchLimitExceededError(self._max_operations)
        self._operations.append(operation)

    def stage(self, operation: WriteOperation) -> Optional[str]:
        if operation.kind == OP_CREATE:
            return self.create(operation.collection, operation.fields or {})
        self._add(operation)
        return operation.doc_id

    def set(self, collection: str, doc_id: str, fields: dict) -> "WriteBatch":
        self._add(WriteOperation(OP_SET, collection, str(doc_id), _payload(fields)))
        return self

    def create(self, collection: str, fields: dict) -> str:
        doc_id = new_document_id()
        self.set(collection, doc_id, fields)
        return doc_id

    def update(self, collection: str, doc_id: str, fields: dict) -> "WriteBatch":
        self._add(WriteOperation(OP_UPDATE, collection, str(doc_id), _payload(fields)))
        return self

    def delete(self, collection: str, doc_id: str) -> "WriteBatch":
        self._add(WriteOperation(OP_DELETE, collection, str(doc_id)))
        return self

    def commit(self) -> None:
        if self._committed:
            raise PersistenceError("Batch has already been committed.")
        self._store.apply(self._operations)
        self._committed = True


class DocumentStore:
    def __init__(self, session_factory: sessionmaker, *, max_batch_operations: int = DEFAULT_MAX_BATCH_OPERATIONS):
        if max_batch_operations < 1:
            raise ValueError("max_batch_operations must be positive")
        self._session_factory = session_factory
        self.max_batch_operations = max_batch_operations
        self._listeners: dict[str, list[_Listener]] = {}
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    def _to_dict(row: Document) -> dict:
        document = copy.deepcopy(row.data or {})
        document["id"] = row.doc_id
        return document

    @staticmethod
    def _find(session: Session, collection: str, doc_id: str) -> Optional[Document]:
        return session.execute(
            select(Document).where(Document.collection == collection, Document.doc_id == doc_id)
        ).scalar_one_or_none()

    def get_all(self, collection: str) -> Snapshot:
        try:
            with self._session_factory() as session:
                rows = session.execute(
                    select(Document).where(Document.collection == collection).order_by(Document.seq)
                ).scalars().all()
                return [self._to_dict(row) for row in rows]
        except SQLAlchemyError as exc:
            logger.error("Error reading collection %s: %s", collection, exc)
            raise PersistenceError("Unable to read collection {}.".format(collection)) from exc

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        try:
            with self._session_factory() as session:
                row = self._find(session, collection, str(doc_id))
                return self._to_dict(row) if row is not None else None
        except SQLAlchemyError as exc:
            logger.error("Error reading %s/%s: %s", collection, doc_id, exc)
            raise PersistenceError("Unable to read {}/{}.".format(collection, doc_id)) from exc

    def get_where(self, collection: str, field: str, op: str, value: Any) -> Snapshot:
        matches = []
        for document in self.get_all(collection):
            if field not in document:
                continue
            if _compare(op, document[field], value):
                matches.append(document)
        return matches

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def batch(self) -> WriteBatch:
        return WriteBatch(self, self.max_batch_operations)

    def create_document(self, collection: str, fields: dict) -> str:
        batch = self.batch()
        doc_id = batch.create(collection, fields)
        batch.commit()
        return doc_id

    def set_document(self, collection: str, doc_id: str, fields: dict) -> None:
        self.batch().set(collection, doc_id, fields).commit()

    def update_document(self, collection: str, doc_id: str, fields: dict) -> None:
        self.batch().update(collection, doc_id, fields).commit()

    def delete_document(self, collection: str, doc_id: str) -> None:
        self.batch().delete(collection, doc_id).commit()

    def apply(self, operations: list[WriteOperation]) -> None:
        if not operations:
            return
        if len(operations) > self.max_batch_operations:
            raise BatchLimitExceededError(self.max_batch_operations)

        session = self._session_factory()
        try:
            for operation in operations:
                row = self._find(session, operation.collection, operation.doc_id)
                if operation.kind == OP_SET:
                    if row is None:
                        session.add(
                            Document(
                                collection=operation.collection,
                                doc_id=operation.doc_id,
                                data=operation.fields,
                            )
                        )
                    else:
                        row.data = operation.fields
                elif operation.kind == OP_UPDATE:
                    if row is None:
                        raise NotFoundError(
                            "Document {}/{} does not exist.".format(operation.collection, operation.doc_id),
                            collection=operation.collection,
                            doc_id=operation.doc_id,
                        )
                    merged = dict(row.data or {})
                    merged.update(operation.fields or {})
                    row.data = merged
                elif operation.kind == OP_DELETE:
                    if row is not None:
                        session.delete(row)
                else:
                    raise ValueError("Unknown write operation: {}".format(operation.kind))
                session.flush()
            session.commit()
        except NotFoundError:
            session.rollback()
            raise
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Batch of %d operation(s) failed: %s", len(operations), exc)
            raise PersistenceError("The store rejected the write; nothing was applied.") from exc
        finally:
            session.close()

        self._notify({operation.collection for operation in operations})

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe_collection(
        self,
        collection: str,
        on_change: OnChange,
        on_error: Optional[OnError] = None,
    ) -> Callable[[], None]:
        """Register a listener; it receives the current snapshot right away."""
        listener = _Listener(on_change=on_change, on_error=on_error)
        with self._lock:
            self._listeners.setdefault(collection, []).append(listener)

        self._deliver(collection, [listener])

        def unsubscribe() -> None:
            with self._lock:
                listeners = self._listeners.get(collection, [])
                if listener in listeners:
                    listeners.remove(listener)

        return unsubscribe

    def listener_count(self, collection: str) -> int:
        with self._lock:
            return len(self._listeners.get(collection, []))

    def _notify(self, collections: Iterable[str]) -> None:
        for collection in sorted(collections):
            with self._lock:
                listeners = list(self._listeners.get(collection, []))
            if listeners:
                self._deliver(collection, listeners)

    def _deliver(self, collection: str, listeners: list[_Listener]) -> None:
        try:
            snapshot = self.get_all(collection)
        except PersistenceError as exc:
            for listener in listeners:
                if listener.on_error is not None:
                    listener.on_error(exc)
                else:
                    logger.error("Snapshot for %s failed and no error handler is registered.", collection)
            return

        for listener in listeners:
            try:
                listener.on_change(copy.deepcopy(snapshot))
            except Exception:
                logger.exception("Listener on collection %s failed", collection)


__all__ = [
    "DocumentStore",
    "OP_CREATE",
    "OP_DELETE",
    "OP_SET",
    "OP_UPDATE",
    "Snapshot",
    "WriteBatch",
    "WriteOperation",
    "chunked",
    "new_document_id",
]
