"""Persisted jobs and their one-step rollback."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from stockledger.core.constants import JOBS_COLLECTION, PRODUCTS_COLLECTION
from stockledger.core.dates import now_ms
from stockledger.core.exceptions import NotFoundError, PartialRollbackWarning, PersistenceError
from stockledger.schemas.job import Job, JobDetail
from stockledger.services.document_store import DocumentStore
from stockledger.services.ledger import clamp_quantity

logger = logging.getLogger(__name__)


@dataclass
class RollbackResult:
    job_id: str
    reverted_product_ids: list[str] = field(default_factory=list)
    skipped_product_ids: list[str] = field(default_factory=list)
    already_rolled_back: bool = False
    warning: Optional[PartialRollbackWarning] = None

    @property
    def partial(self) -> bool:
        return self.warning is not None

    def as_dict(self) -> dict:
        return {
            "jobId": self.job_id,
            "revertedProductIds": list(self.reverted_product_ids),
            "skippedProductIds": list(self.skipped_product_ids),
            "alreadyRolledBack": self.already_rolled_back,
            "partial": self.partial,
            "warning": str(self.warning) if self.warning is not None else None,
        }


class JobService:
    def __init__(
        self,
        documents: DocumentStore,
        *,
        clock: Callable[[], int] = now_ms,
        lock: Optional[threading.RLock] = None,
    ):
        self._documents = documents
        self._clock = clock
        # Shared with InventoryService so a rollback never interleaves with a mutation.
        self.lock = lock or threading.RLock()

    def record(
        self,
        *,
        session_id: str,
        user: str,
        role: str,
        summary: list[str],
        details: list[JobDetail],
        timestamp: Optional[int] = None,
    ) -> Job:
        job = Job(
            timestamp=self._clock() if timestamp is None else timestamp,
            user=user,
            role=role,
            session_id=session_id,
            summary=list(summary),
            details=list(details),
        )
        job_id = self._documents.create_document(JOBS_COLLECTION, job.to_document())
        logger.info(
            "Recorded job %s (%d change(s)) for session %s", job_id, len(job.details), session_id,
            extra={"job_id": job_id, "session_id": session_id, "user": user},
        )
        return job.model_copy(update={"id": job_id})

    def list_jobs(self) -> list[Job]:
        jobs = [Job.model_validate(document) for document in self._documents.get_all(JOBS_COLLECTION)]
        # Stable sort keeps insertion order among equal timestamps.
        return sorted(jobs, key=lambda job: job.timestamp, reverse=True)

    def get_job(self, job_id: str) -> Job:
        document = self._documents.get(JOBS_COLLECTION, job_id)
        if document is None:
            raise NotFoundError("Job {} does not exist.".format(job_id), collection=JOBS_COLLECTION, doc_id=job_id)
        return Job.model_validate(document)

    def get_last_job(self) -> Optional[Job]:
        last = None
        for document in self._documents.get_all(JOBS_COLLECTION):
            job = Job.model_validate(document)
            if last is None or job.timestamp >= last.timestamp:
                last = job
        return last

    def rollback(self, job: Union[Job, str]) -> RollbackResult:
        """Reverse every change of ``job`` and delete it, in a single batch."""
        job_id = job if isinstance(job, str) else job.id
        if not job_id:
            raise NotFoundError("Job has no id; it was never persisted.", collection=JOBS_COLLECTION)
        with self.lock:
            return self._rollback(job_id)

    def _rollback(self, job_id: str) -> RollbackResult:
        document = self._documents.get(JOBS_COLLECTION, job_id)
        if document is None:
            logger.info("Job %s is already gone; nothing to roll back", job_id)
            return RollbackResult(job_id=job_id, already_rolled_back=True)
        current = Job.model_validate(document)

        states: dict[str, dict] = {}
        skipped: list[str] = []
        for detail in reversed(current.details):
            product_id = detail.product_id
            if product_id in skipped:
                continue
            if product_id not in states:
                product = self._documents.get(PRODUCTS_COLLECTION, product_id)
                if product is None:
                    skipped.append(product_id)
                    continue
                history = product.get("history") or []
                states[product_id] = {
                    "quantity": product.get("quantity") or 0,
                    "history": [entry for entry in history if entry.get("sessionId") != current.session_id],
                }
            state = states[product_id]
            state["quantity"] = clamp_quantity(state["quantity"] - detail.delta)

        batch = self._documents.batch()
        for product_id, state in states.items():
            batch.update(PRODUCTS_COLLECTION, product_id, state)
        batch.delete(JOBS_COLLECTION, job_id)
        try:
            batch.commit()
        except NotFoundError as exc:
            # A product vanished between the read and the commit.
            raise PersistenceError("Rollback of job {} did not apply; try again.".format(job_id)) from exc

        result = RollbackResult(
            job_id=job_id,
            reverted_product_ids=list(states),
            skipped_product_ids=skipped,
        )
        if skipped:
            result.warning = PartialRollbackWarning(skipped)
            logger.warning("Job %s rolled back partially: %s", job_id, result.warning, extra={"job_id": job_id})
        else:
            logger.info("Job %s rolled back (%d product(s))", job_id, len(states), extra={"job_id": job_id})
        return result


__all__ = ["JobService", "RollbackResult"]
