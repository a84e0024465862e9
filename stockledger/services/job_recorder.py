"""Work sessions: usage registered product by product, closed as one job."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Optional

from stockledger.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from stockledger.schemas.job import Job, JobDetail, WorkLogItem
from stockledger.schemas.user import User
from stockledger.services.inventory_service import InventoryService
from stockledger.services.job_service import JobService
from stockledger.services.ledger import format_quantity, new_session_id, normalize_number, parse_number

logger = logging.getLogger(__name__)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def summary_line(item: WorkLogItem) -> str:
    verb = "agregaste" if item.action == "restocked" else "usaste"
    text = "{}: {} {}".format(item.product_name, verb, format_quantity(item.amount))
    if item.unit:
        text = "{} {}".format(text, item.unit)
    return text


class WorkSession:
    def __init__(
        self,
        session_id: str,
        inventory: InventoryService,
        acting_user: Optional[User] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.session_id = session_id
        self.acting_user = acting_user
        self._inventory = inventory
        self._log: list[WorkLogItem] = []
        self._clock = clock
        self.last_active = clock()

    def touch(self) -> None:
        self.last_active = self._clock()

    @property
    def log(self) -> list[WorkLogItem]:
        return list(self._log)

    def _apply(self, product_id: str, delta, action: str, amount) -> WorkLogItem:
        before = self._inventory.products.get(product_id)
        after = self._inventory.apply_delta(product_id, delta, self.acting_user, self.session_id)
        item = WorkLogItem(
            product_id=after.id,
            product_name=after.name,
            unit=after.unit,
            action=action,
            amount=amount,
            delta=normalize_number(after.quantity - before.quantity),
            previous_qty=before.quantity,
            new_qty=after.quantity,
        )
        self._log.append(item)
        return item

    def record_usage(self, product_id: str, amount: Any, *, restock_amount: Any = None) -> list[WorkLogItem]:
        """Register consumption; at zero stock, optionally restock right after.

        An empty amount means nothing was used and records nothing.
        """
        if _is_blank(amount):
            return []
        used = parse_number(amount, field="amount", allow_zero=False)
        restock = None
        if not _is_blank(restock_amount):
            restock = parse_number(restock_amount, field="restock amount", allow_zero=False)

        # One lock hold covers both writes; the restock reads the emptied stock.
        with self._inventory.lock:
            self.touch()
            product = self._inventory.products.get(product_id)
            if used > product.quantity:
                raise ValidationError(
                    "Only {} {} left of {}; cannot register {}.".format(
                        format_quantity(product.quantity), product.unit, product.name, format_quantity(used)
                    )
                )
            if restock is not None and product.quantity - used != 0:
                raise ValidationError("Restocking here is only allowed when the usage empties the stock.")

            items = [self._apply(product_id, -used, "used", used)]
            if restock is not None:
                items.append(self._apply(product_id, restock, "restocked", restock))
            return items

    def record_restock(self, product_id: str, amount: Any) -> WorkLogItem:
        added = parse_number(amount, field="amount", allow_zero=False)
        with self._inventory.lock:
            self.touch()
            return self._apply(product_id, added, "restocked", added)


class JobRecorder:
    """Registry of open work sessions.

    A session leaves the registry when it is finished, cancelled, or left
    idle for longer than ``idle_timeout`` seconds. Idle sessions are pruned
    whenever a new one starts.
    """

    def __init__(
        self,
        inventory: InventoryService,
        jobs: JobService,
        *,
        idle_timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._inventory = inventory
        self._jobs = jobs
        self._sessions: dict[str, WorkSession] = {}
        self._lock = threading.Lock()
        self._idle_timeout = idle_timeout
        self._clock = clock

    @property
    def open_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def prune_idle(self) -> int:
        if not self._idle_timeout:
            return 0
        cutoff = self._clock() - self._idle_timeout
        with self._lock:
            expired = [session for session in self._sessions.values() if session.last_active < cutoff]
            for session in expired:
                del self._sessions[session.session_id]
        for session in expired:
            if session.log:
                logger.warning(
                    "Work session %s expired with %d unsaved change(s)", session.session_id, len(session.log)
                )
            else:
                logger.info("Work session %s expired", session.session_id)
        return len(expired)

    def start(self, acting_user: Optional[User] = None) -> WorkSession:
        self.prune_idle()
        session = WorkSession(new_session_id(), self._inventory, acting_user, clock=self._clock)
        with self._lock:
            self._sessions[session.session_id] = session
        logger.info("Work session %s started by %s", session.session_id, self._inventory.user_name(acting_user))
        return session

    def get(self, session_id: str, acting_user: Optional[User] = None) -> WorkSession:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise NotFoundError("Work session {} is not open.".format(session_id))
        owner = session.acting_user
        if acting_user is not None and owner is not None and owner.username != acting_user.username:
            raise PermissionDeniedError("Work session {} belongs to another user.".format(session_id))
        return session

    def discard(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def cancel(self, session: WorkSession) -> None:
        """Close the session without saving a job. Changes already applied stay."""
        self.discard(session.session_id)
        logger.info("Work session %s cancelled with %d change(s) applied", session.session_id, len(session.log))

    def finish(self, session: WorkSession) -> Optional[Job]:
        """Persist one job for the session; a session without changes yields none.

        The session stays open until the job is stored, so a failed write can
        be retried by finishing again.
        """
        with self._inventory.lock:
            with self._lock:
                is_open = self._sessions.get(session.session_id) is session
            if not is_open:
                raise NotFoundError("Work session {} is not open.".format(session.session_id))

            log = session.log
            if not log:
                self.discard(session.session_id)
                logger.info("Work session %s finished without changes", session.session_id)
                return None

            user = session.acting_user
            job = self._jobs.record(
                session_id=session.session_id,
                user=self._inventory.user_name(user),
                role=user.role if user is not None else "",
                summary=[summary_line(item) for item in log],
                details=[
                    JobDetail(
                        product_id=item.product_id,
                        delta=item.delta,
                        product_name=item.product_name,
                        unit=item.unit,
                        previous=item.previous_qty,
                        new=item.new_qty,
                    )
                    for item in log
                ],
            )
            self.discard(session.session_id)
            return job


__all__ = ["JobRecorder", "WorkSession", "summary_line"]
