"""Builds every service once and hands them out by reference."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine

from stockledger.config import Settings, get_settings
from stockledger.core.constants import DEFAULT_PRODUCTS_FILE, DEFAULT_USERS_FILE
from stockledger.database import build_engine, build_session_factory, ensure_schema
from stockledger.services.announcement_service import AnnouncementService
from stockledger.services.auth_service import AuthService
from stockledger.services.backup_service import BackupService
from stockledger.services.document_store import DocumentStore
from stockledger.services.inventory_service import InventoryService
from stockledger.services.job_recorder import JobRecorder
from stockledger.services.job_service import JobService
from stockledger.services.product_store import ProductStore, load_seed_file

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    engine: Engine
    documents: DocumentStore
    products: ProductStore
    inventory: InventoryService
    jobs: JobService
    recorder: JobRecorder
    backups: BackupService
    announcements: AnnouncementService
    auth: AuthService

    def start(self) -> "Services":
        self.products.start()
        return self

    def close(self) -> None:
        self.products.stop()
        self.engine.dispose()


def _seed_data(settings: Settings) -> tuple[list[dict], list[dict]]:
    products = []
    if settings.SEED_DEFAULT_PRODUCTS:
        products = load_seed_file(settings.SEED_PRODUCTS_FILE or DEFAULT_PRODUCTS_FILE)
    users = load_seed_file(settings.SEED_USERS_FILE or DEFAULT_USERS_FILE)
    return products, users


def build_services(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> Services:
    settings = settings or get_settings()
    if engine is None:
        engine = build_engine(settings.DATABASE_URL)
    ensure_schema(engine)

    documents = DocumentStore(
        build_session_factory(engine),
        max_batch_operations=settings.STORE_MAX_BATCH_OPERATIONS,
    )
    seed_products, seed_users = _seed_data(settings)
    products = ProductStore(documents, seed_products=seed_products, seed_users=seed_users)
    inventory = InventoryService(
        documents,
        products,
        history_limit=settings.HISTORY_LIMIT,
        unknown_user=settings.UNKNOWN_USER_NAME,
    )
    jobs = JobService(documents, lock=inventory.lock)

    logger.info("Services ready on %s", engine.url.render_as_string(hide_password=True))
    return Services(
        settings=settings,
        engine=engine,
        documents=documents,
        products=products,
        inventory=inventory,
        jobs=jobs,
        recorder=JobRecorder(inventory, jobs, idle_timeout=settings.WORK_SESSION_IDLE_MINUTES * 60),
        backups=BackupService(documents, chunk_size=settings.RESTORE_CHUNK_SIZE),
        announcements=AnnouncementService(documents),
        auth=AuthService(documents),
    )


__all__ = ["Services", "build_services"]
