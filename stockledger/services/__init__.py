from stockledger.services.announcement_service import AnnouncementService
from stockledger.services.auth_service import AuthService, require_admin, require_user
from stockledger.services.backup_service import BackupService, ResetResult, RestoreResult
from stockledger.services.document_store import DocumentStore, WriteBatch
from stockledger.services.inventory_service import InventoryService
from stockledger.services.job_recorder import JobRecorder, WorkSession
from stockledger.services.job_service import JobService, RollbackResult
from stockledger.services.product_store import ProductStore

__all__ = [
    "AnnouncementService",
    "AuthService",
    "BackupService",
    "DocumentStore",
    "InventoryService",
    "JobRecorder",
    "JobService",
    "ProductStore",
    "ResetResult",
    "RestoreResult",
    "RollbackResult",
    "WorkSession",
    "WriteBatch",
    "require_admin",
    "require_user",
]
