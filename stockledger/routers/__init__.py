from stockledger.routers.announcements import router as announcements_router
from stockledger.routers.auth import router as auth_router
from stockledger.routers.backup import router as backup_router
from stockledger.routers.health import router as health_router
from stockledger.routers.history import router as history_router
from stockledger.routers.jobs import router as jobs_router
from stockledger.routers.products import router as products_router
from stockledger.routers.work_sessions import router as work_sessions_router

__all__ = [
    "announcements_router",
    "auth_router",
    "backup_router",
    "health_router",
    "history_router",
    "jobs_router",
    "products_router",
    "work_sessions_router",
]
