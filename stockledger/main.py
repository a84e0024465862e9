import logging
import secrets
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from stockledger.config import Settings, get_settings
from stockledger.container import Services, build_services
from stockledger.core.exceptions import InventoryError, RestoreFailedError
from stockledger.core.logging import setup_logging
from stockledger.routers import (
    announcements_router,
    auth_router,
    backup_router,
    health_router,
    history_router,
    jobs_router,
    products_router,
    work_sessions_router,
)

logger = logging.getLogger(__name__)


async def inventory_error_handler(_request: Request, exc: InventoryError):
    content = {"detail": exc.message}
    if isinstance(exc, RestoreFailedError):
        content.update(phase=exc.phase, deleted=exc.deleted, inserted=exc.inserted)
    if exc.status_code >= 500:
        logger.error("%s: %s", type(exc).__name__, exc.message)
    return JSONResponse(status_code=exc.status_code, content=content)


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = services is None
        app.state.services = services or build_services(settings)
        if not app.state.services.products.started:
            app.state.services.start()
        try:
            yield
        finally:
            if owned:
                app.state.services.close()

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SESSION_SECRET or secrets.token_urlsafe(32),
        session_cookie=settings.SESSION_COOKIE,
        same_site="lax",
        https_only=settings.ENVIRONMENT.lower() != "local",
    )
    app.add_exception_handler(InventoryError, inventory_error_handler)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(products_router)
    app.include_router(work_sessions_router)
    app.include_router(jobs_router)
    app.include_router(history_router)
    app.include_router(backup_router)
    app.include_router(announcements_router)
    return app


def build_default_app() -> FastAPI:
    setup_logging()
    return create_app()


__all__ = ["build_default_app", "create_app", "inventory_error_handler"]
