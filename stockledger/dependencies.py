from typing import Optional

from fastapi import Depends, Request

from stockledger.container import Services
from stockledger.core.session_store import RequestSessionStore, SessionStore
from stockledger.schemas.user import User
from stockledger.services.auth_service import require_admin, require_user


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_session_store(request: Request) -> SessionStore:
    return RequestSessionStore(request.session)


def get_current_user(
    services: Services = Depends(get_services),
    store: SessionStore = Depends(get_session_store),
) -> Optional[User]:
    return services.auth.current_user(store)


def require_login(user: Optional[User] = Depends(get_current_user)) -> User:
    return require_user(user)


def require_admin_user(user: Optional[User] = Depends(get_current_user)) -> User:
    return require_admin(user)


__all__ = [
    "get_current_user",
    "get_services",
    "get_session_store",
    "require_admin_user",
    "require_login",
]
