from typing import Optional

from fastapi import APIRouter, Depends

from stockledger.container import Services
from stockledger.core.session_store import SessionStore
from stockledger.dependencies import get_current_user, get_services, get_session_store
from stockledger.schemas.user import LoginRequest, User

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login", response_model=User, response_model_exclude_none=True)
def login(
    payload: LoginRequest,
    services: Services = Depends(get_services),
    store: SessionStore = Depends(get_session_store),
):
    return services.auth.login(payload.username, payload.password, store)


@router.post("/logout")
def logout(
    services: Services = Depends(get_services),
    store: SessionStore = Depends(get_session_store),
):
    services.auth.logout(store)
    return {"status": "logged_out"}


@router.get("/me", response_model=Optional[User], response_model_exclude_none=True)
def whoami(user: Optional[User] = Depends(get_current_user)):
    return user
