from fastapi import APIRouter, Depends

from stockledger.container import Services
from stockledger.core.session_store import SessionStore
from stockledger.dependencies import get_services, get_session_store, require_admin_user, require_login
from stockledger.schemas.announcement import Announcement, AnnouncementCreate, AnnouncementUpdate, SeenRequest
from stockledger.schemas.user import User

router = APIRouter(prefix="/announcements", tags=["Announcements"])


@router.get("", response_model=list[Announcement])
def list_announcements(
    services: Services = Depends(get_services),
    _admin: User = Depends(require_admin_user),
):
    return services.announcements.list_all()


@router.get("/active", response_model=list[Announcement])
def list_active_announcements(
    services: Services = Depends(get_services),
    _user: User = Depends(require_login),
):
    return services.announcements.list_active()


@router.get("/unseen", response_model=list[Announcement])
def list_unseen_announcements(
    services: Services = Depends(get_services),
    store: SessionStore = Depends(get_session_store),
    user: User = Depends(require_login),
):
    return services.announcements.unseen_for(user, store)


@router.post("/seen")
def mark_announcements_seen(
    payload: SeenRequest,
    services: Services = Depends(get_services),
    store: SessionStore = Depends(get_session_store),
    _user: User = Depends(require_login),
):
    return {"seen": services.announcements.mark_seen(store, payload.ids)}


@router.post("", response_model=Announcement, status_code=201)
def create_announcement(
    payload: AnnouncementCreate,
    services: Services = Depends(get_services),
    _admin: User = Depends(require_admin_user),
):
    return services.announcements.add(payload.message)


@router.patch("/{announcement_id}", response_model=Announcement)
def update_announcement(
    announcement_id: str,
    payload: AnnouncementUpdate,
    services: Services = Depends(get_services),
    _admin: User = Depends(require_admin_user),
):
    return services.announcements.update(announcement_id, message=payload.message, is_active=payload.is_active)


@router.delete("/{announcement_id}")
def delete_announcement(
    announcement_id: str,
    services: Services = Depends(get_services),
    _admin: User = Depends(require_admin_user),
):
    services.announcements.delete(announcement_id)
    return {"status": "deleted", "id": announcement_id}
