from typing import Any

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import Response

from stockledger.container import Services
from stockledger.core.exceptions import ValidationError
from stockledger.dependencies import get_services, require_admin_user
from stockledger.schemas.user import User
from stockledger.services.backup_service import snapshot_filename

router = APIRouter(prefix="/backup", tags=["Backup"])


@router.get("/export")
def export_backup(
    services: Services = Depends(get_services),
    _admin: User = Depends(require_admin_user),
):
    return Response(
        content=services.backups.export_json(),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="{}"'.format(snapshot_filename())},
    )


@router.post("/restore")
def restore_backup(
    snapshot: Any = Body(...),
    confirm: bool = Query(False, description="Must be true; replaces every product"),
    services: Services = Depends(get_services),
    _admin: User = Depends(require_admin_user),
):
    if not confirm:
        raise ValidationError("Restoring replaces the whole inventory; pass confirm=true.")
    return services.backups.restore(snapshot).as_dict()


@router.post("/reset")
def reset_inventory(
    confirm: bool = Query(False, description="Must be true; zeroes every product"),
    services: Services = Depends(get_services),
    _admin: User = Depends(require_admin_user),
):
    if not confirm:
        raise ValidationError("Resetting clears all stock and history; pass confirm=true.")
    return services.backups.reset_inventory().as_dict()
