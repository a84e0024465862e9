from typing import Optional

from fastapi import APIRouter, Depends

from stockledger.container import Services
from stockledger.core.exceptions import NotFoundError
from stockledger.dependencies import get_services, require_admin_user, require_login
from stockledger.schemas.job import Job
from stockledger.schemas.user import User

router = APIRouter(prefix="/jobs", tags=["Jobs"])


@router.get("", response_model=list[Job])
def list_jobs(
    services: Services = Depends(get_services),
    _admin: User = Depends(require_admin_user),
):
    return services.jobs.list_jobs()


@router.get("/last", response_model=Optional[Job])
def last_job(
    services: Services = Depends(get_services),
    _user: User = Depends(require_login),
):
    return services.jobs.get_last_job()


@router.post("/last/rollback")
def rollback_last_job(
    services: Services = Depends(get_services),
    _admin: User = Depends(require_admin_user),
):
    job = services.jobs.get_last_job()
    if job is None:
        raise NotFoundError("There is no job to roll back.")
    return services.jobs.rollback(job).as_dict()
