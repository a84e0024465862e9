from fastapi import APIRouter, Depends

from stockledger.container import Services
from stockledger.dependencies import get_services, require_login
from stockledger.schemas.job import RestockRequest, UsageRequest, WorkLogItem
from stockledger.schemas.user import User

router = APIRouter(prefix="/work-sessions", tags=["Work sessions"])


@router.post("", status_code=201)
def start_work_session(
    services: Services = Depends(get_services),
    user: User = Depends(require_login),
):
    session = services.recorder.start(user)
    return {"sessionId": session.session_id}


@router.get("/{session_id}")
def get_work_session(
    session_id: str,
    services: Services = Depends(get_services),
    user: User = Depends(require_login),
):
    session = services.recorder.get(session_id, user)
    return {"sessionId": session.session_id, "log": session.log}


@router.post("/{session_id}/usage", response_model=list[WorkLogItem])
def record_usage(
    session_id: str,
    payload: UsageRequest,
    services: Services = Depends(get_services),
    user: User = Depends(require_login),
):
    session = services.recorder.get(session_id, user)
    return session.record_usage(payload.product_id, payload.amount, restock_amount=payload.restock_amount)


@router.post("/{session_id}/restock", response_model=WorkLogItem)
def record_restock(
    session_id: str,
    payload: RestockRequest,
    services: Services = Depends(get_services),
    user: User = Depends(require_login),
):
    session = services.recorder.get(session_id, user)
    return session.record_restock(payload.product_id, payload.amount)


@router.post("/{session_id}/finish")
def finish_work_session(
    session_id: str,
    services: Services = Depends(get_services),
    user: User = Depends(require_login),
):
    session = services.recorder.get(session_id, user)
    job = services.recorder.finish(session)
    return {"job": job}


@router.delete("/{session_id}", status_code=204)
def cancel_work_session(
    session_id: str,
    services: Services = Depends(get_services),
    user: User = Depends(require_login),
):
    session = services.recorder.get(session_id, user)
    services.recorder.cancel(session)
