from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from stockledger.container import Services
from stockledger.dependencies import get_services

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(services: Services = Depends(get_services)):
    settings = services.settings
    return {
        "status": "ok" if services.products.last_error is None else "degraded",
        "app": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
        "products": len(services.products.products),
        "time": datetime.now(timezone.utc).isoformat(),
    }
