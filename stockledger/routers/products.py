from typing import Any

from fastapi import APIRouter, Body, Depends, Query

from stockledger.container import Services
from stockledger.core.exceptions import ValidationError
from stockledger.dependencies import get_services, require_admin_user, require_login
from stockledger.schemas.product import AmountRequest, HistoryEntry, Product, ProductCreate
from stockledger.schemas.user import User

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("", response_model=list[Product], response_model_exclude_none=True)
def list_products(
    services: Services = Depends(get_services),
    _user: User = Depends(require_login),
):
    return services.products.active_products()


@router.get("/inactive", response_model=list[Product], response_model_exclude_none=True)
def list_inactive_products(
    services: Services = Depends(get_services),
    _admin: User = Depends(require_admin_user),
):
    return services.products.inactive_products()


@router.post("", status_code=201)
def create_product(
    payload: ProductCreate,
    services: Services = Depends(get_services),
    admin: User = Depends(require_admin_user),
):
    fields = payload.model_dump(include={"name", "description", "unit", "image"}, exclude_none=True)
    product_id = services.inventory.create_product(fields, payload.quantity, admin)
    return {"id": product_id}


@router.get("/{product_id}", response_model=Product, response_model_exclude_none=True)
def get_product(
    product_id: str,
    services: Services = Depends(get_services),
    _user: User = Depends(require_login),
):
    return services.products.get(product_id)


@router.get("/{product_id}/history", response_model=list[HistoryEntry], response_model_exclude_none=True)
def get_product_history(
    product_id: str,
    services: Services = Depends(get_services),
    _user: User = Depends(require_login),
):
    return services.products.get(product_id).history


@router.post("/{product_id}/restock", response_model=Product, response_model_exclude_none=True)
def restock_product(
    product_id: str,
    payload: AmountRequest,
    services: Services = Depends(get_services),
    user: User = Depends(require_login),
):
    return services.inventory.restock(product_id, payload.amount, user)


@router.post("/{product_id}/adjust", response_model=Product, response_model_exclude_none=True)
def adjust_product(
    product_id: str,
    payload: AmountRequest,
    services: Services = Depends(get_services),
    user: User = Depends(require_login),
):
    return services.inventory.set_absolute(product_id, payload.amount, user)


@router.patch("/{product_id}/details", response_model=Product, response_model_exclude_none=True)
def edit_product_details(
    product_id: str,
    payload: dict[str, Any] = Body(...),
    services: Services = Depends(get_services),
    user: User = Depends(require_login),
):
    return services.inventory.edit_details(product_id, payload, user)


@router.post("/{product_id}/deactivate", response_model=Product, response_model_exclude_none=True)
def deactivate_product(
    product_id: str,
    services: Services = Depends(get_services),
    admin: User = Depends(require_admin_user),
):
    return services.inventory.deactivate(product_id, admin)


@router.post("/{product_id}/reactivate", response_model=Product, response_model_exclude_none=True)
def reactivate_product(
    product_id: str,
    services: Services = Depends(get_services),
    admin: User = Depends(require_admin_user),
):
    return services.inventory.reactivate(product_id, admin)


@router.delete("/{product_id}")
def purge_product(
    product_id: str,
    confirm: bool = Query(False, description="Must be true; deletion cannot be undone"),
    services: Services = Depends(get_services),
    _admin: User = Depends(require_admin_user),
):
    if not confirm:
        raise ValidationError("Permanent deletion needs confirm=true.")
    services.inventory.purge(product_id)
    return {"status": "deleted", "id": product_id}
