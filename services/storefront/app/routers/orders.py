from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from packages.shared.schemas.envelope import ApiResponseV1, ok
from services.storefront.app.db.deps import get_db
from services.storefront.app.db.models import AddonOrder, Order
from services.storefront.app.errors import NotFound
from services.storefront.app.models.order import AddonOrderOut, OrderOut
from services.storefront.app.routers.common import current_user, raise_http_error
from services.storefront.app.services.auth_base import AuthUser
from sqlalchemy.orm import Session

router = APIRouter()


@router.get("/v1/orders/my", response_model=ApiResponseV1[list[OrderOut]])
def list_my_orders(
    user: AuthUser = Depends(current_user), db: Session = Depends(get_db)
) -> ApiResponseV1:
    rows = (
        db.query(Order)
        .filter(Order.user_id == user.id)
        .order_by(Order.order_date.desc())
        .all()
    )
    return ok([OrderOut.model_validate(r) for r in rows])


@router.get("/v1/orders/active", response_model=ApiResponseV1[list[OrderOut]])
def list_active_orders(
    user: AuthUser = Depends(current_user), db: Session = Depends(get_db)
) -> ApiResponseV1:
    """Orders whose delivery window includes today; these can take add-ons."""

    today = date.today()
    rows = (
        db.query(Order)
        .filter(Order.user_id == user.id)
        .filter(Order.delivery_start_date <= today)
        .filter(Order.delivery_end_date >= today)
        .order_by(Order.delivery_start_date.asc())
        .all()
    )
    return ok([OrderOut.model_validate(r) for r in rows])


@router.get("/v1/orders/{order_id}", response_model=ApiResponseV1[OrderOut])
def get_order(
    order_id: str,
    user: AuthUser = Depends(current_user),
    db: Session = Depends(get_db),
) -> ApiResponseV1:
    order = db.get(Order, order_id)
    if order is None or order.user_id != user.id:
        raise_http_error(NotFound("Order not found.", {"order_id": order_id}))
    return ok(OrderOut.model_validate(order))


@router.get("/v1/addon-orders/my", response_model=ApiResponseV1[list[AddonOrderOut]])
def list_my_addon_orders(
    user: AuthUser = Depends(current_user), db: Session = Depends(get_db)
) -> ApiResponseV1:
    rows = (
        db.query(AddonOrder)
        .filter(AddonOrder.user_id == user.id)
        .order_by(AddonOrder.addon_delivery_date.desc())
        .all()
    )
    return ok([AddonOrderOut.model_validate(r) for r in rows])
