from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends
from packages.shared.schemas.cart_v1 import CartSummaryV1, DeliverySelectionV1
from packages.shared.schemas.envelope import ApiResponseV1, ok
from services.storefront.app.db.deps import get_db
from services.storefront.app.db.models import Addon, Order
from services.storefront.app.errors import NotFound, ValidationError
from services.storefront.app.models.cart import (
    CartAddRequest,
    CartQuantityRequest,
    DeliverySelectionRequest,
)
from services.storefront.app.routers.common import (
    cart_storage_for,
    current_user,
    raise_http_error,
)
from services.storefront.app.services.auth_base import AuthUser
from services.storefront.app.services.cart_context import CartContext
from services.storefront.app.services.cart_storage import DeliverySelection
from services.storefront.app.services.cart_store import CartStore
from services.storefront.app.services.delivery_schedule import (
    SqlDeliveryCalendar,
    is_addon_date_selectable,
)
from sqlalchemy.orm import Session

router = APIRouter()


def _summary(cart: CartContext) -> CartSummaryV1:
    return CartSummaryV1(
        items=[item.to_wire() for item in cart.items],
        total_items=cart.total_items(),
        total_price=cart.total_price(),
    )


def _cart(user: AuthUser) -> CartContext:
    return CartContext(CartStore(cart_storage_for(user.id)))


@router.get("/v1/cart", response_model=ApiResponseV1[CartSummaryV1])
def get_cart(user: AuthUser = Depends(current_user)) -> ApiResponseV1:
    with _cart(user) as cart:
        return ok(_summary(cart))


@router.post("/v1/cart/items", response_model=ApiResponseV1[CartSummaryV1])
def add_cart_item(
    payload: CartAddRequest,
    user: AuthUser = Depends(current_user),
    db: Session = Depends(get_db),
) -> ApiResponseV1:
    addon = db.get(Addon, payload.addon_id)
    if addon is None:
        raise_http_error(NotFound("Addon not found.", {"addon_id": payload.addon_id}))

    with _cart(user) as cart:
        try:
            cart.add(addon)
        except ValidationError as e:
            raise_http_error(e)
        return ok(_summary(cart), message=f"{addon.name} added to cart.")


@router.put("/v1/cart/items/{addon_id}", response_model=ApiResponseV1[CartSummaryV1])
def set_cart_item_quantity(
    addon_id: str,
    payload: CartQuantityRequest,
    user: AuthUser = Depends(current_user),
) -> ApiResponseV1:
    with _cart(user) as cart:
        cart.set_quantity(addon_id, payload.quantity)
        return ok(_summary(cart))


@router.delete("/v1/cart/items/{addon_id}", response_model=ApiResponseV1[CartSummaryV1])
def remove_cart_item(addon_id: str, user: AuthUser = Depends(current_user)) -> ApiResponseV1:
    with _cart(user) as cart:
        cart.remove(addon_id)
        return ok(_summary(cart))


@router.delete("/v1/cart", response_model=ApiResponseV1[CartSummaryV1])
def clear_cart(user: AuthUser = Depends(current_user)) -> ApiResponseV1:
    with _cart(user) as cart:
        cart.clear()
        return ok(_summary(cart), message="Cart cleared.")


@router.get(
    "/v1/cart/delivery-selection", response_model=ApiResponseV1[DeliverySelectionV1]
)
def get_delivery_selection(user: AuthUser = Depends(current_user)) -> ApiResponseV1:
    return ok(DeliverySelection(cart_storage_for(user.id)).load())


@router.put(
    "/v1/cart/delivery-selection", response_model=ApiResponseV1[DeliverySelectionV1]
)
def set_delivery_selection(
    payload: DeliverySelectionRequest,
    user: AuthUser = Depends(current_user),
    db: Session = Depends(get_db),
) -> ApiResponseV1:
    order = db.get(Order, payload.main_order_id)
    if order is None or order.user_id != user.id:
        raise_http_error(NotFound("Order not found.", {"main_order_id": payload.main_order_id}))

    if not is_addon_date_selectable(
        SqlDeliveryCalendar(db), order, payload.delivery_date, datetime.utcnow().date()
    ):
        raise_http_error(
            ValidationError(
                "Selected date is not a delivery day for this order.",
                {"delivery_date": payload.delivery_date.isoformat()},
            )
        )

    selection = DeliverySelectionV1(
        main_order_id=order.id,
        main_order_name=order.package_name,
        delivery_date=payload.delivery_date.isoformat(),
    )
    DeliverySelection(cart_storage_for(user.id)).save(selection)
    return ok(selection)


@router.delete(
    "/v1/cart/delivery-selection", response_model=ApiResponseV1[DeliverySelectionV1]
)
def clear_delivery_selection(user: AuthUser = Depends(current_user)) -> ApiResponseV1:
    DeliverySelection(cart_storage_for(user.id)).clear()
    return ok(None)
