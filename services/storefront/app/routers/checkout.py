from __future__ import annotations

import json
import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from fastapi import APIRouter, Depends
from packages.shared.schemas.envelope import ApiResponseV1, ok
from services.storefront.app.config import get_settings
from services.storefront.app.db.deps import get_db
from services.storefront.app.db.models import Addon, Order, Package, Profile
from services.storefront.app.errors import NotFound, ValidationError
from services.storefront.app.models.checkout import (
    AddonCheckoutRequest,
    CheckoutSessionOut,
    FinalizeAddonOrderOut,
    FinalizeAddonOrderRequest,
    FinalizeOrderOut,
    FinalizeOrderRequest,
    PackageCheckoutRequest,
)
from services.storefront.app.routers.common import (
    cart_storage_for,
    current_user,
    factory_error,
    raise_http_error,
)
from services.storefront.app.services.addon_order_finalizer import AddonOrderFinalizer
from services.storefront.app.services.auth_base import AuthUser
from services.storefront.app.services.auth_factory import get_auth_provider
from services.storefront.app.services.cart_storage import DeliverySelection
from services.storefront.app.services.cart_store import CartStore
from services.storefront.app.services.delivery_schedule import (
    SqlDeliveryCalendar,
    is_addon_date_selectable,
)
from services.storefront.app.services.order_finalizer import OrderFinalizer
from services.storefront.app.services.payment_base import (
    CheckoutLineItem,
    CheckoutSessionRequest,
    PaymentProvider,
)
from services.storefront.app.services.payment_factory import get_payment_provider
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

router = APIRouter()

# Stripe substitutes the real id into this placeholder on redirect.
_SESSION_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"


def _to_cents(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _ensure_customer(
    db: Session, payments: PaymentProvider, user: AuthUser, profile: Profile | None
) -> str:
    if profile is not None and profile.stripe_customer_id:
        return profile.stripe_customer_id

    customer_id = payments.create_customer(
        email=user.email,
        name=profile.full_name if profile else None,
        user_id=user.id,
    )
    if profile is None:
        logger.warning("No profile for user %s; customer %s not saved", user.id, customer_id)
        return customer_id

    profile.stripe_customer_id = customer_id
    try:
        db.commit()
    except SQLAlchemyError as e:
        # The session can still go ahead; a new customer is created next time.
        db.rollback()
        logger.warning("Failed to save customer id for user %s: %s", user.id, e)
    return customer_id


@router.post("/v1/checkout/package", response_model=ApiResponseV1[CheckoutSessionOut])
def create_package_checkout(
    payload: PackageCheckoutRequest,
    user: AuthUser = Depends(current_user),
    db: Session = Depends(get_db),
) -> ApiResponseV1:
    package = db.get(Package, payload.package_id)
    if package is None or not package.is_active:
        raise_http_error(NotFound("Package not found.", {"package_id": payload.package_id}))

    try:
        payments = get_payment_provider()
    except ValueError as e:
        factory_error(e)

    settings = get_settings()
    try:
        customer_id = _ensure_customer(db, payments, user, db.get(Profile, user.id))
        created = payments.create_checkout_session(
            CheckoutSessionRequest(
                line_items=[
                    CheckoutLineItem(
                        name=package.name,
                        unit_amount=_to_cents(package.price),
                        quantity=1,
                        image_url=package.image_url,
                        product_metadata={
                            "package_id": package.id,
                            "package_type": package.type,
                            "package_days": str(package.days),
                        },
                    )
                ],
                success_url=f"{settings.site_url}/payment-success?session_id={_SESSION_PLACEHOLDER}",
                cancel_url=f"{settings.site_url}/",
                currency=settings.currency,
                metadata={"supabase_user_id": user.id, "package_id": package.id},
                customer_id=customer_id,
                customer_email=user.email,
            )
        )
    except Exception as e:
        raise_http_error(e)

    return ok(CheckoutSessionOut(session_id=created.session_id, url=created.url))


@router.post("/v1/checkout/addons", response_model=ApiResponseV1[CheckoutSessionOut])
def create_addon_checkout(
    payload: AddonCheckoutRequest,
    user: AuthUser = Depends(current_user),
    db: Session = Depends(get_db),
) -> ApiResponseV1:
    order = db.get(Order, payload.main_order_id)
    if order is None or order.user_id != user.id:
        raise_http_error(NotFound("Order not found.", {"main_order_id": payload.main_order_id}))

    items = CartStore(cart_storage_for(user.id)).get_items()
    if not items:
        raise_http_error(ValidationError("Your cart is empty."))

    if not is_addon_date_selectable(
        SqlDeliveryCalendar(db), order, payload.addon_delivery_date, datetime.utcnow().date()
    ):
        raise_http_error(
            ValidationError(
                "Selected date is not a delivery day for this order.",
                {"addon_delivery_date": payload.addon_delivery_date.isoformat()},
            )
        )

    line_items = []
    for item in items:
        addon = db.get(Addon, item.id)
        if addon is None:
            raise_http_error(
                ValidationError(
                    f"{item.name} is no longer available. Please remove it from your cart.",
                    {"addon_id": item.id},
                )
            )
        line_items.append(
            CheckoutLineItem(
                name=addon.name,
                unit_amount=_to_cents(addon.price),
                quantity=item.quantity,
                image_url=addon.image_url,
                product_metadata={"database_addon_id": addon.id},
            )
        )

    try:
        payments = get_payment_provider()
    except ValueError as e:
        factory_error(e)

    settings = get_settings()
    summary = json.dumps([{"id": i.id, "q": i.quantity} for i in items], separators=(",", ":"))
    total_cents = sum(li.unit_amount * li.quantity for li in line_items)
    try:
        profile = db.get(Profile, user.id)
        created = payments.create_checkout_session(
            CheckoutSessionRequest(
                line_items=line_items,
                success_url=(
                    f"{settings.site_url}/addon-order-success?session_id={_SESSION_PLACEHOLDER}"
                ),
                cancel_url=f"{settings.site_url}/cart",
                currency=settings.currency,
                metadata={
                    "supabase_user_id": user.id,
                    "main_order_id": order.id,
                    "addon_delivery_date": payload.addon_delivery_date.isoformat(),
                    "cart_items_summary": summary,
                    "total_addon_price_cents": str(total_cents),
                },
                customer_id=profile.stripe_customer_id if profile else None,
                customer_email=user.email,
            )
        )
    except Exception as e:
        raise_http_error(e)

    return ok(CheckoutSessionOut(session_id=created.session_id, url=created.url))


@router.post("/v1/checkout/finalize-order", response_model=ApiResponseV1[FinalizeOrderOut])
def finalize_order(
    payload: FinalizeOrderRequest, db: Session = Depends(get_db)
) -> ApiResponseV1:
    try:
        payments = get_payment_provider()
        auth = get_auth_provider()
    except ValueError as e:
        factory_error(e)

    finalizer = OrderFinalizer(
        db, payments, auth, allow_zero_day=get_settings().allow_zero_day_packages
    )
    try:
        result = finalizer.finalize(payload.checkout_session_id)
    except Exception as e:
        raise_http_error(e)

    order = result.order
    return ok(
        FinalizeOrderOut(
            order_id=order.id,
            delivery_start_date=order.delivery_start_date,
            delivery_end_date=order.delivery_end_date,
            already_processed=not result.created,
        ),
        message="Order confirmed successfully!" if result.created else "Order already processed.",
    )


@router.post(
    "/v1/checkout/finalize-addon-order", response_model=ApiResponseV1[FinalizeAddonOrderOut]
)
def finalize_addon_order(
    payload: FinalizeAddonOrderRequest, db: Session = Depends(get_db)
) -> ApiResponseV1:
    try:
        payments = get_payment_provider()
    except ValueError as e:
        factory_error(e)

    try:
        result = AddonOrderFinalizer(db, payments).finalize(payload.session_id)
    except Exception as e:
        raise_http_error(e)

    addon_order = result.addon_order
    # A replay must not touch whatever the customer has put in the cart since.
    if result.created:
        try:
            storage = cart_storage_for(addon_order.user_id)
            CartStore(storage).clear()
            DeliverySelection(storage).clear()
        except (OSError, ValueError) as e:
            logger.warning("Could not clear cart for user %s: %s", addon_order.user_id, e)

    return ok(
        FinalizeAddonOrderOut(
            addon_order_id=addon_order.id,
            main_order_id=addon_order.main_order_id,
            addon_delivery_date=addon_order.addon_delivery_date,
            already_processed=not result.created,
            clear_cart=result.created,
            clear_delivery_selection=result.created,
        ),
        message=(
            "Add-on order confirmed successfully!"
            if result.created
            else "Order already processed."
        ),
    )
