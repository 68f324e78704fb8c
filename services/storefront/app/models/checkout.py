from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field


class PackageCheckoutRequest(BaseModel):
    package_id: str = Field(..., min_length=1)


class AddonCheckoutRequest(BaseModel):
    main_order_id: str = Field(..., min_length=1)
    addon_delivery_date: date


class CheckoutSessionOut(BaseModel):
    session_id: str
    url: str | None = None


class FinalizeOrderRequest(BaseModel):
    checkout_session_id: str = ""


class FinalizeOrderOut(BaseModel):
    order_id: str
    delivery_start_date: date | None
    delivery_end_date: date | None
    already_processed: bool


class FinalizeAddonOrderRequest(BaseModel):
    session_id: str = ""


class FinalizeAddonOrderOut(BaseModel):
    addon_order_id: str
    main_order_id: str
    addon_delivery_date: date
    already_processed: bool
    clear_cart: bool
    clear_delivery_selection: bool
