from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    order_date: datetime | None = None
    package_id: str
    package_name: str
    package_type: str
    package_days: int
    package_price: Decimal
    delivery_address: str | None = None
    delivery_city: str | None = None
    delivery_postal_code: str | None = None
    delivery_current_location: str | None = None
    order_status: str
    delivery_start_date: date | None = None
    delivery_end_date: date | None = None


class AddonOrderedItem(BaseModel):
    addon_id: str
    name: str
    price_at_purchase: Decimal
    quantity: int


class AddonOrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    main_order_id: str
    addon_delivery_date: date
    addons_ordered: list[AddonOrderedItem]
    total_addon_price: Decimal
    currency: str
    created_at: datetime | None = None
