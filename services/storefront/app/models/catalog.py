from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class PackageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None = None
    price: Decimal
    type: str
    days: int
    image_url: str | None = None


class AddonOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    price: Decimal
    image_url: str | None = None


class DeliveryScheduleEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    event_date: date
    is_delivery_enabled: bool
    notes: str | None = None
