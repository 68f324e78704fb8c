from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field


class CartAddRequest(BaseModel):
    addon_id: str = Field(..., min_length=1)


class CartQuantityRequest(BaseModel):
    quantity: int


class DeliverySelectionRequest(BaseModel):
    main_order_id: str = Field(..., min_length=1)
    delivery_date: date
