"""Shared cart payload schema (v1).

This is also the persisted shape: the cart store writes a JSON list of
CartLineItemV1 objects under a single storage key.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field


class CartLineItemV1(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    image_url: str | None = None


class CartSummaryV1(BaseModel):
    items: list[CartLineItemV1] = Field(default_factory=list)
    total_items: int
    total_price: Decimal


class DeliverySelectionV1(BaseModel):
    main_order_id: str
    main_order_name: str | None = None
    delivery_date: str
