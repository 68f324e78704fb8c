"""Schemas for the metadata the storefront attaches to checkout sessions.

Processor metadata is a flat string map; these models are the single place it is
validated before any row is written.
"""

from __future__ import annotations

import json
from datetime import date
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from services.storefront.app.errors import MissingLinkageMetadata, ValidationError
from services.storefront.app.services.payment_base import CheckoutSessionDetails

ModelT = TypeVar("ModelT", bound=BaseModel)

_MISSING_ERROR_TYPES = {"missing", "string_too_short"}


class OrderSessionMetadata(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    supabase_user_id: str = Field(min_length=1)
    package_id: str = Field(min_length=1)


class CartSummaryEntry(BaseModel):
    id: str = Field(min_length=1)
    q: int = Field(ge=1)


class AddonSessionMetadata(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    supabase_user_id: str = Field(min_length=1)
    main_order_id: str = Field(min_length=1)
    addon_delivery_date: date
    cart_items_summary: list[CartSummaryEntry] | None = None
    total_addon_price_cents: int | None = None

    @field_validator("cart_items_summary", mode="before")
    @classmethod
    def _decode_summary(cls, value: object) -> object:
        if isinstance(value, str):
            if not value.strip():
                return None
            return json.loads(value)
        return value


def parse_session_metadata(model: type[ModelT], session: CheckoutSessionDetails) -> ModelT:
    try:
        return model.model_validate(session.metadata)
    except PydanticValidationError as e:
        errors = e.errors()
        missing = [
            str(err["loc"][0]) for err in errors if err.get("type") in _MISSING_ERROR_TYPES
        ]
        if missing:
            raise MissingLinkageMetadata(session.session_id, missing) from e
        raise ValidationError(
            "Invalid order information in payment session.",
            {
                "session_id": session.session_id,
                "fields": [str(err["loc"][0]) for err in errors if err.get("loc")],
            },
        ) from e
