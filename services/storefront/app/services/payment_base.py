from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from services.storefront.app.errors import RemoteServiceError


class PaymentProviderError(RemoteServiceError):
    """Base class for payment provider errors."""


class PaymentConfigurationError(PaymentProviderError):
    def __init__(self, missing: str) -> None:
        super().__init__(f"Payment processing configuration error: {missing} is not set.")
        self.missing = missing


class CheckoutSessionNotFound(PaymentProviderError):
    status_code = 404

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Checkout session not found: {session_id}", {"session_id": session_id})
        self.session_id = session_id


@dataclass(frozen=True, slots=True)
class CheckoutLineItem:
    name: str
    unit_amount: int  # minor units (cents)
    quantity: int
    image_url: str | None = None
    product_metadata: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CheckoutSessionRequest:
    line_items: list[CheckoutLineItem]
    success_url: str
    cancel_url: str
    currency: str
    metadata: dict[str, str]
    customer_id: str | None = None
    customer_email: str | None = None


@dataclass(frozen=True, slots=True)
class CreatedSession:
    session_id: str
    url: str | None


@dataclass(frozen=True, slots=True)
class SessionLineItem:
    product_id: str | None
    database_addon_id: str | None
    name: str
    unit_amount: int
    quantity: int


@dataclass(frozen=True, slots=True)
class CheckoutSessionDetails:
    session_id: str
    payment_status: str
    payment_intent_id: str | None
    customer_id: str | None
    metadata: dict[str, str]
    created_at: datetime
    amount_total: int | None
    currency: str | None
    line_items: list[SessionLineItem] = field(default_factory=list)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid"


@dataclass(frozen=True, slots=True)
class PaymentIntentSummary:
    intent_id: str
    status: str
    currency: str
    amount_received: int
    created_at: datetime


class PaymentProvider(Protocol):
    name: str

    def create_customer(self, *, email: str | None, name: str | None, user_id: str) -> str: ...

    def create_checkout_session(self, request: CheckoutSessionRequest) -> CreatedSession: ...

    def get_checkout_session(self, session_id: str) -> CheckoutSessionDetails: ...

    def list_payment_intents(
        self,
        *,
        created_gte: datetime | None = None,
        created_lte: datetime | None = None,
    ) -> Iterator[PaymentIntentSummary]: ...

    def count_customers(self) -> int: ...
