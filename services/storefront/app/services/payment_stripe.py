from __future__ import annotations

import os
from collections.abc import Iterator
from datetime import datetime, timezone
from typing import Any

import stripe
from services.storefront.app.services.payment_base import (
    CheckoutSessionDetails,
    CheckoutSessionNotFound,
    CheckoutSessionRequest,
    CreatedSession,
    PaymentConfigurationError,
    PaymentIntentSummary,
    PaymentProviderError,
    SessionLineItem,
)


_SESSION_EXPAND = [
    "customer",
    "payment_intent",
    "line_items",
    "line_items.data.price.product",
]


class StripePaymentProvider:
    """Payment provider backed by Stripe Checkout.

    Env vars:
    - TIFFIN_PAYMENT_PROVIDER=stripe
    - STRIPE_SECRET_KEY
    """

    name = "STRIPE"

    def __init__(self, *, api_key: str) -> None:
        self._api_key = api_key

    @classmethod
    def from_env(cls) -> "StripePaymentProvider":
        api_key = os.getenv("STRIPE_SECRET_KEY", "").strip()
        if not api_key:
            raise PaymentConfigurationError("STRIPE_SECRET_KEY")
        return cls(api_key=api_key)

    def create_customer(self, *, email: str | None, name: str | None, user_id: str) -> str:
        try:
            customer = stripe.Customer.create(
                api_key=self._api_key,
                email=email,
                name=name,
                metadata={"supabase_user_id": user_id},
            )
        except stripe.StripeError as e:
            raise PaymentProviderError(f"Stripe customer creation failed: {e}") from e
        return customer["id"]

    def create_checkout_session(self, request: CheckoutSessionRequest) -> CreatedSession:
        line_items = []
        for item in request.line_items:
            product_data: dict[str, Any] = {"name": item.name}
            if item.image_url:
                product_data["images"] = [item.image_url]
            if item.product_metadata:
                product_data["metadata"] = dict(item.product_metadata)
            line_items.append(
                {
                    "price_data": {
                        "currency": request.currency,
                        "product_data": product_data,
                        "unit_amount": item.unit_amount,
                    },
                    "quantity": item.quantity,
                }
            )

        params: dict[str, Any] = {
            "payment_method_types": ["card"],
            "mode": "payment",
            "line_items": line_items,
            "success_url": request.success_url,
            "cancel_url": request.cancel_url,
            "metadata": dict(request.metadata),
        }
        if request.customer_id:
            params["customer"] = request.customer_id
        elif request.customer_email:
            params["customer_email"] = request.customer_email

        try:
            session = stripe.checkout.Session.create(api_key=self._api_key, **params)
        except stripe.StripeError as e:
            raise PaymentProviderError(f"Stripe checkout session creation failed: {e}") from e

        if not session.get("id"):
            raise PaymentProviderError("Stripe returned a checkout session without an id.")
        return CreatedSession(session_id=session["id"], url=session.get("url"))

    def get_checkout_session(self, session_id: str) -> CheckoutSessionDetails:
        try:
            session = stripe.checkout.Session.retrieve(
                session_id, api_key=self._api_key, expand=_SESSION_EXPAND
            )
        except stripe.InvalidRequestError as e:
            raise CheckoutSessionNotFound(session_id) from e
        except stripe.StripeError as e:
            raise PaymentProviderError(f"Stripe session retrieval failed: {e}") from e

        line_items_obj = session.get("line_items") or {}
        line_items = [_line_item(item) for item in (line_items_obj.get("data") or [])]

        return CheckoutSessionDetails(
            session_id=session["id"],
            payment_status=session.get("payment_status") or "",
            payment_intent_id=_id_of(session.get("payment_intent")),
            customer_id=_id_of(session.get("customer")),
            metadata={str(k): str(v) for k, v in (session.get("metadata") or {}).items()},
            created_at=_from_timestamp(session.get("created")),
            amount_total=session.get("amount_total"),
            currency=session.get("currency"),
            line_items=line_items,
        )

    def list_payment_intents(
        self,
        *,
        created_gte: datetime | None = None,
        created_lte: datetime | None = None,
    ) -> Iterator[PaymentIntentSummary]:
        params: dict[str, Any] = {"limit": 100}
        created: dict[str, int] = {}
        if created_gte is not None:
            created["gte"] = int(created_gte.replace(tzinfo=timezone.utc).timestamp())
        if created_lte is not None:
            created["lte"] = int(created_lte.replace(tzinfo=timezone.utc).timestamp())
        if created:
            params["created"] = created

        try:
            page = stripe.PaymentIntent.list(api_key=self._api_key, **params)
            for intent in page.auto_paging_iter():
                yield PaymentIntentSummary(
                    intent_id=intent["id"],
                    status=intent.get("status") or "",
                    currency=(intent.get("currency") or "").lower(),
                    amount_received=int(intent.get("amount_received") or 0),
                    created_at=_from_timestamp(intent.get("created")),
                )
        except stripe.StripeError as e:
            raise PaymentProviderError(f"Stripe payment intent listing failed: {e}") from e

    def count_customers(self) -> int:
        try:
            page = stripe.Customer.list(api_key=self._api_key, limit=100)
            return sum(1 for _ in page.auto_paging_iter())
        except stripe.StripeError as e:
            raise PaymentProviderError(f"Stripe customer listing failed: {e}") from e


def _id_of(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return value.get("id")


def _from_timestamp(value: Any) -> datetime:
    # Naive UTC, matching the rest of the storefront's timestamps.
    if value is None:
        return datetime.utcnow()
    return datetime.fromtimestamp(int(value), tz=timezone.utc).replace(tzinfo=None)


def _line_item(item: Any) -> SessionLineItem:
    price = item.get("price") or {}
    product = price.get("product") if hasattr(price, "get") else None
    product_id = _id_of(product)
    product_metadata = product.get("metadata") if product and not isinstance(product, str) else {}
    name = (
        (product.get("name") if product and not isinstance(product, str) else None)
        or item.get("description")
        or "Unknown Addon"
    )

    return SessionLineItem(
        product_id=product_id,
        database_addon_id=(product_metadata or {}).get("database_addon_id"),
        name=name,
        unit_amount=int(price.get("unit_amount") or 0),
        quantity=int(item.get("quantity") or 0),
    )
