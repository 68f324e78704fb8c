from __future__ import annotations

import os

from services.storefront.app.services.payment_base import PaymentProvider
from services.storefront.app.services.payment_mock import mock_payments


def get_payment_provider() -> PaymentProvider:
    """Select a payment provider based on env vars.

    Defaults to the in-memory mock so tests and local dev never reach Stripe unless
    explicitly configured otherwise.
    """

    mode = os.getenv("TIFFIN_PAYMENT_PROVIDER", "mock").strip().lower()

    if mode == "mock":
        return mock_payments

    if mode == "stripe":
        from services.storefront.app.services.payment_stripe import StripePaymentProvider

        return StripePaymentProvider.from_env()

    raise ValueError(f"Unknown TIFFIN_PAYMENT_PROVIDER={mode!r}. Expected mock or stripe.")
