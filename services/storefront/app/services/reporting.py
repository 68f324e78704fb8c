from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from services.storefront.app.services.payment_base import PaymentProvider

_CENTS = Decimal("100")


@dataclass(frozen=True, slots=True)
class MonthlyRevenue:
    month: int
    revenue: Decimal


def _counts_as_revenue(intent_status: str, intent_currency: str, currency: str) -> bool:
    return intent_status == "succeeded" and intent_currency == currency


def total_revenue(payments: PaymentProvider, currency: str) -> Decimal:
    currency = currency.lower()
    cents = sum(
        intent.amount_received
        for intent in payments.list_payment_intents()
        if _counts_as_revenue(intent.status, intent.currency, currency)
    )
    return (Decimal(cents) / _CENTS).quantize(Decimal("0.01"))


def monthly_revenue(payments: PaymentProvider, currency: str, year: int) -> list[MonthlyRevenue]:
    """Succeeded revenue for ``year`` bucketed by UTC calendar month (1-12)."""

    currency = currency.lower()
    buckets = [0] * 12
    intents = payments.list_payment_intents(
        created_gte=datetime(year, 1, 1),
        created_lte=datetime(year, 12, 31, 23, 59, 59),
    )
    for intent in intents:
        if intent.created_at.year != year:
            continue
        if _counts_as_revenue(intent.status, intent.currency, currency):
            buckets[intent.created_at.month - 1] += intent.amount_received

    return [
        MonthlyRevenue(month=i + 1, revenue=(Decimal(c) / _CENTS).quantize(Decimal("0.01")))
        for i, c in enumerate(buckets)
    ]


def total_customers(payments: PaymentProvider) -> int:
    return payments.count_customers()
