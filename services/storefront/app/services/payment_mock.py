from __future__ import annotations

from collections.abc import Iterator
from dataclasses import replace
from datetime import datetime
from uuid import uuid4

from services.storefront.app.services.payment_base import (
    CheckoutSessionDetails,
    CheckoutSessionNotFound,
    CheckoutSessionRequest,
    CreatedSession,
    PaymentIntentSummary,
    SessionLineItem,
)


class MockPaymentProvider:
    """In-memory payment processor.

    Sessions start unpaid; tests and local demos settle them with mark_paid().
    """

    name = "MOCK_PAYMENTS"

    def __init__(self) -> None:
        self._sessions: dict[str, CheckoutSessionDetails] = {}
        self._customers: dict[str, str] = {}
        self._intents: list[PaymentIntentSummary] = []

    def reset(self) -> None:
        self._sessions.clear()
        self._customers.clear()
        self._intents.clear()

    def create_customer(self, *, email: str | None, name: str | None, user_id: str) -> str:
        del email, name
        customer_id = f"cus_{uuid4().hex[:14]}"
        self._customers[customer_id] = user_id
        return customer_id

    def create_checkout_session(self, request: CheckoutSessionRequest) -> CreatedSession:
        session_id = f"cs_test_{uuid4().hex[:16]}"
        line_items = [
            SessionLineItem(
                product_id=f"prod_{uuid4().hex[:10]}",
                database_addon_id=item.product_metadata.get("database_addon_id"),
                name=item.name,
                unit_amount=item.unit_amount,
                quantity=item.quantity,
            )
            for item in request.line_items
        ]
        self._sessions[session_id] = CheckoutSessionDetails(
            session_id=session_id,
            payment_status="unpaid",
            payment_intent_id=None,
            customer_id=request.customer_id,
            metadata=dict(request.metadata),
            created_at=datetime.utcnow(),
            amount_total=sum(i.unit_amount * i.quantity for i in request.line_items),
            currency=request.currency,
            line_items=line_items,
        )
        return CreatedSession(
            session_id=session_id, url=f"https://checkout.mock.local/pay/{session_id}"
        )

    def add_session(self, session: CheckoutSessionDetails) -> None:
        self._sessions[session.session_id] = session

    def mark_paid(self, session_id: str) -> CheckoutSessionDetails:
        session = self.get_checkout_session(session_id)
        paid = replace(
            session,
            payment_status="paid",
            payment_intent_id=session.payment_intent_id or f"pi_{uuid4().hex[:16]}",
            customer_id=session.customer_id or f"cus_{uuid4().hex[:14]}",
        )
        self._sessions[session_id] = paid
        self._intents.append(
            PaymentIntentSummary(
                intent_id=paid.payment_intent_id or "",
                status="succeeded",
                currency=(paid.currency or "cad").lower(),
                amount_received=paid.amount_total or 0,
                created_at=paid.created_at,
            )
        )
        return paid

    def add_intent(self, intent: PaymentIntentSummary) -> None:
        self._intents.append(intent)

    def get_checkout_session(self, session_id: str) -> CheckoutSessionDetails:
        session = self._sessions.get(session_id)
        if session is None:
            raise CheckoutSessionNotFound(session_id)
        return session

    def list_payment_intents(
        self,
        *,
        created_gte: datetime | None = None,
        created_lte: datetime | None = None,
    ) -> Iterator[PaymentIntentSummary]:
        for intent in self._intents:
            if created_gte is not None and intent.created_at < created_gte:
                continue
            if created_lte is not None and intent.created_at > created_lte:
                continue
            yield intent

    def count_customers(self) -> int:
        return len(self._customers)


mock_payments = MockPaymentProvider()
