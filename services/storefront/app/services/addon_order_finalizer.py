from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from uuid import uuid4

from packages.shared.schemas.events import EntityTypeV1, EventTypeV1
from services.storefront.app.db.models import AddonOrder, Order
from services.storefront.app.errors import (
    LineItemMismatch,
    MissingLinkageMetadata,
    NotFound,
    PaymentNotConfirmed,
    ValidationError,
)
from services.storefront.app.services.order_repository import (
    find_addon_order_by_intent,
    insert_or_fetch_existing,
    log_event,
)
from services.storefront.app.services.payment_base import (
    CheckoutSessionDetails,
    PaymentProvider,
)
from services.storefront.app.services.session_metadata import (
    AddonSessionMetadata,
    parse_session_metadata,
)
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

_CENTS = Decimal("100")


@dataclass(frozen=True, slots=True)
class AddonFinalizeResult:
    addon_order: AddonOrder
    created: bool


class AddonOrderFinalizer:
    """Turns a paid addon checkout session into exactly one addon order row.

    The processor's line items are the record of what was bought. The cart
    summary carried in the session metadata is only a cross-check.
    """

    def __init__(self, db: Session, payments: PaymentProvider) -> None:
        self._db = db
        self._payments = payments

    def finalize(self, checkout_session_id: str) -> AddonFinalizeResult:
        session_id = (checkout_session_id or "").strip()
        if not session_id:
            raise ValidationError("Session ID is required.")

        session = self._payments.get_checkout_session(session_id)
        if not session.is_paid:
            logger.warning(
                "Addon checkout session %s not paid (status=%s)",
                session_id,
                session.payment_status,
            )
            raise PaymentNotConfirmed(session_id, session.payment_status)

        intent_id = session.payment_intent_id
        if not intent_id:
            raise MissingLinkageMetadata(session_id, ["payment_intent"])

        existing = find_addon_order_by_intent(self._db, intent_id)
        if existing is not None:
            logger.info(
                "Addon order %s already exists for intent %s (session %s)",
                existing.id,
                intent_id,
                session_id,
            )
            return AddonFinalizeResult(addon_order=existing, created=False)

        metadata = parse_session_metadata(AddonSessionMetadata, session)
        addons_ordered = _addons_from_line_items(session)

        if metadata.cart_items_summary is not None:
            expected = Counter()
            for entry in metadata.cart_items_summary:
                expected[entry.id] += entry.q
            actual = Counter()
            for entry in addons_ordered:
                actual[entry["addon_id"]] += entry["quantity"]
            if expected != actual:
                logger.error("Line items for session %s diverge from cart summary", session_id)
                raise LineItemMismatch(
                    "Purchased items do not match the cart summary for this payment.",
                    {
                        "session_id": session_id,
                        "cart_items_summary": dict(expected),
                        "line_items": dict(actual),
                    },
                )

        main_order = self._db.get(Order, metadata.main_order_id)
        if main_order is None or main_order.user_id != metadata.supabase_user_id:
            raise NotFound(
                "Main order not found for this customer.",
                {"main_order_id": metadata.main_order_id},
            )

        expected_cents = metadata.total_addon_price_cents
        if (
            expected_cents is not None
            and session.amount_total is not None
            and expected_cents != session.amount_total
        ):
            logger.error(
                "Amount charged for session %s (%s) differs from cart total (%s)",
                session_id,
                session.amount_total,
                expected_cents,
            )
            raise LineItemMismatch(
                "Amount charged does not match the cart total for this payment.",
                {
                    "session_id": session_id,
                    "total_addon_price_cents": expected_cents,
                    "amount_total": session.amount_total,
                },
            )

        if session.amount_total is not None:
            total = Decimal(session.amount_total) / _CENTS
        else:
            total = sum(
                (Decimal(i.unit_amount * i.quantity) / _CENTS for i in session.line_items),
                Decimal("0"),
            )

        addon_order = AddonOrder(
            id=str(uuid4()),
            user_id=metadata.supabase_user_id,
            main_order_id=main_order.id,
            addon_delivery_date=metadata.addon_delivery_date,
            addons_ordered=addons_ordered,
            total_addon_price=total.quantize(Decimal("0.01")),
            currency=(session.currency or "cad").upper(),
            stripe_payment_intent_id=intent_id,
        )
        log_event(
            self._db,
            user_id=metadata.supabase_user_id,
            entity_type=EntityTypeV1.ADDON_ORDER,
            entity_id=addon_order.id,
            event_type=EventTypeV1.ADDON_ORDER_FINALIZED,
            event_payload={
                "checkout_session_id": session_id,
                "main_order_id": main_order.id,
                "addon_delivery_date": metadata.addon_delivery_date.isoformat(),
                "item_count": sum(a["quantity"] for a in addons_ordered),
            },
        )

        addon_order, created = insert_or_fetch_existing(
            self._db, addon_order, AddonOrder.stripe_payment_intent_id, intent_id
        )
        if created:
            logger.info(
                "Addon order %s created for order %s on %s",
                addon_order.id,
                addon_order.main_order_id,
                addon_order.addon_delivery_date,
            )
        return AddonFinalizeResult(addon_order=addon_order, created=created)


def _addons_from_line_items(session: CheckoutSessionDetails) -> list[dict]:
    if not session.line_items:
        raise LineItemMismatch(
            "No purchased items found for this payment.", {"session_id": session.session_id}
        )

    addons = []
    for item in session.line_items:
        if not item.database_addon_id:
            raise LineItemMismatch(
                f"Purchased item {item.name!r} is not linked to a catalog addon.",
                {"session_id": session.session_id, "product_id": item.product_id},
            )
        addons.append(
            {
                "addon_id": item.database_addon_id,
                "name": item.name,
                "price_at_purchase": str(
                    (Decimal(item.unit_amount) / _CENTS).quantize(Decimal("0.01"))
                ),
                "quantity": item.quantity,
            }
        )
    return addons
