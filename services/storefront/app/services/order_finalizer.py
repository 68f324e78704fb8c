from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import uuid4

from packages.shared.schemas.events import EntityTypeV1, EventTypeV1
from services.storefront.app.db.models import Order, Package, Profile
from services.storefront.app.errors import (
    MissingLinkageMetadata,
    NotFound,
    PaymentNotConfirmed,
    ValidationError,
)
from services.storefront.app.services.auth_base import AuthProvider, AuthProviderError
from services.storefront.app.services.delivery_schedule import (
    DeliveryScheduleResolver,
    SqlDeliveryCalendar,
    earliest_candidate_for,
)
from services.storefront.app.services.order_repository import (
    find_order_by_payment,
    insert_or_fetch_existing,
    log_event,
)
from services.storefront.app.services.payment_base import PaymentProvider
from services.storefront.app.services.session_metadata import (
    OrderSessionMetadata,
    parse_session_metadata,
)
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FinalizeResult:
    order: Order
    created: bool


class OrderFinalizer:
    """Turns a paid package checkout session into exactly one order row."""

    def __init__(
        self,
        db: Session,
        payments: PaymentProvider,
        auth: AuthProvider,
        *,
        allow_zero_day: bool = False,
    ) -> None:
        self._db = db
        self._payments = payments
        self._auth = auth
        self._resolver = DeliveryScheduleResolver(
            SqlDeliveryCalendar(db), allow_zero_day=allow_zero_day
        )

    def finalize(self, checkout_session_id: str) -> FinalizeResult:
        session_id = (checkout_session_id or "").strip()
        if not session_id:
            raise ValidationError("Checkout session ID is required.")

        session = self._payments.get_checkout_session(session_id)
        if not session.is_paid:
            logger.warning(
                "Checkout session %s not paid (status=%s)", session_id, session.payment_status
            )
            raise PaymentNotConfirmed(session_id, session.payment_status)

        metadata = parse_session_metadata(OrderSessionMetadata, session)
        payment_id = session.payment_intent_id
        missing = []
        if not payment_id:
            missing.append("payment_intent")
        if not session.customer_id:
            missing.append("customer")
        if missing:
            raise MissingLinkageMetadata(session_id, missing)

        existing = find_order_by_payment(self._db, payment_id)
        if existing is not None:
            logger.info(
                "Order %s already exists for payment %s (session %s)",
                existing.id,
                payment_id,
                session_id,
            )
            return FinalizeResult(order=existing, created=False)

        package = self._db.get(Package, metadata.package_id)
        if package is None:
            raise NotFound("Package details not found.", {"package_id": metadata.package_id})

        profile = self._db.get(Profile, metadata.supabase_user_id)
        if profile is None:
            raise NotFound("User profile not found.", {"user_id": metadata.supabase_user_id})

        window = self._resolver.resolve(earliest_candidate_for(session.created_at), package.days)

        order = Order(
            id=str(uuid4()),
            user_id=profile.id,
            order_date=datetime.utcnow(),
            user_full_name=profile.full_name,
            user_email=self._lookup_email(profile.id),
            user_phone=profile.phone,
            package_id=package.id,
            package_name=package.name,
            package_type=package.type,
            package_days=package.days,
            package_price=package.price,
            delivery_address=profile.address,
            delivery_city=profile.city,
            delivery_postal_code=profile.postal_code,
            delivery_current_location=profile.current_location,
            stripe_payment_id=payment_id,
            stripe_customer_id=session.customer_id,
            order_status="confirmed",
            delivery_start_date=window.start_date,
            delivery_end_date=window.end_date,
        )
        log_event(
            self._db,
            user_id=profile.id,
            entity_type=EntityTypeV1.ORDER,
            entity_id=order.id,
            event_type=EventTypeV1.ORDER_FINALIZED,
            event_payload={
                "checkout_session_id": session_id,
                "package_id": package.id,
                "delivery_start_date": window.start_date.isoformat(),
                "delivery_end_date": window.end_date.isoformat(),
            },
        )

        order, created = insert_or_fetch_existing(
            self._db, order, Order.stripe_payment_id, payment_id
        )
        if created:
            logger.info(
                "Order %s created for user %s (%s to %s)",
                order.id,
                order.user_id,
                order.delivery_start_date,
                order.delivery_end_date,
            )
        return FinalizeResult(order=order, created=created)

    def _lookup_email(self, user_id: str) -> str | None:
        try:
            user = self._auth.get_user_by_id(user_id)
        except AuthProviderError as e:
            logger.warning("Could not fetch email for user %s: %s", user_id, e)
            return None
        return user.email if user else None
