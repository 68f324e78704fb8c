from __future__ import annotations

import logging
from typing import Any, TypeVar
from uuid import uuid4

from packages.shared.schemas.events import EntityTypeV1, EventTypeV1
from services.storefront.app.db.models import AddonOrder, Base, EventLog, Order
from services.storefront.app.errors import RemoteServiceError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT", bound=Base)


def insert_or_fetch_existing(
    db: Session, row: RowT, unique_column: Any, value: str
) -> tuple[RowT, bool]:
    """Insert ``row`` or return the row that already owns ``value``.

    Everything pending in the session is committed with the row, so events logged
    beforehand land in the same transaction. A uniqueness conflict rolls all of it
    back and the winner of the race is returned with ``created=False``.
    """

    db.add(row)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        existing = db.query(type(row)).filter(unique_column == value).one_or_none()
        if existing is None:
            logger.error("Insert of %s failed without a conflicting row", type(row).__name__)
            raise RemoteServiceError(
                f"Failed to save {type(row).__name__}.", {"key": value}
            ) from e
        logger.warning(
            "Concurrent insert for %s %s; returning existing row", type(row).__name__, value
        )
        return existing, False

    return row, True


def find_order_by_payment(db: Session, stripe_payment_id: str) -> Order | None:
    return db.query(Order).filter(Order.stripe_payment_id == stripe_payment_id).one_or_none()


def find_addon_order_by_intent(db: Session, payment_intent_id: str) -> AddonOrder | None:
    return (
        db.query(AddonOrder)
        .filter(AddonOrder.stripe_payment_intent_id == payment_intent_id)
        .one_or_none()
    )


def log_event(
    db: Session,
    *,
    user_id: str | None,
    entity_type: EntityTypeV1,
    entity_id: str,
    event_type: EventTypeV1,
    event_payload: dict,
) -> None:
    db.add(
        EventLog(
            id=uuid4().hex,
            user_id=user_id,
            entity_type=entity_type.value,
            entity_id=entity_id,
            event_type=event_type.value,
            event_payload_json=event_payload,
        )
    )
