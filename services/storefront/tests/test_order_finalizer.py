from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from conftest import USER_ID, Seeded
from services.storefront.app.db.models import DeliveryScheduleEntry, EventLog, Order
from services.storefront.app.errors import (
    InsufficientScheduleCoverage,
    MissingLinkageMetadata,
    NotFound,
    PaymentNotConfirmed,
    ValidationError,
)
from services.storefront.app.services import order_finalizer as finalizer_module
from services.storefront.app.services.auth_mock import mock_auth
from services.storefront.app.services.order_finalizer import OrderFinalizer
from services.storefront.app.services.payment_base import (
    CheckoutSessionDetails,
    CheckoutSessionNotFound,
)
from services.storefront.app.services.payment_mock import mock_payments
from sqlalchemy.orm import Session


def _paid_session(
    session_id: str = "cs_test_1",
    *,
    payment_status: str = "paid",
    metadata: dict[str, str] | None = None,
    payment_intent_id: str | None = "pi_1",
    customer_id: str | None = "cus_1",
    created_at: datetime | None = None,
) -> str:
    mock_payments.add_session(
        CheckoutSessionDetails(
            session_id=session_id,
            payment_status=payment_status,
            payment_intent_id=payment_intent_id,
            customer_id=customer_id,
            metadata=(
                {"supabase_user_id": USER_ID, "package_id": "pkg-5"}
                if metadata is None
                else metadata
            ),
            created_at=created_at or datetime.utcnow(),
            amount_total=5999,
            currency="cad",
        )
    )
    return session_id


def _finalizer(db: Session) -> OrderFinalizer:
    return OrderFinalizer(db, mock_payments, mock_auth)


def test_finalize_creates_order_with_resolved_window(db: Session, seeded: Seeded) -> None:
    result = _finalizer(db).finalize(_paid_session())

    assert result.created is True
    order = result.order
    assert order.user_id == USER_ID
    assert order.stripe_payment_id == "pi_1"
    assert order.stripe_customer_id == "cus_1"
    assert order.package_name == "Trial Week"
    assert order.package_days == 5
    assert order.user_email == "asha@example.com"
    assert order.delivery_address == "100 Queen St W"
    assert order.delivery_start_date == seeded.utc_today + timedelta(days=1)
    assert order.delivery_end_date == seeded.utc_today + timedelta(days=5)

    events = db.query(EventLog).filter(EventLog.entity_id == order.id).all()
    assert [e.event_type for e in events] == ["ORDER_FINALIZED"]


def test_finalize_twice_returns_the_same_order(db: Session, seeded: Seeded) -> None:
    session_id = _paid_session()
    finalizer = _finalizer(db)

    first = finalizer.finalize(session_id)
    second = finalizer.finalize(session_id)
    third = finalizer.finalize(session_id)

    assert second.created is False
    assert third.created is False
    assert second.order.id == first.order.id == third.order.id
    assert db.query(Order).count() == 1
    # Reloads leave only the original finalize event behind.
    assert db.query(EventLog).count() == 1


def test_unpaid_session_writes_nothing(db: Session, seeded: Seeded) -> None:
    session_id = _paid_session(payment_status="unpaid")

    with pytest.raises(PaymentNotConfirmed) as exc_info:
        _finalizer(db).finalize(session_id)

    assert exc_info.value.payment_status == "unpaid"
    assert db.query(Order).count() == 0
    assert db.query(EventLog).count() == 0


@pytest.mark.parametrize(
    ("kwargs", "missing"),
    [
        ({"metadata": {"package_id": "pkg-5"}}, ["supabase_user_id"]),
        ({"metadata": {"supabase_user_id": USER_ID, "package_id": " "}}, ["package_id"]),
        ({"payment_intent_id": None}, ["payment_intent"]),
        ({"customer_id": None}, ["customer"]),
    ],
)
def test_missing_linkage_is_rejected(
    db: Session, seeded: Seeded, kwargs: dict, missing: list[str]
) -> None:
    session_id = _paid_session(**kwargs)

    with pytest.raises(MissingLinkageMetadata) as exc_info:
        _finalizer(db).finalize(session_id)

    assert exc_info.value.missing == missing
    assert db.query(Order).count() == 0


def test_empty_and_unknown_session_ids(db: Session, seeded: Seeded) -> None:
    with pytest.raises(ValidationError):
        _finalizer(db).finalize("  ")
    with pytest.raises(CheckoutSessionNotFound):
        _finalizer(db).finalize("cs_missing")


def test_unknown_package_or_profile(db: Session, seeded: Seeded) -> None:
    with pytest.raises(NotFound, match="Package"):
        _finalizer(db).finalize(
            _paid_session("cs_a", metadata={"supabase_user_id": USER_ID, "package_id": "nope"})
        )
    with pytest.raises(NotFound, match="profile"):
        _finalizer(db).finalize(
            _paid_session(
                "cs_b",
                payment_intent_id="pi_2",
                metadata={"supabase_user_id": "ghost", "package_id": "pkg-5"},
            )
        )


def test_short_calendar_writes_nothing(db: Session, seeded: Seeded) -> None:
    cutoff = seeded.utc_today + timedelta(days=4)
    db.query(DeliveryScheduleEntry).filter(DeliveryScheduleEntry.event_date >= cutoff).delete()
    db.commit()

    with pytest.raises(InsufficientScheduleCoverage):
        _finalizer(db).finalize(_paid_session())

    assert db.query(Order).count() == 0
    assert db.query(EventLog).count() == 0


def test_concurrent_insert_returns_existing_row(
    db: Session, seeded: Seeded, monkeypatch: pytest.MonkeyPatch
) -> None:
    session_id = _paid_session()
    winner = _finalizer(db).finalize(session_id).order

    # Simulate a second request that checked for an existing order before the
    # first one committed.
    monkeypatch.setattr(finalizer_module, "find_order_by_payment", lambda db, payment_id: None)

    result = _finalizer(db).finalize(session_id)

    assert result.created is False
    assert result.order.id == winner.id
    assert db.query(Order).count() == 1
    assert db.query(EventLog).filter(EventLog.event_type == "ORDER_FINALIZED").count() == 1
