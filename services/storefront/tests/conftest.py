from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from services.storefront.app.services.auth_mock import mock_auth
from services.storefront.app.services.otp_mock import mock_otp
from services.storefront.app.services.payment_mock import mock_payments
from sqlalchemy.orm import Session

ADMIN_TOKEN = "admin-secret"
USER_ID = "user-1"
USER_PHONE = "+14165550100"


@pytest.fixture(autouse=True)
def _storefront_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    db_path = tmp_path / "storefront_test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{db_path}")
    monkeypatch.setenv("TIFFIN_DB_AUTO_CREATE", "true")
    monkeypatch.setenv("TIFFIN_PAYMENT_PROVIDER", "mock")
    monkeypatch.setenv("TIFFIN_OTP_PROVIDER", "mock")
    monkeypatch.setenv("TIFFIN_AUTH_PROVIDER", "mock")
    monkeypatch.setenv("TIFFIN_CART_STORAGE_DIR", str(tmp_path / "carts"))
    monkeypatch.setenv("TIFFIN_SITE_URL", "https://shop.example")
    monkeypatch.setenv("TIFFIN_ADMIN_TOKEN", ADMIN_TOKEN)
    monkeypatch.delenv("TIFFIN_ALLOW_ZERO_DAY_PACKAGES", raising=False)

    mock_payments.reset()
    mock_otp.reset()
    mock_auth.reset()
    yield
    mock_payments.reset()
    mock_otp.reset()
    mock_auth.reset()


@pytest.fixture()
def db() -> Iterator[Session]:
    from services.storefront.app.db.database import db_session
    from services.storefront.app.db.init_db import init_db

    init_db()
    session = db_session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client() -> Iterator[TestClient]:
    from services.storefront.app.main import app

    with TestClient(app) as c:
        yield c


@dataclass
class Seeded:
    user_id: str
    token: str
    package_id: str
    addon_ids: list[str]
    utc_today: date

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


@pytest.fixture()
def seeded(db: Session) -> Seeded:
    """Catalog, one customer and an every-day delivery calendar around today (UTC)."""

    from services.storefront.app.db.models import (
        Addon,
        DeliveryScheduleEntry,
        Package,
        Profile,
    )

    db.add_all(
        [
            Package(
                id="pkg-5",
                name="Trial Week",
                price=Decimal("59.99"),
                type="veg",
                days=5,
                is_active=True,
            ),
            Package(
                id="pkg-retired",
                name="Old Plan",
                price=Decimal("10.00"),
                type="veg",
                days=3,
                is_active=False,
            ),
            Addon(id="addon-roti", name="Extra Roti", price=Decimal("3.00")),
            Addon(id="addon-raita", name="Raita", price=Decimal("2.50")),
            Profile(
                id=USER_ID,
                full_name="Asha Rao",
                phone=USER_PHONE,
                is_phone_verified=False,
                address="100 Queen St W",
                city="Toronto",
                postal_code="M5H 2N2",
            ),
        ]
    )
    utc_today = datetime.utcnow().date()
    for offset in range(-2, 60):
        db.add(DeliveryScheduleEntry(event_date=utc_today + timedelta(days=offset)))
    db.commit()

    token = mock_auth.add_user(user_id=USER_ID, email="asha@example.com", phone=USER_PHONE)
    return Seeded(
        user_id=USER_ID,
        token=token,
        package_id="pkg-5",
        addon_ids=["addon-roti", "addon-raita"],
        utc_today=utc_today,
    )
