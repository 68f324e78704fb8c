from __future__ import annotations

from datetime import datetime

import pytest
from conftest import ADMIN_TOKEN
from fastapi.testclient import TestClient
from services.storefront.app.services.payment_base import PaymentIntentSummary
from services.storefront.app.services.payment_mock import mock_payments

ADMIN = {"X-Admin-Token": ADMIN_TOKEN}


def _intent(intent_id: str, cents: int, created_at: datetime, *, status: str = "succeeded",
            currency: str = "cad") -> None:
    mock_payments.add_intent(
        PaymentIntentSummary(
            intent_id=intent_id,
            status=status,
            currency=currency,
            amount_received=cents,
            created_at=created_at,
        )
    )


@pytest.fixture()
def intents() -> None:
    _intent("pi_1", 5999, datetime(2029, 1, 15))
    _intent("pi_2", 850, datetime(2029, 1, 31, 23, 59))
    _intent("pi_3", 21900, datetime(2029, 3, 2))
    _intent("pi_4", 1000, datetime(2029, 3, 3), status="canceled")
    _intent("pi_5", 1000, datetime(2029, 3, 4), currency="usd")
    _intent("pi_6", 4000, datetime(2030, 2, 1))


def test_total_revenue_counts_succeeded_intents_in_currency(
    client: TestClient, intents: None
) -> None:
    response = client.get("/v1/reports/revenue", headers=ADMIN)

    assert response.status_code == 200
    assert response.json()["data"] == {"total_revenue": "327.49", "currency": "CAD"}


def test_monthly_revenue_buckets(client: TestClient, intents: None) -> None:
    data = client.get(
        "/v1/reports/revenue/monthly", params={"year": 2029}, headers=ADMIN
    ).json()["data"]

    assert data["year"] == 2029
    assert len(data["months"]) == 12
    revenue = {m["month"]: m["revenue"] for m in data["months"]}
    assert revenue[1] == "68.49"
    assert revenue[2] == "0.00"
    assert revenue[3] == "219.00"


def test_customer_count(client: TestClient) -> None:
    mock_payments.create_customer(email="a@example.com", name="A", user_id="u-a")
    mock_payments.create_customer(email="b@example.com", name="B", user_id="u-b")

    response = client.get("/v1/reports/customers", headers=ADMIN)

    assert response.json()["data"] == {"total_customers": 2}


@pytest.mark.parametrize("headers", [{}, {"X-Admin-Token": "wrong"}])
def test_reports_require_admin_token(client: TestClient, headers: dict) -> None:
    response = client.get("/v1/reports/revenue", headers=headers)

    assert response.status_code == 403
    assert response.json()["success"] is False


def test_reports_disabled_without_configured_token(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("TIFFIN_ADMIN_TOKEN", raising=False)

    response = client.get("/v1/reports/customers", headers=ADMIN)

    assert response.status_code == 403
    assert response.json()["error"] == "Reporting is disabled."
