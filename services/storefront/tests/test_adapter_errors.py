from __future__ import annotations

import pytest
from conftest import Seeded
from fastapi.testclient import TestClient
from services.storefront.app.errors import (
    InsufficientScheduleCoverage,
    LineItemMismatch,
    MissingLinkageMetadata,
    NoAvailableStartDate,
    PaymentNotConfirmed,
)
from services.storefront.app.services.auth_factory import get_auth_provider
from services.storefront.app.services.otp_factory import get_otp_provider
from services.storefront.app.services.payment_base import (
    CheckoutSessionNotFound,
    PaymentConfigurationError,
    PaymentProviderError,
)
from services.storefront.app.services.payment_factory import get_payment_provider


class _RaisingPayments:
    name = "RAISING"

    def __init__(self, exc: Exception) -> None:
        self._exc = exc

    def get_checkout_session(self, session_id: str) -> object:
        del session_id
        raise self._exc


@pytest.mark.parametrize(
    ("exc", "status"),
    [
        (PaymentNotConfirmed("cs_1", "unpaid"), 402),
        (MissingLinkageMetadata("cs_1", ["package_id"]), 422),
        (NoAvailableStartDate("2030-01-01"), 409),
        (InsufficientScheduleCoverage("2030-01-01", 5, 2), 409),
        (LineItemMismatch("diverged"), 409),
        (CheckoutSessionNotFound("cs_1"), 404),
        (PaymentProviderError("stripe down"), 502),
    ],
)
def test_finalize_maps_errors(
    monkeypatch: pytest.MonkeyPatch,
    client: TestClient,
    exc: Exception,
    status: int,
) -> None:
    import services.storefront.app.routers.checkout as checkout_router

    monkeypatch.setattr(checkout_router, "get_payment_provider", lambda: _RaisingPayments(exc))

    for path, body in (
        ("/v1/checkout/finalize-order", {"checkout_session_id": "cs_1"}),
        ("/v1/checkout/finalize-addon-order", {"session_id": "cs_1"}),
    ):
        response = client.post(path, json=body)
        assert response.status_code == status
        assert response.json()["success"] is False
        assert response.json()["error"] == str(exc)


def test_unknown_error_is_500(monkeypatch: pytest.MonkeyPatch, client: TestClient) -> None:
    import services.storefront.app.routers.checkout as checkout_router

    monkeypatch.setattr(
        checkout_router, "get_payment_provider", lambda: _RaisingPayments(RuntimeError("x"))
    )

    response = client.post("/v1/checkout/finalize-order", json={"checkout_session_id": "cs_1"})
    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Internal Server Error"}


def test_unknown_provider_name_is_500(
    monkeypatch: pytest.MonkeyPatch, client: TestClient, seeded: Seeded
) -> None:
    monkeypatch.setenv("TIFFIN_PAYMENT_PROVIDER", "paypal")

    response = client.post(
        "/v1/checkout/package", json={"package_id": "pkg-5"}, headers=seeded.headers
    )
    assert response.status_code == 500
    assert "Unknown TIFFIN_PAYMENT_PROVIDER" in response.json()["error"]


def test_missing_stripe_key_is_a_remote_configuration_error(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("TIFFIN_PAYMENT_PROVIDER", "stripe")
    monkeypatch.delenv("STRIPE_SECRET_KEY", raising=False)

    with pytest.raises(PaymentConfigurationError, match="STRIPE_SECRET_KEY"):
        get_payment_provider()


def test_factories_default_to_mocks(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ("TIFFIN_PAYMENT_PROVIDER", "TIFFIN_OTP_PROVIDER", "TIFFIN_AUTH_PROVIDER"):
        monkeypatch.delenv(var, raising=False)

    assert get_payment_provider().name == "MOCK_PAYMENTS"
    assert get_otp_provider().name == "MOCK_OTP"
    assert get_auth_provider().name == "MOCK_AUTH"


@pytest.mark.parametrize(
    ("var", "factory"),
    [
        ("TIFFIN_PAYMENT_PROVIDER", get_payment_provider),
        ("TIFFIN_OTP_PROVIDER", get_otp_provider),
        ("TIFFIN_AUTH_PROVIDER", get_auth_provider),
    ],
)
def test_factories_reject_unknown(monkeypatch: pytest.MonkeyPatch, var: str, factory) -> None:
    monkeypatch.setenv(var, "nope")

    with pytest.raises(ValueError, match=f"Unknown {var}"):
        factory()


def test_request_validation_uses_the_envelope(client: TestClient, seeded: Seeded) -> None:
    response = client.post("/v1/cart/items", json={}, headers=seeded.headers)

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Invalid request."
    assert body["details"]["errors"]
