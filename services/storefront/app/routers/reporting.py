from __future__ import annotations

import hmac
from datetime import datetime

from fastapi import APIRouter, Depends, Header, Query
from packages.shared.schemas.envelope import ApiResponseV1, ok
from services.storefront.app.config import get_settings
from services.storefront.app.errors import PermissionDenied
from services.storefront.app.models.reporting import (
    CustomerCountOut,
    MonthlyRevenueOut,
    MonthlyRevenueReportOut,
    RevenueOut,
)
from services.storefront.app.routers.common import factory_error, raise_http_error
from services.storefront.app.services import reporting
from services.storefront.app.services.payment_factory import get_payment_provider

router = APIRouter()


def require_admin(x_admin_token: str | None = Header(default=None)) -> None:
    expected = get_settings().admin_token
    if not expected:
        raise_http_error(PermissionDenied("Reporting is disabled."))
    if not x_admin_token or not hmac.compare_digest(x_admin_token, expected):
        raise_http_error(PermissionDenied("Admin token required."))


@router.get(
    "/v1/reports/revenue",
    response_model=ApiResponseV1[RevenueOut],
    dependencies=[Depends(require_admin)],
)
def get_total_revenue() -> ApiResponseV1:
    try:
        payments = get_payment_provider()
    except ValueError as e:
        factory_error(e)

    currency = get_settings().currency
    try:
        total = reporting.total_revenue(payments, currency)
    except Exception as e:
        raise_http_error(e)
    return ok(RevenueOut(total_revenue=total, currency=currency.upper()))


@router.get(
    "/v1/reports/revenue/monthly",
    response_model=ApiResponseV1[MonthlyRevenueReportOut],
    dependencies=[Depends(require_admin)],
)
def get_monthly_revenue(
    year: int | None = Query(default=None, ge=2000, le=9999),
) -> ApiResponseV1:
    try:
        payments = get_payment_provider()
    except ValueError as e:
        factory_error(e)

    year = year or datetime.utcnow().year
    currency = get_settings().currency
    try:
        months = reporting.monthly_revenue(payments, currency, year)
    except Exception as e:
        raise_http_error(e)
    return ok(
        MonthlyRevenueReportOut(
            year=year,
            currency=currency.upper(),
            months=[MonthlyRevenueOut(month=m.month, revenue=m.revenue) for m in months],
        )
    )


@router.get(
    "/v1/reports/customers",
    response_model=ApiResponseV1[CustomerCountOut],
    dependencies=[Depends(require_admin)],
)
def get_customer_count() -> ApiResponseV1:
    try:
        payments = get_payment_provider()
    except ValueError as e:
        factory_error(e)

    try:
        count = reporting.total_customers(payments)
    except Exception as e:
        raise_http_error(e)
    return ok(CustomerCountOut(total_customers=count))
