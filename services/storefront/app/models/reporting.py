from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel


class RevenueOut(BaseModel):
    total_revenue: Decimal
    currency: str


class MonthlyRevenueOut(BaseModel):
    month: int
    revenue: Decimal


class MonthlyRevenueReportOut(BaseModel):
    year: int
    currency: str
    months: list[MonthlyRevenueOut]


class CustomerCountOut(BaseModel):
    total_customers: int
