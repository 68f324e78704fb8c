"""Delivery-window computation over a sparse calendar of delivery days.

Deliveries do not run every day (weekly rest days, public holidays), so day N of
an N-day package is not ``start + N - 1``. The resolver walks the enabled days
instead and either covers the whole paid-for duration or fails.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Protocol

from services.storefront.app.db.models import DeliveryScheduleEntry, Order
from services.storefront.app.errors import (
    InsufficientScheduleCoverage,
    InvalidPackageDuration,
    NoAvailableStartDate,
)
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class DeliveryCalendar(Protocol):
    def first_enabled_on_or_after(self, day: date) -> date | None: ...

    def enabled_days_from(self, day: date, limit: int) -> list[date]: ...

    def entries_between(self, start: date, end: date) -> list[DeliveryScheduleEntry]: ...


class SqlDeliveryCalendar:
    def __init__(self, db: Session) -> None:
        self._db = db

    def first_enabled_on_or_after(self, day: date) -> date | None:
        row = (
            self._db.query(DeliveryScheduleEntry.event_date)
            .filter(DeliveryScheduleEntry.is_delivery_enabled.is_(True))
            .filter(DeliveryScheduleEntry.event_date >= day)
            .order_by(DeliveryScheduleEntry.event_date.asc())
            .first()
        )
        return row[0] if row else None

    def enabled_days_from(self, day: date, limit: int) -> list[date]:
        if limit <= 0:
            return []
        rows = (
            self._db.query(DeliveryScheduleEntry.event_date)
            .filter(DeliveryScheduleEntry.is_delivery_enabled.is_(True))
            .filter(DeliveryScheduleEntry.event_date >= day)
            .order_by(DeliveryScheduleEntry.event_date.asc())
            .limit(limit)
            .all()
        )
        return [r[0] for r in rows]

    def entries_between(self, start: date, end: date) -> list[DeliveryScheduleEntry]:
        return (
            self._db.query(DeliveryScheduleEntry)
            .filter(DeliveryScheduleEntry.event_date >= start)
            .filter(DeliveryScheduleEntry.event_date <= end)
            .order_by(DeliveryScheduleEntry.event_date.asc())
            .all()
        )

    def is_enabled(self, day: date) -> bool:
        entry = self._db.get(DeliveryScheduleEntry, day)
        return bool(entry and entry.is_delivery_enabled)


@dataclass(frozen=True, slots=True)
class DeliveryWindow:
    start_date: date
    end_date: date
    delivery_days: int


class DeliveryScheduleResolver:
    def __init__(self, calendar: DeliveryCalendar, *, allow_zero_day: bool = False) -> None:
        self._calendar = calendar
        self._allow_zero_day = allow_zero_day

    def resolve(self, earliest_candidate_date: date, duration_days: int) -> DeliveryWindow:
        """Return the first ``duration_days`` enabled days on or after the candidate.

        Raises NoAvailableStartDate when no enabled day exists, and
        InsufficientScheduleCoverage when fewer than ``duration_days`` enabled days
        exist from the start date. A non-positive duration is rejected with
        InvalidPackageDuration unless zero-day packages are allowed, in which case
        the window is the start date alone.
        """

        start = self._calendar.first_enabled_on_or_after(earliest_candidate_date)
        if start is None:
            logger.error("No enabled delivery day on or after %s", earliest_candidate_date)
            raise NoAvailableStartDate(earliest_candidate_date)

        if duration_days <= 0:
            if not self._allow_zero_day:
                raise InvalidPackageDuration(duration_days)
            logger.warning(
                "Package duration is %s days; using a single-day window on %s",
                duration_days,
                start,
            )
            return DeliveryWindow(start_date=start, end_date=start, delivery_days=1)

        days = self._calendar.enabled_days_from(start, duration_days)
        if len(days) != duration_days:
            logger.error(
                "Only %d of %d delivery days available from %s",
                len(days),
                duration_days,
                start,
            )
            raise InsufficientScheduleCoverage(start, duration_days, len(days))

        return DeliveryWindow(start_date=start, end_date=days[-1], delivery_days=duration_days)


def earliest_candidate_for(placed_at: datetime) -> date:
    """Deliveries start no earlier than the day after the order was placed (UTC)."""

    if placed_at.tzinfo is not None:
        placed_at = placed_at.astimezone(timezone.utc)
    return placed_at.date() + timedelta(days=1)


def is_addon_date_selectable(
    calendar: SqlDeliveryCalendar, order: Order, day: date, today: date
) -> bool:
    if day < today:
        return False
    if order.delivery_start_date is None or order.delivery_end_date is None:
        return False
    if not (order.delivery_start_date <= day <= order.delivery_end_date):
        return False
    return calendar.is_enabled(day)
