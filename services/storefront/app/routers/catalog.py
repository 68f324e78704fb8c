from __future__ import annotations

from datetime import date, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query
from packages.shared.schemas.envelope import ApiResponseV1, ok
from services.storefront.app.db.deps import get_db
from services.storefront.app.db.models import Addon, Package
from services.storefront.app.models.catalog import AddonOut, DeliveryScheduleEntryOut, PackageOut
from services.storefront.app.services.delivery_schedule import SqlDeliveryCalendar
from sqlalchemy.orm import Session

router = APIRouter()


@router.get("/v1/packages", response_model=ApiResponseV1[list[PackageOut]])
def list_packages(db: Session = Depends(get_db)) -> ApiResponseV1:
    rows = (
        db.query(Package)
        .filter(Package.is_active.is_(True))
        .order_by(Package.days.asc(), Package.name.asc())
        .all()
    )
    return ok([PackageOut.model_validate(r) for r in rows])


@router.get("/v1/addons", response_model=ApiResponseV1[list[AddonOut]])
def list_addons(db: Session = Depends(get_db)) -> ApiResponseV1:
    rows = db.query(Addon).order_by(Addon.name.asc()).all()
    return ok([AddonOut.model_validate(r) for r in rows])


@router.get(
    "/v1/delivery-schedule", response_model=ApiResponseV1[list[DeliveryScheduleEntryOut]]
)
def get_delivery_schedule(
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    db: Session = Depends(get_db),
) -> ApiResponseV1:
    start = start or date.today()
    # Default window: roughly two months ahead.
    end = end or start + timedelta(days=62)
    if end < start:
        raise HTTPException(status_code=400, detail="end must not be before start")

    entries = SqlDeliveryCalendar(db).entries_between(start, end)
    return ok([DeliveryScheduleEntryOut.model_validate(e) for e in entries])
