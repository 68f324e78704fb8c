from __future__ import annotations

import argparse
from datetime import date, timedelta
from decimal import Decimal

from services.storefront.app.db.database import db_session
from services.storefront.app.db.init_db import init_db
from services.storefront.app.db.models import (
    Addon,
    DeliveryScheduleEntry,
    Package,
    Profile,
)


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed local storefront data")
    parser.add_argument("--user-id", default="u-1")
    parser.add_argument("--user-name", default="Local Customer")
    parser.add_argument("--phone", default="+14165550100")
    parser.add_argument("--days", type=int, default=60, help="calendar days to open")
    args = parser.parse_args()

    init_db()

    db = db_session()
    try:
        for pid, name, ptype, days, price in (
            ("pkg-trial", "Trial Week", "veg", 5, Decimal("59.99")),
            ("pkg-monthly-veg", "Monthly Veg", "veg", 20, Decimal("219.00")),
            ("pkg-monthly-nonveg", "Monthly Non-Veg", "non-veg", 20, Decimal("249.00")),
        ):
            if db.get(Package, pid) is None:
                db.add(
                    Package(
                        id=pid,
                        name=name,
                        description=f"{days} tiffin deliveries",
                        price=price,
                        type=ptype,
                        days=days,
                        is_active=True,
                    )
                )

        for aid, name, price in (
            ("addon-roti", "Extra Roti (4)", Decimal("3.00")),
            ("addon-raita", "Raita", Decimal("2.50")),
            ("addon-gulab-jamun", "Gulab Jamun (2)", Decimal("4.00")),
        ):
            if db.get(Addon, aid) is None:
                db.add(Addon(id=aid, name=name, price=price))

        if db.get(Profile, args.user_id) is None:
            db.add(
                Profile(
                    id=args.user_id,
                    full_name=args.user_name,
                    phone=args.phone,
                    is_phone_verified=True,
                    address="100 Queen St W",
                    city="Toronto",
                    postal_code="M5H 2N2",
                )
            )

        # Weekdays deliver, weekends are off.
        today = date.today()
        for offset in range(args.days):
            day = today + timedelta(days=offset)
            if db.get(DeliveryScheduleEntry, day) is None:
                db.add(
                    DeliveryScheduleEntry(
                        event_date=day,
                        is_delivery_enabled=day.weekday() < 5,
                        notes=None if day.weekday() < 5 else "Weekend",
                    )
                )

        db.commit()
        print(f"Seeded catalog, profile={args.user_id}, {args.days} calendar days")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
