from pathlib import Path

from sqlalchemy import inspect


def test_init_db_creates_tables(tmp_path: Path, monkeypatch) -> None:
    db_path = tmp_path / "storefront_init.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{db_path}")
    monkeypatch.setenv("TIFFIN_DB_AUTO_CREATE", "true")

    from services.storefront.app.db.database import get_engine
    from services.storefront.app.db.init_db import init_db

    init_db()

    tables = set(inspect(get_engine()).get_table_names())

    assert {
        "packages",
        "addons",
        "profiles",
        "delivery_schedule",
        "orders",
        "addon_orders",
        "password_reset_attempts",
        "event_log",
    } <= tables


def test_init_db_respects_auto_create_flag(tmp_path: Path, monkeypatch) -> None:
    db_path = tmp_path / "storefront_skip.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{db_path}")
    monkeypatch.setenv("TIFFIN_DB_AUTO_CREATE", "false")

    from services.storefront.app.db.database import get_engine
    from services.storefront.app.db.init_db import init_db

    init_db()

    assert inspect(get_engine()).get_table_names() == []
