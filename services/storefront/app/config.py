from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "y"}


@dataclass(frozen=True, slots=True)
class Settings:
    """Runtime configuration.

    Read from the environment on every call so tests can override variables with
    monkeypatch before the first request.
    """

    site_url: str
    currency: str
    cart_storage_dir: Path
    cors_origins: list[str]
    allow_zero_day_packages: bool
    admin_token: str | None
    log_level: str

    @classmethod
    def from_env(cls) -> "Settings":
        origins = [
            o.strip() for o in os.getenv("TIFFIN_CORS_ORIGINS", "*").split(",") if o.strip()
        ]
        admin_token = os.getenv("TIFFIN_ADMIN_TOKEN", "").strip() or None

        return cls(
            site_url=os.getenv("TIFFIN_SITE_URL", "http://localhost:4321").rstrip("/"),
            currency=os.getenv("TIFFIN_CURRENCY", "cad").strip().lower(),
            cart_storage_dir=Path(
                os.getenv("TIFFIN_CART_STORAGE_DIR", ".local/carts")
            ).expanduser(),
            cors_origins=origins or ["*"],
            allow_zero_day_packages=_parse_bool(
                os.getenv("TIFFIN_ALLOW_ZERO_DAY_PACKAGES", "false")
            ),
            admin_token=admin_token,
            log_level=os.getenv("TIFFIN_LOG_LEVEL", "INFO").strip().upper(),
        )


def get_settings() -> Settings:
    return Settings.from_env()
