from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger with a single stdout handler.

    Safe to call more than once: the handler installed by a previous call is
    replaced, handlers installed by others (pytest, uvicorn) are left alone.
    """

    from services.storefront.app.config import get_settings

    log_level = (level or get_settings().log_level).upper()
    numeric_level = getattr(logging, log_level, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for existing in root_logger.handlers[:]:
        if getattr(existing, "_storefront", False):
            root_logger.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler._storefront = True  # type: ignore[attr-defined]
    root_logger.addHandler(handler)

    for noisy in ("httpx", "httpcore", "uvicorn.access", "stripe"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
