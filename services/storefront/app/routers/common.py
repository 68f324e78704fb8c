"""Dependencies and error translation shared by the storefront routers."""

from __future__ import annotations

import logging
from typing import NoReturn

from fastapi import Header, HTTPException
from services.storefront.app.config import get_settings
from services.storefront.app.errors import AuthenticationRequired, StorefrontError
from services.storefront.app.services.auth_base import AuthUser
from services.storefront.app.services.auth_factory import get_auth_provider
from services.storefront.app.services.cart_storage import FileCartStorage

logger = logging.getLogger(__name__)


def raise_http_error(e: Exception) -> NoReturn:
    if isinstance(e, StorefrontError):
        if e.status_code >= 500:
            logger.error("%s: %s", type(e).__name__, e)
        detail: object = {"error": e.message, "details": e.details} if e.details else e.message
        raise HTTPException(status_code=e.status_code, detail=detail) from e

    logger.exception("Unhandled error", exc_info=e)
    raise HTTPException(status_code=500, detail="Internal Server Error") from e


def factory_error(e: ValueError) -> NoReturn:
    raise HTTPException(status_code=500, detail=str(e)) from e


def current_user(authorization: str | None = Header(default=None)) -> AuthUser:
    token = ""
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    if not token:
        raise_http_error(AuthenticationRequired())

    try:
        auth = get_auth_provider()
    except ValueError as e:
        factory_error(e)

    try:
        user = auth.get_user(token)
    except Exception as e:
        raise_http_error(e)

    if user is None:
        raise_http_error(AuthenticationRequired("Invalid or expired session."))
    return user


def cart_storage_for(user_id: str) -> FileCartStorage:
    return FileCartStorage(get_settings().cart_storage_dir, user_id)
