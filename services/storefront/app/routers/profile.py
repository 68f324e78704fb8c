from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from packages.shared.schemas.envelope import ApiResponseV1, ok
from packages.shared.schemas.events import EntityTypeV1, EventTypeV1
from services.storefront.app.db.deps import get_db
from services.storefront.app.db.models import Profile
from services.storefront.app.errors import NotFound
from services.storefront.app.models.profile import ProfileOut, ProfileUpdateRequest
from services.storefront.app.routers.common import (
    cart_storage_for,
    current_user,
    factory_error,
    raise_http_error,
)
from services.storefront.app.services.auth_base import AuthUser
from services.storefront.app.services.auth_factory import get_auth_provider
from services.storefront.app.services.order_repository import log_event
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_profile(db: Session, user: AuthUser) -> Profile:
    profile = db.get(Profile, user.id)
    if profile is None:
        raise_http_error(NotFound("User profile not found."))
    return profile


@router.get("/v1/profile", response_model=ApiResponseV1[ProfileOut])
def get_profile(
    user: AuthUser = Depends(current_user), db: Session = Depends(get_db)
) -> ApiResponseV1:
    return ok(ProfileOut.model_validate(_require_profile(db, user)))


@router.put("/v1/profile", response_model=ApiResponseV1[ProfileOut])
def update_profile(
    payload: ProfileUpdateRequest,
    user: AuthUser = Depends(current_user),
    db: Session = Depends(get_db),
) -> ApiResponseV1:
    profile = _require_profile(db, user)

    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(profile, field, value)
    if changes:
        profile.updated_at = datetime.utcnow()
        db.commit()

    return ok(ProfileOut.model_validate(profile), message="Profile updated.")


@router.delete("/v1/account", response_model=ApiResponseV1[None])
def delete_account(
    user: AuthUser = Depends(current_user), db: Session = Depends(get_db)
) -> ApiResponseV1:
    try:
        auth = get_auth_provider()
    except ValueError as e:
        factory_error(e)

    try:
        auth.delete_user(user.id)
    except Exception as e:
        raise_http_error(e)

    profile = db.get(Profile, user.id)
    if profile is not None:
        db.delete(profile)
    log_event(
        db,
        user_id=user.id,
        entity_type=EntityTypeV1.PROFILE,
        entity_id=user.id,
        event_type=EventTypeV1.ACCOUNT_DELETED,
        event_payload={},
    )
    db.commit()

    try:
        cart_storage_for(user.id).remove_all()
    except OSError as e:
        logger.warning("Could not remove cart document for user %s: %s", user.id, e)

    logger.info("Account %s deleted", user.id)
    return ok(None, message="Account deleted.")
