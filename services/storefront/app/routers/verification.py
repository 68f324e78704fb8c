from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from packages.shared.schemas.envelope import ApiResponseV1, ok
from packages.shared.schemas.events import EntityTypeV1, EventTypeV1
from services.storefront.app.db.deps import get_db
from services.storefront.app.db.models import Profile
from services.storefront.app.errors import NotFound, PermissionDenied, ValidationError
from services.storefront.app.models.verification import (
    PhoneCodeRequest,
    PhoneRequest,
    ResetCompleteRequest,
    ResetTokenOut,
    VerificationStatusOut,
)
from services.storefront.app.routers.common import current_user, factory_error, raise_http_error
from services.storefront.app.services.auth_base import AuthUser
from services.storefront.app.services.auth_factory import get_auth_provider
from services.storefront.app.services.order_repository import log_event
from services.storefront.app.services.otp_base import APPROVED, validate_code, validate_phone
from services.storefront.app.services.otp_factory import get_otp_provider
from services.storefront.app.services.password_reset import (
    RESET_TOKEN_TTL,
    complete_reset,
    issue_reset_token,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

router = APIRouter()


def _start(phone: str) -> str:
    try:
        otp = get_otp_provider()
    except ValueError as e:
        factory_error(e)
    try:
        return otp.start_verification(phone)
    except Exception as e:
        raise_http_error(e)


def _check(phone: str, code: str) -> None:
    try:
        otp = get_otp_provider()
    except ValueError as e:
        factory_error(e)
    try:
        status = otp.check_verification(phone, code)
    except Exception as e:
        raise_http_error(e)
    if status != APPROVED:
        raise_http_error(
            ValidationError(f"Verification failed. Status: {status}", {"status": status})
        )


def _validated(phone: str, code: str | None = None) -> str:
    try:
        phone = validate_phone(phone)
        if code is not None:
            validate_code(code)
    except ValidationError as e:
        raise_http_error(e)
    return phone


@router.post("/v1/verification/send", response_model=ApiResponseV1[VerificationStatusOut])
def send_verification(
    payload: PhoneRequest,
    user: AuthUser = Depends(current_user),
    db: Session = Depends(get_db),
) -> ApiResponseV1:
    phone = _validated(payload.phone_number)

    profile = db.get(Profile, user.id)
    if profile is None:
        raise_http_error(NotFound("User profile not found."))
    if profile.is_phone_verified:
        raise_http_error(ValidationError("Phone number is already verified."))

    status = _start(phone)
    return ok(VerificationStatusOut(status=status), message="Verification code sent.")


@router.post("/v1/verification/verify", response_model=ApiResponseV1[VerificationStatusOut])
def verify_phone(
    payload: PhoneCodeRequest,
    user: AuthUser = Depends(current_user),
    db: Session = Depends(get_db),
) -> ApiResponseV1:
    phone = _validated(payload.phone_number, payload.otp_code)

    profile = db.get(Profile, user.id)
    if profile is None:
        raise_http_error(NotFound("User profile not found."))

    _check(phone, payload.otp_code.strip())

    profile.phone = phone
    profile.is_phone_verified = True
    log_event(
        db,
        user_id=user.id,
        entity_type=EntityTypeV1.PROFILE,
        entity_id=user.id,
        event_type=EventTypeV1.PHONE_VERIFIED,
        event_payload={},
    )
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise_http_error(
            ValidationError("This phone number is already linked to another account.")
        )

    try:
        get_auth_provider().confirm_phone(user.id)
    except Exception as e:
        # The profile flag is what the storefront checks; the auth flag is advisory.
        logger.warning("Could not confirm phone on auth user %s: %s", user.id, e)

    return ok(VerificationStatusOut(status=APPROVED), message="Phone number verified.")


@router.post("/v1/password-reset/request", response_model=ApiResponseV1[VerificationStatusOut])
def request_password_reset(
    payload: PhoneRequest, db: Session = Depends(get_db)
) -> ApiResponseV1:
    phone = _validated(payload.phone_number)

    profile = db.query(Profile).filter(Profile.phone == phone).one_or_none()
    if profile is None:
        raise_http_error(NotFound("No account found for this phone number."))
    if not profile.is_phone_verified:
        raise_http_error(
            PermissionDenied("Phone number is not verified. Password reset is unavailable.")
        )

    status = _start(phone)
    log_event(
        db,
        user_id=profile.id,
        entity_type=EntityTypeV1.PASSWORD_RESET,
        entity_id=profile.id,
        event_type=EventTypeV1.PASSWORD_RESET_REQUESTED,
        event_payload={},
    )
    db.commit()
    return ok(VerificationStatusOut(status=status), message="Verification code sent.")


@router.post("/v1/password-reset/verify", response_model=ApiResponseV1[ResetTokenOut])
def verify_password_reset(
    payload: PhoneCodeRequest, db: Session = Depends(get_db)
) -> ApiResponseV1:
    phone = _validated(payload.phone_number, payload.otp_code)

    profile = db.query(Profile).filter(Profile.phone == phone).one_or_none()
    if profile is None:
        raise_http_error(NotFound("No account found for this phone number."))

    _check(phone, payload.otp_code.strip())

    token = issue_reset_token(db, profile.id)
    return ok(
        ResetTokenOut(
            reset_token=token, expires_in_seconds=int(RESET_TOKEN_TTL.total_seconds())
        ),
        message="Code verified. You can now set a new password.",
    )


@router.post("/v1/password-reset/complete", response_model=ApiResponseV1[None])
def complete_password_reset(
    payload: ResetCompleteRequest, db: Session = Depends(get_db)
) -> ApiResponseV1:
    try:
        auth = get_auth_provider()
    except ValueError as e:
        factory_error(e)

    try:
        complete_reset(db, auth, payload.reset_token, payload.new_password)
    except Exception as e:
        raise_http_error(e)

    return ok(None, message="Password updated successfully.")
