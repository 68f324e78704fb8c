from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import datetime, timedelta
from uuid import uuid4

from packages.shared.schemas.events import EntityTypeV1, EventTypeV1
from services.storefront.app.db.models import PasswordResetAttempt
from services.storefront.app.errors import ValidationError
from services.storefront.app.services.auth_base import AuthProvider
from services.storefront.app.services.order_repository import log_event
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

RESET_TOKEN_TTL = timedelta(minutes=15)
MIN_PASSWORD_LENGTH = 6


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def issue_reset_token(db: Session, user_id: str, *, now: datetime | None = None) -> str:
    """Replace any outstanding reset attempt for ``user_id`` with a fresh one.

    Only the hash is stored; the plaintext token is returned to the caller once.
    """

    now = now or datetime.utcnow()
    db.query(PasswordResetAttempt).filter(PasswordResetAttempt.user_id == user_id).delete(
        synchronize_session=False
    )

    token = secrets.token_hex(32)
    db.add(
        PasswordResetAttempt(
            id=uuid4().hex,
            user_id=user_id,
            hashed_token=hash_token(token),
            expires_at=now + RESET_TOKEN_TTL,
        )
    )
    db.commit()
    return token


def complete_reset(
    db: Session,
    auth: AuthProvider,
    reset_token: str,
    new_password: str,
    *,
    now: datetime | None = None,
) -> str:
    """Set a new password for the owner of ``reset_token``; returns the user id."""

    if not reset_token:
        raise ValidationError("Reset token is required.")
    if len(new_password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
        )

    now = now or datetime.utcnow()
    attempt = (
        db.query(PasswordResetAttempt)
        .filter(PasswordResetAttempt.hashed_token == hash_token(reset_token))
        .one_or_none()
    )
    if attempt is None:
        raise ValidationError("Invalid or expired reset token.")

    expires_at = attempt.expires_at
    if expires_at.tzinfo is not None:
        expires_at = expires_at.replace(tzinfo=None)
    if expires_at < now:
        db.delete(attempt)
        db.commit()
        raise ValidationError("Reset token has expired. Please request a new one.")

    auth.update_password(attempt.user_id, new_password)

    user_id = attempt.user_id
    db.delete(attempt)
    log_event(
        db,
        user_id=user_id,
        entity_type=EntityTypeV1.PASSWORD_RESET,
        entity_id=attempt.id,
        event_type=EventTypeV1.PASSWORD_RESET_COMPLETED,
        event_payload={},
    )
    db.commit()
    logger.info("Password reset completed for user %s", user_id)
    return user_id
