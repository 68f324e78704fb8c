from __future__ import annotations

import re
from typing import Protocol

from services.storefront.app.errors import RemoteServiceError, ValidationError

PHONE_RE = re.compile(r"^\+[1-9]\d{1,14}$")
CODE_RE = re.compile(r"^\d{4,10}$")

APPROVED = "approved"


class OtpProviderError(RemoteServiceError):
    """Base class for one-time-passcode provider errors."""


class OtpConfigurationError(OtpProviderError):
    def __init__(self, missing: str) -> None:
        super().__init__(f"Verification service configuration error: {missing} is not set.")
        self.missing = missing


def validate_phone(phone: str) -> str:
    phone = (phone or "").strip()
    if not PHONE_RE.match(phone):
        raise ValidationError(
            "Invalid phone number format. Please use E.164 format (e.g. +14155552671).",
            {"phone_number": phone},
        )
    return phone


def validate_code(code: str) -> str:
    code = (code or "").strip()
    if not CODE_RE.match(code):
        raise ValidationError("Invalid OTP code format. Must be 4-10 digits.")
    return code


class OtpProvider(Protocol):
    name: str

    def start_verification(self, phone: str) -> str:
        """Send a code to ``phone``; returns the provider status (usually "pending")."""

    def check_verification(self, phone: str, code: str) -> str:
        """Returns "approved" when ``code`` is valid for ``phone``."""
