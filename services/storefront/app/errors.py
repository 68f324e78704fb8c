"""Storefront error taxonomy.

Every error a route can surface derives from StorefrontError and carries the HTTP
status it maps to. Adapter modules (payments, OTP, auth) subclass
RemoteServiceError so that callers can treat any remote failure uniformly.
"""

from __future__ import annotations

from typing import Any


class StorefrontError(Exception):
    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.__class__.__name__}({self.message!r}, {details_str})"
        return f"{self.__class__.__name__}({self.message!r})"


class ValidationError(StorefrontError):
    status_code = 400


class AuthenticationRequired(StorefrontError):
    status_code = 401

    def __init__(self, message: str = "User not authenticated.") -> None:
        super().__init__(message)


class PermissionDenied(StorefrontError):
    status_code = 403


class NotFound(StorefrontError):
    status_code = 404


class PaymentNotConfirmed(StorefrontError):
    status_code = 402

    def __init__(self, session_id: str, payment_status: str | None) -> None:
        super().__init__(
            f"Payment not confirmed. Status: {payment_status or 'unknown'}",
            details={"session_id": session_id, "payment_status": payment_status},
        )
        self.session_id = session_id
        self.payment_status = payment_status


class MissingLinkageMetadata(StorefrontError):
    status_code = 422

    def __init__(self, session_id: str, missing: list[str]) -> None:
        super().__init__(
            "Required order information missing from payment session: " + ", ".join(missing),
            details={"session_id": session_id, "missing": missing},
        )
        self.session_id = session_id
        self.missing = missing


class NoAvailableStartDate(StorefrontError):
    status_code = 409

    def __init__(self, earliest: object) -> None:
        super().__init__(
            "Currently no available delivery start dates. "
            "Please check the schedule or contact support.",
            details={"earliest_candidate_date": str(earliest)},
        )
        self.earliest = earliest


class InsufficientScheduleCoverage(StorefrontError):
    status_code = 409

    def __init__(self, start: object, requested_days: int, available_days: int) -> None:
        super().__init__(
            "Could not schedule full delivery duration: "
            f"{available_days} of {requested_days} delivery days available from {start}.",
            details={
                "start_date": str(start),
                "requested_days": requested_days,
                "available_days": available_days,
            },
        )
        self.start = start
        self.requested_days = requested_days
        self.available_days = available_days


class InvalidPackageDuration(StorefrontError):
    status_code = 409

    def __init__(self, duration_days: int) -> None:
        super().__init__(
            f"Package duration must be at least one delivery day, got {duration_days}.",
            details={"duration_days": duration_days},
        )
        self.duration_days = duration_days


class LineItemMismatch(StorefrontError):
    status_code = 409


class RemoteServiceError(StorefrontError):
    status_code = 502
