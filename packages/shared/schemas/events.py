"""Shared event vocabulary (v1).

The backend stores an append-only event log of order and account milestones;
these enums are the values written to its entity_type and event_type columns.
"""

from __future__ import annotations

from enum import Enum


class EntityTypeV1(str, Enum):
    ORDER = "Order"
    ADDON_ORDER = "AddonOrder"
    PROFILE = "Profile"
    PASSWORD_RESET = "PasswordResetAttempt"


class EventTypeV1(str, Enum):
    ORDER_FINALIZED = "ORDER_FINALIZED"
    ADDON_ORDER_FINALIZED = "ADDON_ORDER_FINALIZED"
    PHONE_VERIFIED = "PHONE_VERIFIED"
    PASSWORD_RESET_REQUESTED = "PASSWORD_RESET_REQUESTED"
    PASSWORD_RESET_COMPLETED = "PASSWORD_RESET_COMPLETED"
    ACCOUNT_DELETED = "ACCOUNT_DELETED"
