from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from services.storefront.app.errors import RemoteServiceError


class AuthProviderError(RemoteServiceError):
    """Base class for auth provider errors."""


class AuthConfigurationError(AuthProviderError):
    def __init__(self, missing: str) -> None:
        super().__init__(f"Auth configuration error: {missing} is not set.")
        self.missing = missing


@dataclass(frozen=True, slots=True)
class AuthUser:
    id: str
    email: str | None = None
    phone: str | None = None


class AuthProvider(Protocol):
    name: str

    def get_user(self, access_token: str) -> AuthUser | None: ...

    def get_user_by_id(self, user_id: str) -> AuthUser | None: ...

    def update_password(self, user_id: str, new_password: str) -> None: ...

    def confirm_phone(self, user_id: str) -> None: ...

    def delete_user(self, user_id: str) -> None: ...
