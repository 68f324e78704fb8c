from __future__ import annotations

from dataclasses import dataclass, field
from uuid import uuid4

from services.storefront.app.services.auth_base import AuthProviderError, AuthUser


@dataclass
class _MockAccount:
    user: AuthUser
    password: str
    phone_confirmed: bool = False
    tokens: set[str] = field(default_factory=set)


class MockAuthProvider:
    name = "MOCK_AUTH"

    def __init__(self) -> None:
        self._accounts: dict[str, _MockAccount] = {}
        self._tokens: dict[str, str] = {}

    def reset(self) -> None:
        self._accounts.clear()
        self._tokens.clear()

    def add_user(
        self,
        user_id: str | None = None,
        email: str | None = None,
        password: str = "password",
        phone: str | None = None,
    ) -> str:
        """Register a user and return a fresh access token for it."""

        user_id = user_id or str(uuid4())
        account = self._accounts.get(user_id)
        if account is None:
            account = _MockAccount(
                user=AuthUser(id=user_id, email=email, phone=phone), password=password
            )
            self._accounts[user_id] = account

        token = f"tok_{uuid4().hex}"
        account.tokens.add(token)
        self._tokens[token] = user_id
        return token

    def password_for(self, user_id: str) -> str | None:
        account = self._accounts.get(user_id)
        return account.password if account else None

    def is_phone_confirmed(self, user_id: str) -> bool:
        account = self._accounts.get(user_id)
        return bool(account and account.phone_confirmed)

    def get_user(self, access_token: str) -> AuthUser | None:
        user_id = self._tokens.get(access_token)
        if user_id is None:
            return None
        return self.get_user_by_id(user_id)

    def get_user_by_id(self, user_id: str) -> AuthUser | None:
        account = self._accounts.get(user_id)
        return account.user if account else None

    def update_password(self, user_id: str, new_password: str) -> None:
        self._require(user_id).password = new_password

    def confirm_phone(self, user_id: str) -> None:
        self._require(user_id).phone_confirmed = True

    def delete_user(self, user_id: str) -> None:
        account = self._require(user_id)
        for token in account.tokens:
            self._tokens.pop(token, None)
        del self._accounts[user_id]

    def _require(self, user_id: str) -> _MockAccount:
        account = self._accounts.get(user_id)
        if account is None:
            raise AuthProviderError(f"User not found: {user_id}", {"status": 404})
        return account


mock_auth = MockAuthProvider()
