from __future__ import annotations

import json
import os
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any

from services.storefront.app.services.auth_base import (
    AuthConfigurationError,
    AuthProviderError,
    AuthUser,
)


@dataclass(frozen=True)
class SupabaseAuthConfig:
    url: str
    service_role_key: str
    timeout_s: float = 15.0


class SupabaseAuthProvider:
    """Supabase Auth (GoTrue) over REST.

    Env vars:
    - TIFFIN_AUTH_PROVIDER=supabase
    - SUPABASE_URL
    - SUPABASE_SERVICE_ROLE_KEY
    """

    name = "SUPABASE_AUTH"

    def __init__(self, config: SupabaseAuthConfig) -> None:
        self._config = config

    @classmethod
    def from_env(cls) -> "SupabaseAuthProvider":
        url = os.getenv("SUPABASE_URL", "").strip().rstrip("/")
        if not url:
            raise AuthConfigurationError("SUPABASE_URL")
        key = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "").strip()
        if not key:
            raise AuthConfigurationError("SUPABASE_SERVICE_ROLE_KEY")
        return cls(SupabaseAuthConfig(url=url, service_role_key=key))

    def get_user(self, access_token: str) -> AuthUser | None:
        try:
            body = self._request("GET", "/auth/v1/user", bearer=access_token)
        except AuthProviderError as e:
            if e.details.get("status") in (401, 403, 404):
                return None
            raise
        return _to_user(body)

    def get_user_by_id(self, user_id: str) -> AuthUser | None:
        try:
            body = self._request("GET", f"/auth/v1/admin/users/{user_id}")
        except AuthProviderError as e:
            if e.details.get("status") == 404:
                return None
            raise
        return _to_user(body)

    def update_password(self, user_id: str, new_password: str) -> None:
        self._request("PUT", f"/auth/v1/admin/users/{user_id}", {"password": new_password})

    def confirm_phone(self, user_id: str) -> None:
        self._request("PUT", f"/auth/v1/admin/users/{user_id}", {"phone_confirm": True})

    def delete_user(self, user_id: str) -> None:
        self._request("DELETE", f"/auth/v1/admin/users/{user_id}")

    def _request(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
        *,
        bearer: str | None = None,
    ) -> dict:
        req = urllib.request.Request(f"{self._config.url}{path}", method=method)
        req.add_header("apikey", self._config.service_role_key)
        req.add_header("Authorization", f"Bearer {bearer or self._config.service_role_key}")
        data = None
        if body is not None:
            req.add_header("Content-Type", "application/json")
            data = json.dumps(body).encode("utf-8")

        try:
            with urllib.request.urlopen(req, data=data, timeout=self._config.timeout_s) as resp:  # noqa: S310
                raw = resp.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            raise AuthProviderError(
                f"Supabase auth request failed: HTTP {e.code}",
                {"status": e.code, "path": path},
            ) from e
        except urllib.error.URLError as e:
            raise AuthProviderError(f"Supabase auth unreachable: {e.reason}") from e

        if not raw.strip():
            return {}
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise AuthProviderError("Supabase auth returned invalid JSON") from e


def _to_user(body: dict) -> AuthUser | None:
    # Admin endpoints wrap the user in {"user": ...} on some GoTrue versions.
    data = body.get("user", body) if isinstance(body, dict) else None
    if not data or not data.get("id"):
        return None
    return AuthUser(id=str(data["id"]), email=data.get("email"), phone=data.get("phone"))
