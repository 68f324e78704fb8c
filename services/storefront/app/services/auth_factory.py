from __future__ import annotations

import os

from services.storefront.app.services.auth_base import AuthProvider
from services.storefront.app.services.auth_mock import mock_auth


def get_auth_provider() -> AuthProvider:
    mode = os.getenv("TIFFIN_AUTH_PROVIDER", "mock").strip().lower()

    if mode == "mock":
        return mock_auth

    if mode == "supabase":
        from services.storefront.app.services.auth_supabase import SupabaseAuthProvider

        return SupabaseAuthProvider.from_env()

    raise ValueError(f"Unknown TIFFIN_AUTH_PROVIDER={mode!r}. Expected mock or supabase.")
