from __future__ import annotations

import os

from services.storefront.app.services.otp_base import OtpProvider
from services.storefront.app.services.otp_mock import mock_otp


def get_otp_provider() -> OtpProvider:
    mode = os.getenv("TIFFIN_OTP_PROVIDER", "mock").strip().lower()

    if mode == "mock":
        return mock_otp

    if mode == "twilio":
        from services.storefront.app.services.otp_twilio import TwilioVerifyProvider

        return TwilioVerifyProvider.from_env()

    raise ValueError(f"Unknown TIFFIN_OTP_PROVIDER={mode!r}. Expected mock or twilio.")
