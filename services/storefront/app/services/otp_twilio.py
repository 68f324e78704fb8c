from __future__ import annotations

import base64
import json
import os
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass

from services.storefront.app.services.otp_base import OtpConfigurationError, OtpProviderError


@dataclass(frozen=True)
class TwilioVerifyConfig:
    account_sid: str
    auth_token: str
    service_sid: str
    base_url: str = "https://verify.twilio.com/v2"
    timeout_s: float = 15.0


class TwilioVerifyProvider:
    """SMS codes through the Twilio Verify REST API.

    Env vars:
    - TIFFIN_OTP_PROVIDER=twilio
    - TWILIO_ACCOUNT_SID
    - TWILIO_AUTH_TOKEN
    - TWILIO_VERIFY_SERVICE_SID
    """

    name = "TWILIO_VERIFY"

    def __init__(self, config: TwilioVerifyConfig) -> None:
        self._config = config

    @classmethod
    def from_env(cls) -> "TwilioVerifyProvider":
        values = {}
        for key in ("TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_VERIFY_SERVICE_SID"):
            value = os.getenv(key, "").strip()
            if not value:
                raise OtpConfigurationError(key)
            values[key] = value
        return cls(
            TwilioVerifyConfig(
                account_sid=values["TWILIO_ACCOUNT_SID"],
                auth_token=values["TWILIO_AUTH_TOKEN"],
                service_sid=values["TWILIO_VERIFY_SERVICE_SID"],
            )
        )

    def start_verification(self, phone: str) -> str:
        body = self._post("Verifications", {"To": phone, "Channel": "sms"})
        return str(body.get("status") or "pending")

    def check_verification(self, phone: str, code: str) -> str:
        try:
            body = self._post("VerificationCheck", {"To": phone, "Code": code})
        except OtpProviderError as e:
            # Twilio answers 404 once a verification has expired or been consumed.
            if e.details.get("status") == 404:
                return "not_found"
            raise
        return str(body.get("status") or "pending")

    def _post(self, resource: str, form: dict[str, str]) -> dict:
        url = f"{self._config.base_url}/Services/{self._config.service_sid}/{resource}"
        credentials = f"{self._config.account_sid}:{self._config.auth_token}".encode("utf-8")
        req = urllib.request.Request(
            url,
            data=urllib.parse.urlencode(form).encode("utf-8"),
            headers={
                "Authorization": "Basic " + base64.b64encode(credentials).decode("ascii"),
                "Content-Type": "application/x-www-form-urlencoded",
            },
            method="POST",
        )
        try:
            with urllib.request.urlopen(req, timeout=self._config.timeout_s) as resp:  # noqa: S310
                raw = resp.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            raise OtpProviderError(
                f"Twilio Verify request failed: HTTP {e.code}",
                {"status": e.code, "resource": resource},
            ) from e
        except urllib.error.URLError as e:
            raise OtpProviderError(f"Twilio Verify unreachable: {e.reason}") from e

        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise OtpProviderError("Twilio Verify returned invalid JSON") from e
