from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

DEFAULT_MOCK_CODE = "123456"


class MockOtpProvider:
    name = "MOCK_OTP"

    def __init__(self) -> None:
        self._codes: dict[str, str] = {}
        self._pending: set[str] = set()
        self.sent: list[str] = []

    def reset(self) -> None:
        self._codes.clear()
        self._pending.clear()
        self.sent.clear()

    def set_code(self, phone: str, code: str) -> None:
        self._codes[phone] = code

    def start_verification(self, phone: str) -> str:
        self._pending.add(phone)
        self.sent.append(phone)
        logger.info("Mock verification started for %s", phone)
        return "pending"

    def check_verification(self, phone: str, code: str) -> str:
        if phone not in self._pending:
            return "not_found"
        if code != self._codes.get(phone, DEFAULT_MOCK_CODE):
            return "pending"
        self._pending.discard(phone)
        self._codes.pop(phone, None)
        return "approved"


mock_otp = MockOtpProvider()
