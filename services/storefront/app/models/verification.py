from __future__ import annotations

from pydantic import BaseModel


class PhoneRequest(BaseModel):
    phone_number: str


class PhoneCodeRequest(BaseModel):
    phone_number: str
    otp_code: str


class VerificationStatusOut(BaseModel):
    status: str


class ResetTokenOut(BaseModel):
    reset_token: str
    expires_in_seconds: int


class ResetCompleteRequest(BaseModel):
    reset_token: str
    new_password: str
