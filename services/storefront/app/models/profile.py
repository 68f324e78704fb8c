from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: str | None = None
    phone: str | None = None
    is_phone_verified: bool
    address: str | None = None
    city: str | None = None
    postal_code: str | None = None
    current_location: str | None = None


class ProfileUpdateRequest(BaseModel):
    address: str | None = None
    city: str | None = None
    postal_code: str | None = None
    current_location: str | None = None
