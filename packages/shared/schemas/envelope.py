"""Shared response envelope (v1).

Every storefront endpoint answers with this shape so clients can branch on
``success`` without inspecting HTTP status codes.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponseV1(BaseModel, Generic[T]):
    success: bool
    message: str | None = None
    data: T | None = None
    error: str | None = None
    details: dict[str, Any] | None = None


def ok(data: T | None = None, message: str | None = None) -> ApiResponseV1[T]:
    return ApiResponseV1(success=True, message=message, data=data)


def failure(error: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "error": error}
    if details:
        body["details"] = details
    return body
