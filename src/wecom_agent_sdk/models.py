"""Pydantic models for the WeCom agent SDK.

Every platform response is one JSON object carrying the common
``errcode``/``errmsg`` envelope next to the endpoint-specific fields.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class CommonResponse(BaseModel):
    """Envelope shared by every platform response."""

    model_config = ConfigDict(extra="allow")

    errcode: int = 0
    errmsg: str = ""

    @field_validator("errcode", "errmsg", mode="before")
    @classmethod
    def null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        """Treat JSON ``null`` like an absent field."""
        if value is None:
            return cls.model_fields[info.field_name].default
        return value

    @property
    def is_success(self) -> bool:
        """``errcode`` 0 means success."""
        return self.errcode == 0


class AccessTokenResponse(CommonResponse):
    """Response of the ``gettoken`` endpoint."""

    access_token: str = ""
    expires_in: int = 0


class TokenState(StrEnum):
    """Lifecycle state of a client's cached token."""

    NO_TOKEN = "no_token"
    VALID = "valid"
    EXPIRED = "expired"


class CachedToken(BaseModel):
    """Internal token storage with expiration tracking."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    issued_at: datetime
    expires_at: datetime

    @classmethod
    def from_response(
        cls,
        response: AccessTokenResponse,
        *,
        now: datetime,
        buffer_seconds: int = 0,
    ) -> Self:
        """Create CachedToken valid for ``[now, now + expires_in - buffer)``.

        A buffer that would leave no lifetime at all is ignored and the
        token is kept for the full ``expires_in``.
        """
        lifetime = response.expires_in - buffer_seconds
        if lifetime <= 0:
            lifetime = response.expires_in
        return cls(
            access_token=response.access_token,
            issued_at=now,
            expires_at=now + timedelta(seconds=lifetime),
        )

    def is_expired(self, now: datetime) -> bool:
        """Check if token is expired at ``now``."""
        return now >= self.expires_at

    def time_until_expiry(self, now: datetime) -> timedelta:
        """Get time remaining until token expires."""
        return self.expires_at - now


class TokenRequest(BaseModel):
    """Query parameters of the ``gettoken`` endpoint."""

    model_config = ConfigDict(frozen=True)

    corpid: str
    corpsecret: str = Field(repr=False)
