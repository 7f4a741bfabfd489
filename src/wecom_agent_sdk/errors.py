"""Error classes for the WeCom agent SDK.

Every failure of an authenticated call surfaces as one of the subclasses
below so callers can tell transport problems (worth retrying) apart from
platform-reported business errors and local encoding mistakes.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the WeCom agent SDK."""

    # Token acquisition (1xxx)
    TOKEN_ACQUISITION_FAILED = "AUTH_1001"

    # Request building (2xxx)
    REQUEST_ENCODING_FAILED = "REQ_2001"

    # Transport (3xxx)
    TRANSPORT_FAILED = "NET_3001"
    TIMEOUT = "NET_3002"

    # Response handling (4xxx)
    RESPONSE_READ_FAILED = "RESP_4001"
    RESPONSE_DECODE_FAILED = "RESP_4002"

    # Platform reported (5xxx)
    PLATFORM_ERROR = "PLAT_5001"

    # Configuration (6xxx)
    INVALID_CONFIG = "CFG_6001"


class AgentClientError(Exception):
    """Base error for the WeCom agent SDK with structured error information."""

    def __init__(
        self,
        message: str,
        code: ErrorCode | str,
        *,
        correlation_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code.value if isinstance(code, ErrorCode) else code
        self.correlation_id = correlation_id
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error": self.message,
            "code": self.code,
            "correlation_id": self.correlation_id,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class TokenAcquisitionError(AgentClientError):
    """Fetching or refreshing the access token failed.

    The underlying transport, decode or platform error is kept on
    ``cause`` and chained as ``__cause__``.
    """

    def __init__(
        self,
        message: str = "Token acquisition failed",
        *,
        correlation_id: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        details: dict[str, Any] | None = None
        if cause is not None:
            details = {"cause": str(cause), "cause_type": type(cause).__name__}
        super().__init__(
            message,
            ErrorCode.TOKEN_ACQUISITION_FAILED,
            correlation_id=correlation_id,
            details=details,
        )
        self.cause = cause
        self.__cause__ = cause


class RequestEncodingError(AgentClientError):
    """The request payload could not be serialized to JSON."""

    def __init__(
        self,
        message: str = "Request encoding failed",
        *,
        correlation_id: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.REQUEST_ENCODING_FAILED,
            correlation_id=correlation_id,
            details={"cause": str(cause)} if cause else None,
        )
        self.__cause__ = cause


class TransportError(AgentClientError):
    """The HTTP call did not complete (connection, DNS, protocol)."""

    def __init__(
        self,
        message: str = "Transport failed",
        *,
        code: ErrorCode = ErrorCode.TRANSPORT_FAILED,
        correlation_id: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            code,
            correlation_id=correlation_id,
            details={"cause": str(cause)} if cause else None,
        )
        self.__cause__ = cause


class RequestTimeoutError(TransportError):
    """The HTTP call timed out."""

    def __init__(
        self,
        message: str = "Request timed out",
        *,
        correlation_id: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.TIMEOUT,
            correlation_id=correlation_id,
            cause=cause,
        )


class ResponseReadError(AgentClientError):
    """The response arrived but its body could not be read in full."""

    def __init__(
        self,
        message: str = "Response read failed",
        *,
        correlation_id: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.RESPONSE_READ_FAILED,
            correlation_id=correlation_id,
            details={"cause": str(cause)} if cause else None,
        )
        self.__cause__ = cause


class ResponseDecodeError(AgentClientError):
    """The response body is not valid JSON or does not match the expected shape."""

    def __init__(
        self,
        message: str = "Response decode failed",
        *,
        correlation_id: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.RESPONSE_DECODE_FAILED,
            correlation_id=correlation_id,
            details={"cause": str(cause)} if cause else None,
        )
        self.__cause__ = cause


class PlatformError(AgentClientError):
    """The platform answered with a nonzero ``errcode``."""

    def __init__(
        self,
        errcode: int,
        errmsg: str = "",
        *,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(
            f"API error: [{errcode}] {errmsg}",
            ErrorCode.PLATFORM_ERROR,
            correlation_id=correlation_id,
            details={"errcode": errcode, "errmsg": errmsg},
        )
        self.errcode = errcode
        self.errmsg = errmsg


class InvalidConfigError(AgentClientError):
    """Invalid SDK configuration."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.INVALID_CONFIG,
            details={"field": field} if field else None,
        )
        self.field = field
