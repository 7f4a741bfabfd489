"""Centralized error factory for the WeCom agent SDK.

Provides consistent error creation and transformation across all SDK components.
"""

from __future__ import annotations

import uuid

import httpx

from ..errors import (
    AgentClientError,
    PlatformError,
    RequestEncodingError,
    RequestTimeoutError,
    ResponseReadError,
    TokenAcquisitionError,
    TransportError,
)
from ..models import CommonResponse


class ErrorFactory:
    """Centralized error creation with consistent structure.

    All errors created through this factory include:
    - Standardized error codes
    - Correlation IDs for tracing
    - The original exception chained as ``__cause__``
    """

    @staticmethod
    def generate_correlation_id() -> str:
        """Generate a unique correlation ID."""
        return str(uuid.uuid4())

    @staticmethod
    def from_transport_exception(
        exc: Exception,
        *,
        correlation_id: str | None = None,
    ) -> AgentClientError:
        """Create SDK error from an exception raised while sending a request.

        Args:
            exc: Original exception.
            correlation_id: Optional correlation ID for tracing.

        Returns:
            TransportError, or RequestTimeoutError for timeouts.
        """
        correlation_id = correlation_id or ErrorFactory.generate_correlation_id()

        if isinstance(exc, httpx.TimeoutException):
            return RequestTimeoutError(
                f"Request timed out: {exc}",
                correlation_id=correlation_id,
                cause=exc,
            )

        if isinstance(exc, httpx.ConnectError):
            return TransportError(
                f"Connection failed: {exc}",
                correlation_id=correlation_id,
                cause=exc,
            )

        return TransportError(
            f"HTTP error: {exc}",
            correlation_id=correlation_id,
            cause=exc,
        )

    @staticmethod
    def from_build_exception(
        exc: Exception,
        *,
        correlation_id: str | None = None,
    ) -> RequestEncodingError:
        """Create SDK error for a request httpx refused to build, e.g. an overlong URL."""
        return RequestEncodingError(
            f"Invalid request URL: {exc}",
            correlation_id=correlation_id or ErrorFactory.generate_correlation_id(),
            cause=exc,
        )

    @staticmethod
    def from_read_exception(
        exc: Exception,
        *,
        correlation_id: str | None = None,
    ) -> AgentClientError:
        """Create SDK error from an exception raised while reading the body.

        A timeout while streaming the body is still a timeout; anything else
        is a read failure.
        """
        correlation_id = correlation_id or ErrorFactory.generate_correlation_id()

        if isinstance(exc, httpx.TimeoutException):
            return RequestTimeoutError(
                f"Timed out reading response: {exc}",
                correlation_id=correlation_id,
                cause=exc,
            )

        return ResponseReadError(
            f"Response read failed: {exc}",
            correlation_id=correlation_id,
            cause=exc,
        )

    @staticmethod
    def platform_error(
        envelope: CommonResponse,
        *,
        correlation_id: str | None = None,
    ) -> PlatformError:
        """Create platform error carrying ``errcode``/``errmsg`` verbatim."""
        return PlatformError(
            envelope.errcode,
            envelope.errmsg,
            correlation_id=correlation_id or ErrorFactory.generate_correlation_id(),
        )

    @staticmethod
    def token_acquisition_error(
        exc: Exception,
        *,
        correlation_id: str | None = None,
    ) -> TokenAcquisitionError:
        """Wrap a failure raised while fetching a token."""
        if correlation_id is None and isinstance(exc, AgentClientError):
            correlation_id = exc.correlation_id
        return TokenAcquisitionError(
            f"Token acquisition failed: {exc}",
            correlation_id=correlation_id or ErrorFactory.generate_correlation_id(),
            cause=exc,
        )
