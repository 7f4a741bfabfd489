"""Access token caches for the WeCom agent SDK.

One token per client instance, held in memory only. Refreshes are
single-flight: callers that find the token missing or expired while a
refresh is already running wait for that refresh and share its outcome.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Awaitable, Callable
from concurrent.futures import Future
from datetime import UTC, datetime

from ..errors import TokenAcquisitionError
from ..models import AccessTokenResponse, CachedToken, TokenState
from ..telemetry import Telemetry
from .errors import ErrorFactory

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(UTC)


class TokenCacheBase:
    """State and expiry logic shared by sync and async caches.

    Attributes:
        buffer_seconds: Seconds subtracted from the TTL when computing expiry.
    """

    def __init__(
        self,
        *,
        clock: Clock = utc_now,
        buffer_seconds: int = 0,
        telemetry: Telemetry | None = None,
    ) -> None:
        self.buffer_seconds = buffer_seconds
        self._clock = clock
        self._token: CachedToken | None = None
        self._telemetry = telemetry or Telemetry()
        self._logger = self._telemetry.logger

    @property
    def token(self) -> CachedToken | None:
        """Currently cached token, expired or not."""
        return self._token

    @property
    def state(self) -> TokenState:
        """Lifecycle state of the cached token."""
        if self._token is None:
            return TokenState.NO_TOKEN
        if self._token.is_expired(self._clock()):
            return TokenState.EXPIRED
        return TokenState.VALID

    def invalidate(self) -> None:
        """Drop the cached token so the next call refreshes."""
        self._token = None

    def _cached_value(self) -> str | None:
        """Return the cached token value if still valid."""
        token = self._token
        if token is not None and not token.is_expired(self._clock()):
            return token.access_token
        return None

    def _store(self, response: AccessTokenResponse) -> str:
        if self.buffer_seconds >= response.expires_in:
            self._logger.warning(
                "Token buffer exceeds token lifetime, ignoring buffer",
                buffer_seconds=self.buffer_seconds,
                expires_in=response.expires_in,
            )
        self._token = CachedToken.from_response(
            response,
            now=self._clock(),
            buffer_seconds=self.buffer_seconds,
        )
        return self._token.access_token

    def _wrap(self, exc: Exception) -> TokenAcquisitionError:
        if isinstance(exc, TokenAcquisitionError):
            return exc
        self._logger.warning(
            "Access token refresh failed",
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return ErrorFactory.token_acquisition_error(exc)


class TokenCache(TokenCacheBase):
    """Thread-safe token cache with single-flight refresh."""

    def __init__(
        self,
        fetch: Callable[[], AccessTokenResponse],
        *,
        clock: Clock = utc_now,
        buffer_seconds: int = 0,
        telemetry: Telemetry | None = None,
    ) -> None:
        """Initialize token cache.

        Args:
            fetch: Performs the remote token exchange.
            clock: Returns the current aware datetime.
            buffer_seconds: Seconds subtracted from the TTL.
            telemetry: Telemetry of the owning client.
        """
        super().__init__(clock=clock, buffer_seconds=buffer_seconds, telemetry=telemetry)
        self._fetch = fetch
        self._lock = threading.Lock()
        self._inflight: Future[str] | None = None

    def get_valid_token(self) -> str:
        """Return a valid access token, refreshing when missing or expired.

        Raises:
            TokenAcquisitionError: If the refresh failed.
        """
        with self._lock:
            cached = self._cached_value()
            if cached is not None:
                return cached

            flight = self._inflight
            leader = flight is None
            if leader:
                flight = self._inflight = Future()

        if not leader:
            return flight.result()

        try:
            with self._telemetry.span("refresh_access_token"):
                token = self._store(self._fetch())
        except Exception as e:
            error = self._wrap(e)
            self._settle(flight, exception=error)
            raise error from error.cause
        except BaseException as e:
            self._settle(flight, exception=e)
            raise

        self._settle(flight, result=token)
        return token

    def _settle(
        self,
        flight: Future[str],
        *,
        result: str | None = None,
        exception: BaseException | None = None,
    ) -> None:
        # Cleared before waking waiters so later callers start a fresh flight.
        with self._lock:
            self._inflight = None
        if exception is not None:
            flight.set_exception(exception)
        else:
            flight.set_result(result)

    def invalidate(self) -> None:
        """Drop the cached token so the next call refreshes."""
        with self._lock:
            super().invalidate()


class AsyncTokenCache(TokenCacheBase):
    """Async token cache; concurrent tasks share one refresh task."""

    def __init__(
        self,
        fetch: Callable[[], Awaitable[AccessTokenResponse]],
        *,
        clock: Clock = utc_now,
        buffer_seconds: int = 0,
        telemetry: Telemetry | None = None,
    ) -> None:
        """Initialize async token cache.

        Args:
            fetch: Coroutine function performing the remote token exchange.
            clock: Returns the current aware datetime.
            buffer_seconds: Seconds subtracted from the TTL.
            telemetry: Telemetry of the owning client.
        """
        super().__init__(clock=clock, buffer_seconds=buffer_seconds, telemetry=telemetry)
        self._fetch = fetch
        self._inflight: asyncio.Task[str] | None = None

    async def get_valid_token(self) -> str:
        """Return a valid access token, refreshing when missing or expired.

        Raises:
            TokenAcquisitionError: If the refresh failed.
        """
        cached = self._cached_value()
        if cached is not None:
            return cached

        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._refresh())

        # Shielded so a cancelled waiter does not cancel the shared refresh.
        return await asyncio.shield(self._inflight)

    async def _refresh(self) -> str:
        try:
            with self._telemetry.span("refresh_access_token"):
                return self._store(await self._fetch())
        except Exception as e:
            error = self._wrap(e)
            raise error from error.cause
        finally:
            self._inflight = None
