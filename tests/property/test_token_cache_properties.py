"""
Property-based tests for the access token cache.

Covers the validity window, refresh counting, failure isolation and
single-flight refresh under concurrency.
"""

import asyncio
import threading
import time

import pytest
from hypothesis import given, settings, strategies as st

from wecom_agent_sdk.core.token_cache import AsyncTokenCache, TokenCache
from wecom_agent_sdk.errors import PlatformError, TokenAcquisitionError, TransportError
from wecom_agent_sdk.models import AccessTokenResponse, TokenState

from tests.fakes import FakeClock

ttl_strategy = st.integers(min_value=1, max_value=86400)


class CountingFetcher:
    """Token fetcher issuing ``token-N`` with a fixed TTL."""

    def __init__(self, ttl: int, delay: float = 0.0) -> None:
        self.ttl = ttl
        self.delay = delay
        self.calls = 0
        self._lock = threading.Lock()

    def __call__(self) -> AccessTokenResponse:
        with self._lock:
            self.calls += 1
            n = self.calls
        if self.delay:
            time.sleep(self.delay)
        return AccessTokenResponse(access_token=f"token-{n}", expires_in=self.ttl)


class TestTokenValidityWindowProperties:
    """Property tests for token expiry."""

    @given(ttl=ttl_strategy, data=st.data())
    @settings(max_examples=100)
    def test_same_token_within_ttl(self, ttl: int, data: st.DataObject) -> None:
        """
        For a token with TTL t fetched at T, any call in [T, T+t)
        SHALL return the same value without a new fetch.
        """
        clock = FakeClock()
        fetch = CountingFetcher(ttl)
        cache = TokenCache(fetch, clock=clock)

        first = cache.get_valid_token()
        elapsed = data.draw(st.floats(min_value=0, max_value=ttl - 0.001))
        clock.advance(elapsed)

        assert cache.get_valid_token() == first
        assert fetch.calls == 1

    @given(ttl=ttl_strategy, extra=st.integers(min_value=0, max_value=86400))
    @settings(max_examples=100)
    def test_exactly_one_refresh_after_ttl(self, ttl: int, extra: int) -> None:
        """
        At or after T+t the cache SHALL trigger exactly one new fetch.
        """
        clock = FakeClock()
        fetch = CountingFetcher(ttl)
        cache = TokenCache(fetch, clock=clock)

        cache.get_valid_token()
        clock.advance(ttl + extra)

        assert cache.state == TokenState.EXPIRED
        assert cache.get_valid_token() == "token-2"
        assert cache.get_valid_token() == "token-2"
        assert fetch.calls == 2

    @given(
        ttl=st.integers(min_value=120, max_value=86400),
        buffer=st.integers(min_value=0, max_value=60),
    )
    @settings(max_examples=50)
    def test_buffer_refreshes_early(self, ttl: int, buffer: int) -> None:
        clock = FakeClock()
        fetch = CountingFetcher(ttl)
        cache = TokenCache(fetch, clock=clock, buffer_seconds=buffer)

        cache.get_valid_token()
        clock.advance(ttl - buffer)
        cache.get_valid_token()

        assert fetch.calls == 2

    @given(
        ttl=st.integers(min_value=1, max_value=86400),
        excess=st.integers(min_value=0, max_value=86400),
    )
    @settings(max_examples=50)
    def test_oversized_buffer_never_yields_expired_token(self, ttl: int, excess: int) -> None:
        """
        A buffer at least as long as the TTL SHALL NOT make a freshly
        fetched token expired on arrival.
        """
        clock = FakeClock()
        fetch = CountingFetcher(ttl)
        cache = TokenCache(fetch, clock=clock, buffer_seconds=ttl + excess)

        assert cache.get_valid_token() == "token-1"
        assert cache.state == TokenState.VALID
        assert cache.get_valid_token() == "token-1"
        assert fetch.calls == 1


class TestTokenCacheFailureProperties:
    """Property tests for refresh failures."""

    @given(
        error=st.sampled_from([
            TransportError("Connection failed"),
            PlatformError(40001, "invalid credential"),
            ValueError("unexpected"),
        ])
    )
    @settings(max_examples=20)
    def test_failure_wrapped_and_state_unchanged(self, error: Exception) -> None:
        def fetch() -> AccessTokenResponse:
            raise error

        cache = TokenCache(fetch, clock=FakeClock())

        with pytest.raises(TokenAcquisitionError) as exc_info:
            cache.get_valid_token()

        assert exc_info.value.cause is error
        assert cache.state == TokenState.NO_TOKEN
        assert cache.token is None

    def test_failed_refresh_keeps_expired_token_unserved(self) -> None:
        clock = FakeClock()
        fetch = CountingFetcher(10)
        cache = TokenCache(fetch, clock=clock)
        cache.get_valid_token()
        stale = cache.token

        def failing() -> AccessTokenResponse:
            raise TransportError("down")

        clock.advance(10)
        cache._fetch = failing

        with pytest.raises(TokenAcquisitionError):
            cache.get_valid_token()

        assert cache.token == stale
        assert cache.state == TokenState.EXPIRED

    def test_recovers_after_failure(self) -> None:
        attempts = iter([TransportError("down"), None])
        fetch = CountingFetcher(7200)

        def flaky() -> AccessTokenResponse:
            error = next(attempts)
            if error:
                raise error
            return fetch()

        cache = TokenCache(flaky, clock=FakeClock())

        with pytest.raises(TokenAcquisitionError):
            cache.get_valid_token()
        assert cache.get_valid_token() == "token-1"

    def test_invalidate_forces_refresh(self) -> None:
        fetch = CountingFetcher(7200)
        cache = TokenCache(fetch, clock=FakeClock())

        cache.get_valid_token()
        cache.invalidate()

        assert cache.state == TokenState.NO_TOKEN
        assert cache.get_valid_token() == "token-2"


class TestSingleFlightProperties:
    """Concurrent callers on a missing token collapse into one fetch."""

    @given(workers=st.integers(min_value=2, max_value=16))
    @settings(max_examples=10, deadline=None)
    def test_threads_share_one_fetch(self, workers: int) -> None:
        fetch = CountingFetcher(7200, delay=0.02)
        cache = TokenCache(fetch, clock=FakeClock())
        barrier = threading.Barrier(workers)
        results: list[str] = []
        errors: list[Exception] = []

        def worker() -> None:
            barrier.wait()
            try:
                results.append(cache.get_valid_token())
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert fetch.calls == 1
        assert results == ["token-1"] * workers

    def test_threads_share_one_failure(self) -> None:
        calls = 0
        started = threading.Event()

        def fetch() -> AccessTokenResponse:
            nonlocal calls
            calls += 1
            started.set()
            time.sleep(0.2)
            raise TransportError("down")

        cache = TokenCache(fetch, clock=FakeClock())
        errors: list[Exception] = []

        def worker() -> None:
            try:
                cache.get_valid_token()
            except TokenAcquisitionError as e:
                errors.append(e)

        leader = threading.Thread(target=worker)
        leader.start()
        started.wait()
        followers = [threading.Thread(target=worker) for _ in range(4)]
        for t in followers:
            t.start()
        for t in [leader, *followers]:
            t.join()

        assert calls == 1
        assert len(errors) == 5

    @given(tasks=st.integers(min_value=2, max_value=32))
    @settings(max_examples=10, deadline=None)
    def test_async_tasks_share_one_fetch(self, tasks: int) -> None:
        calls = 0

        async def fetch() -> AccessTokenResponse:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            return AccessTokenResponse(access_token=f"token-{calls}", expires_in=7200)

        async def scenario() -> list[str]:
            cache = AsyncTokenCache(fetch, clock=FakeClock())
            return await asyncio.gather(*(cache.get_valid_token() for _ in range(tasks)))

        results = asyncio.run(scenario())

        assert calls == 1
        assert results == ["token-1"] * tasks

    def test_async_failure_is_wrapped(self) -> None:
        async def fetch() -> AccessTokenResponse:
            raise PlatformError(40013, "invalid corpid")

        async def scenario() -> AsyncTokenCache:
            cache = AsyncTokenCache(fetch, clock=FakeClock())
            with pytest.raises(TokenAcquisitionError) as exc_info:
                await cache.get_valid_token()
            assert isinstance(exc_info.value.cause, PlatformError)
            return cache

        cache = asyncio.run(scenario())

        assert cache.state == TokenState.NO_TOKEN
