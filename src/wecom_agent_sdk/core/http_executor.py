"""Centralized HTTP executors for the WeCom agent SDK.

Each executor performs exactly one attempt per call. A request that cannot
be built, a failure while sending and a failure while reading the body are
surfaced as distinct errors, and the body is read once so it can be decoded
several times by the caller.
"""

from __future__ import annotations

from typing import Any

import httpx

from ..telemetry import Telemetry
from .errors import ErrorFactory


class HTTPExecutorBase:
    """Request building and failure logging shared by both executors."""

    def __init__(
        self,
        client: httpx.Client | httpx.AsyncClient,
        telemetry: Telemetry | None = None,
    ) -> None:
        self._client = client
        self._telemetry = telemetry or Telemetry()
        self._logger = self._telemetry.logger

    def _build(self, method: str, url: str, kwargs: dict[str, Any]) -> httpx.Request:
        try:
            return self._client.build_request(method, url, **kwargs)
        except httpx.InvalidURL as e:
            error = ErrorFactory.from_build_exception(e)
            self._log_failure("Request could not be built", method, url, error.code, str(e))
            raise error from e

    def _span(self, method: str, url: str):
        return self._telemetry.span(
            "http_request",
            **{"http.method": method, "http.route": url},
        )

    def _log_failure(
        self,
        message: str,
        method: str,
        url: str,
        code: str,
        error: str,
    ) -> None:
        """Log failed attempt."""
        self._logger.warning(
            message,
            method=method,
            path=url,
            code=code,
            error=error,
        )


class SyncHTTPExecutor(HTTPExecutorBase):
    """Synchronous single-attempt HTTP executor."""

    _client: httpx.Client

    def __init__(self, client: httpx.Client, telemetry: Telemetry | None = None) -> None:
        """Initialize sync HTTP executor.

        Args:
            client: HTTP client.
            telemetry: Telemetry of the owning client.
        """
        super().__init__(client, telemetry)

    def execute(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> bytes:
        """Send one request and read its body.

        Args:
            method: HTTP method.
            url: Request URL, relative to the client's base URL.
            **kwargs: Arguments for ``httpx.Client.build_request``.

        Returns:
            The complete response body.

        Raises:
            RequestEncodingError: If no valid URL could be built.
            TransportError: If the request could not be sent.
            RequestTimeoutError: If sending or reading timed out.
            ResponseReadError: If the body could not be read.
        """
        with self._span(method, url) as span:
            request = self._build(method, url, kwargs)
            try:
                response = self._client.send(request, stream=True)
            except httpx.HTTPError as e:
                error = ErrorFactory.from_transport_exception(e)
                self._log_failure("Request failed", method, url, error.code, str(e))
                raise error from e

            try:
                span.set_attribute("http.status_code", response.status_code)
                try:
                    return response.read()
                except httpx.HTTPError as e:
                    error = ErrorFactory.from_read_exception(e)
                    self._log_failure("Response read failed", method, url, error.code, str(e))
                    raise error from e
            finally:
                response.close()


class AsyncHTTPExecutor(HTTPExecutorBase):
    """Asynchronous single-attempt HTTP executor."""

    _client: httpx.AsyncClient

    def __init__(
        self,
        client: httpx.AsyncClient,
        telemetry: Telemetry | None = None,
    ) -> None:
        """Initialize async HTTP executor.

        Args:
            client: Async HTTP client.
            telemetry: Telemetry of the owning client.
        """
        super().__init__(client, telemetry)

    async def execute(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> bytes:
        """Send one request and read its body.

        Args:
            method: HTTP method.
            url: Request URL, relative to the client's base URL.
            **kwargs: Arguments for ``httpx.AsyncClient.build_request``.

        Returns:
            The complete response body.

        Raises:
            RequestEncodingError: If no valid URL could be built.
            TransportError: If the request could not be sent.
            RequestTimeoutError: If sending or reading timed out.
            ResponseReadError: If the body could not be read.
        """
        with self._span(method, url) as span:
            request = self._build(method, url, kwargs)
            try:
                response = await self._client.send(request, stream=True)
            except httpx.HTTPError as e:
                error = ErrorFactory.from_transport_exception(e)
                self._log_failure("Request failed", method, url, error.code, str(e))
                raise error from e

            try:
                span.set_attribute("http.status_code", response.status_code)
                try:
                    return await response.aread()
                except httpx.HTTPError as e:
                    error = ErrorFactory.from_read_exception(e)
                    self._log_failure("Response read failed", method, url, error.code, str(e))
                    raise error from e
            finally:
                await response.aclose()
