"""Async WeCom agent client.

Same contract as :class:`~wecom_agent_sdk.client.AgentClient` on top of
``httpx.AsyncClient``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Self, TypeVar

from pydantic import BaseModel

from .config import AgentClientConfig
from .core.http_executor import AsyncHTTPExecutor
from .core.request_ops import JSON_HEADERS, RequestOperations
from .core.token_cache import AsyncTokenCache, Clock, utc_now
from .core.token_ops import TokenOperations
from .http import create_async_http_client
from .models import AccessTokenResponse
from .telemetry import Telemetry

if TYPE_CHECKING:
    import httpx

M = TypeVar("M", bound=BaseModel)


class AsyncAgentClient:
    """Asynchronous client for one WeCom enterprise application."""

    def __init__(
        self,
        config: AgentClientConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize async client.

        Args:
            config: SDK configuration.
            transport: Optional httpx transport, mainly for tests.
            clock: Current-time source used for token expiry.
        """
        self.config = config
        self._telemetry = Telemetry.for_client(config)
        self._http = create_async_http_client(config, transport=transport)
        self._executor = AsyncHTTPExecutor(self._http, self._telemetry)
        self._token_ops = TokenOperations(config, self._telemetry)
        self._request_ops = RequestOperations(self._telemetry)
        self._token_cache = AsyncTokenCache(
            self.fetch_token,
            clock=clock,
            buffer_seconds=config.cache.token_buffer,
            telemetry=self._telemetry,
        )

    @classmethod
    def from_env(cls, prefix: str = "WECHAT_", **kwargs: Any) -> Self:
        """Create client from ``{prefix}CORP_ID``/``AGENT_ID``/``SECRET``."""
        return cls(AgentClientConfig.from_env(prefix), **kwargs)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._http.aclose()

    @property
    def telemetry(self) -> Telemetry:
        """Tracer and logger of this client."""
        return self._telemetry

    @property
    def token_cache(self) -> AsyncTokenCache:
        """The client's access token cache."""
        return self._token_cache

    async def fetch_token(self) -> AccessTokenResponse:
        """Exchange the credentials for a fresh token, bypassing the cache."""
        with self._telemetry.span("fetch_token"):
            body = await self._executor.execute(
                "GET",
                self._token_ops.token_path,
                params=self._token_ops.build_token_params(),
            )
            return self._token_ops.parse_token_response(body)

    async def get_access_token(self) -> str:
        """Get a valid access token, refreshing if necessary."""
        return await self._token_cache.get_valid_token()

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        response_model: type[M] | None = None,
        timeout: float | None = None,
    ) -> M | dict[str, Any]:
        """Perform an authenticated API call.

        See :meth:`AgentClient.request` for arguments and errors.
        """
        with self._telemetry.span(
            "agent_request",
            **{"http.method": method, "http.route": path},
        ):
            token = await self.get_access_token()
            query = self._request_ops.build_query(params, token)
            body = self._request_ops.encode_body(json)

            kwargs: dict[str, Any] = {"params": query, "headers": JSON_HEADERS}
            if body is not None:
                kwargs["content"] = body
            if timeout is not None:
                kwargs["timeout"] = timeout

            raw = await self._executor.execute(method, path, **kwargs)
            return self._request_ops.process_response(
                raw,
                path=path,
                response_model=response_model,
            )

    async def get(self, path: str, **kwargs: Any) -> Any:
        """Authenticated GET request."""
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, *, json: Any = None, **kwargs: Any) -> Any:
        """Authenticated POST request."""
        return await self.request("POST", path, json=json, **kwargs)
