"""Synchronous WeCom agent client.

Every platform call goes through :meth:`AgentClient.request`, which attaches
a cached access token, sends the JSON payload and turns the ``errcode``
envelope into exceptions.

Usage
-----

.. code-block:: python

    from wecom_agent_sdk import AgentClient, AgentClientConfig, AgentCredentials

    config = AgentClientConfig(
        credentials=AgentCredentials(corp_id="ww123", agent_id=1000002, secret="..."),
    )
    with AgentClient(config) as client:
        client.post(
            "/message/send",
            json={"touser": "@all", "msgtype": "text", "agentid": 1000002,
                  "text": {"content": "hello"}},
        )
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Self, TypeVar, overload

from pydantic import BaseModel

from .config import AgentClientConfig
from .core.http_executor import SyncHTTPExecutor
from .core.request_ops import JSON_HEADERS, RequestOperations
from .core.token_cache import Clock, TokenCache, utc_now
from .core.token_ops import TokenOperations
from .http import create_http_client
from .models import AccessTokenResponse
from .telemetry import Telemetry

if TYPE_CHECKING:
    import httpx

M = TypeVar("M", bound=BaseModel)


class AgentClient:
    """Synchronous client for one WeCom enterprise application."""

    def __init__(
        self,
        config: AgentClientConfig,
        *,
        transport: httpx.BaseTransport | None = None,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize client.

        Args:
            config: SDK configuration.
            transport: Optional httpx transport, mainly for tests.
            clock: Current-time source used for token expiry.
        """
        self.config = config
        self._telemetry = Telemetry.for_client(config)
        self._http = create_http_client(config, transport=transport)
        self._executor = SyncHTTPExecutor(self._http, self._telemetry)
        self._token_ops = TokenOperations(config, self._telemetry)
        self._request_ops = RequestOperations(self._telemetry)
        self._token_cache = TokenCache(
            self.fetch_token,
            clock=clock,
            buffer_seconds=config.cache.token_buffer,
            telemetry=self._telemetry,
        )

    @classmethod
    def from_env(cls, prefix: str = "WECHAT_", **kwargs: Any) -> Self:
        """Create client from ``{prefix}CORP_ID``/``AGENT_ID``/``SECRET``."""
        return cls(AgentClientConfig.from_env(prefix), **kwargs)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client."""
        self._http.close()

    @property
    def telemetry(self) -> Telemetry:
        """Tracer and logger of this client."""
        return self._telemetry

    @property
    def token_cache(self) -> TokenCache:
        """The client's access token cache."""
        return self._token_cache

    def fetch_token(self) -> AccessTokenResponse:
        """Exchange the credentials for a fresh token.

        Bypasses the cache; use :meth:`get_access_token` for normal calls.

        Raises:
            TransportError: On network failure.
            ResponseReadError: If the body could not be read.
            ResponseDecodeError: If the body is not a token response.
            PlatformError: If the platform rejected the credentials.
        """
        with self._telemetry.span("fetch_token"):
            body = self._executor.execute(
                "GET",
                self._token_ops.token_path,
                params=self._token_ops.build_token_params(),
            )
            return self._token_ops.parse_token_response(body)

    def get_access_token(self) -> str:
        """Get a valid access token, refreshing if necessary.

        Raises:
            TokenAcquisitionError: If the token could not be obtained.
        """
        return self._token_cache.get_valid_token()

    @overload
    def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = ...,
        json: Any = ...,
        response_model: None = ...,
        timeout: float | None = ...,
    ) -> dict[str, Any]: ...

    @overload
    def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = ...,
        json: Any = ...,
        response_model: type[M],
        timeout: float | None = ...,
    ) -> M: ...

    def request(
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

        Args:
            method: HTTP method.
            path: Endpoint path below the base URL, e.g. ``/message/send``.
            params: Extra query parameters; ``access_token`` is reserved.
            json: JSON-serializable payload or pydantic model.
            response_model: Pydantic model to decode the response into;
                a dict is returned when omitted.
            timeout: Per-call timeout in seconds, overriding the config.

        Returns:
            The decoded response payload.

        Raises:
            TokenAcquisitionError: If no token could be obtained.
            RequestEncodingError: If ``json`` is not serializable.
            TransportError: On network failure or timeout.
            ResponseReadError: If the body could not be read.
            ResponseDecodeError: If the body could not be decoded.
            PlatformError: If the platform returned a nonzero ``errcode``.
        """
        with self._telemetry.span(
            "agent_request",
            **{"http.method": method, "http.route": path},
        ):
            token = self.get_access_token()
            query = self._request_ops.build_query(params, token)
            body = self._request_ops.encode_body(json)

            kwargs: dict[str, Any] = {"params": query, "headers": JSON_HEADERS}
            if body is not None:
                kwargs["content"] = body
            if timeout is not None:
                kwargs["timeout"] = timeout

            raw = self._executor.execute(method, path, **kwargs)
            return self._request_ops.process_response(
                raw,
                path=path,
                response_model=response_model,
            )

    def get(self, path: str, **kwargs: Any) -> Any:
        """Authenticated GET request."""
        return self.request("GET", path, **kwargs)

    def post(self, path: str, *, json: Any = None, **kwargs: Any) -> Any:
        """Authenticated POST request."""
        return self.request("POST", path, json=json, **kwargs)
