"""Centralized token operations for the WeCom agent SDK.

Provides the token request building and response processing logic used by
both sync and async clients.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from ..errors import ResponseDecodeError
from ..models import AccessTokenResponse, TokenRequest
from ..telemetry import Telemetry
from .errors import ErrorFactory

if TYPE_CHECKING:
    from ..config import AgentClientConfig


class TokenOperations:
    """Token exchange logic shared by sync and async clients.

    This class provides all token-related business logic that is identical
    between synchronous and asynchronous client implementations; only the
    HTTP round trip differs.
    """

    def __init__(
        self,
        config: AgentClientConfig,
        telemetry: Telemetry | None = None,
    ) -> None:
        """Initialize token operations.

        Args:
            config: SDK configuration.
            telemetry: Telemetry of the owning client.
        """
        self.config = config
        self._logger = (telemetry or Telemetry.for_client(config)).logger

    @property
    def token_path(self) -> str:
        """Path of the token endpoint, relative to the base URL."""
        return self.config.token_path

    def build_token_params(self) -> dict[str, Any]:
        """Build the query parameters of the token request.

        Returns:
            ``corpid`` and ``corpsecret`` query parameters.
        """
        credentials = self.config.credentials
        request = TokenRequest(
            corpid=credentials.corp_id,
            corpsecret=credentials.secret.get_secret_value(),
        )
        return request.model_dump()

    def parse_token_response(self, body: bytes) -> AccessTokenResponse:
        """Decode a token response body.

        Args:
            body: Raw response body.

        Returns:
            Token value and TTL.

        Raises:
            ResponseDecodeError: If the body is not a valid token response.
            PlatformError: If the platform reported a nonzero ``errcode``.
        """
        try:
            response = AccessTokenResponse.model_validate_json(body)
        except ValidationError as e:
            msg = f"Token response decode failed: {e.error_count()} error(s)"
            raise ResponseDecodeError(msg, cause=e) from e

        if not response.is_success:
            self._logger.warning(
                "Token endpoint reported an error",
                errcode=response.errcode,
                errmsg=response.errmsg,
            )
            raise ErrorFactory.platform_error(response)

        if not response.access_token or response.expires_in <= 0:
            msg = "Token response is missing access_token or expires_in"
            raise ResponseDecodeError(msg)

        self._logger.info(
            "Access token refreshed",
            expires_in=response.expires_in,
        )
        return response
