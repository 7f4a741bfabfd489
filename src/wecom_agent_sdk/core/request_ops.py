"""Request building and response decoding shared by sync and async clients."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from ..errors import RequestEncodingError, ResponseDecodeError
from ..models import CommonResponse
from ..telemetry import Telemetry
from .errors import ErrorFactory

M = TypeVar("M", bound=BaseModel)

ACCESS_TOKEN_PARAM = "access_token"

JSON_HEADERS = {"Content-Type": "application/json"}


class RequestOperations:
    """Stateless helpers for one authenticated call."""

    def __init__(self, telemetry: Telemetry | None = None) -> None:
        self._logger = (telemetry or Telemetry()).logger

    def build_query(
        self,
        params: Mapping[str, Any] | None,
        token: str,
    ) -> dict[str, Any]:
        """Merge caller params with the access token.

        The token is always set last, overwriting any caller value for the
        reserved ``access_token`` key.
        """
        query = dict(params) if params else {}
        if ACCESS_TOKEN_PARAM in query:
            self._logger.debug("Overriding caller supplied access_token parameter")
        query[ACCESS_TOKEN_PARAM] = token
        return query

    def encode_body(self, payload: Any) -> bytes | None:
        """Serialize the request payload to JSON.

        Args:
            payload: Any JSON-serializable structure or pydantic model.
                ``None`` sends no body.

        Returns:
            UTF-8 encoded JSON, or None.

        Raises:
            RequestEncodingError: If the payload is not JSON-serializable.
        """
        if payload is None:
            return None

        try:
            if isinstance(payload, BaseModel):
                payload = payload.model_dump(mode="json", by_alias=True)
            return json.dumps(payload, ensure_ascii=False, allow_nan=False).encode("utf-8")
        except (TypeError, ValueError, RecursionError) as e:
            raise RequestEncodingError(
                f"Request encoding failed: {e}",
                correlation_id=ErrorFactory.generate_correlation_id(),
                cause=e,
            ) from e

    def decode_envelope(self, body: bytes) -> CommonResponse:
        """Decode the common ``errcode``/``errmsg`` envelope.

        Raises:
            ResponseDecodeError: If the body is not a JSON object envelope.
        """
        try:
            return CommonResponse.model_validate_json(body)
        except ValidationError as e:
            raise ResponseDecodeError(
                f"Response decode failed: {e.error_count()} error(s)",
                cause=e,
            ) from e

    def check_envelope(self, envelope: CommonResponse, *, path: str) -> None:
        """Raise PlatformError for a nonzero ``errcode``."""
        if envelope.is_success:
            return
        self._logger.warning(
            "Platform reported an error",
            path=path,
            errcode=envelope.errcode,
            errmsg=envelope.errmsg,
        )
        raise ErrorFactory.platform_error(envelope)

    def decode_payload(
        self,
        body: bytes,
        response_model: type[M] | None = None,
    ) -> M | dict[str, Any]:
        """Decode the same body into the caller's destination shape.

        Args:
            body: Raw response body, already validated as an envelope.
            response_model: Pydantic model to decode into; a plain dict is
                returned when omitted.

        Raises:
            ResponseDecodeError: If the body does not fit the model.
        """
        try:
            if response_model is None:
                return json.loads(body)
            return response_model.model_validate_json(body)
        except (ValidationError, ValueError) as e:
            raise ResponseDecodeError(
                f"Response decode failed: {e}",
                cause=e,
            ) from e

    def process_response(
        self,
        body: bytes,
        *,
        path: str,
        response_model: type[M] | None = None,
    ) -> M | dict[str, Any]:
        """Envelope check followed by payload decode of one read body."""
        envelope = self.decode_envelope(body)
        self.check_envelope(envelope, path=path)
        return self.decode_payload(body, response_model)
