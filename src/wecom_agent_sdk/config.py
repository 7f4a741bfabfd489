"""Configuration for the WeCom agent SDK.

Uses Pydantic v2 for validation with sensible defaults. The whole
configuration is passed explicitly to the client constructor; ``from_env``
is only a convenience for building it from the process environment.
"""

from __future__ import annotations

import os
from typing import Annotated, Any, Self

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from .errors import InvalidConfigError
from .telemetry import get_logger

DEFAULT_BASE_URL = "https://qyapi.weixin.qq.com/cgi-bin"


class AgentCredentials(BaseModel):
    """Identity of a registered enterprise application."""

    model_config = ConfigDict(frozen=True)

    corp_id: str = ""
    agent_id: int = 0
    secret: SecretStr = SecretStr("")

    @property
    def is_complete(self) -> bool:
        """Whether both corp id and secret are set."""
        return bool(self.corp_id) and bool(self.secret.get_secret_value())


class TelemetryConfig(BaseModel):
    """Logging and tracing configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    service_name: str = "wecom-agent-sdk"
    log_level: str = "INFO"


class CacheConfig(BaseModel):
    """Token cache configuration."""

    model_config = ConfigDict(frozen=True)

    token_buffer: Annotated[int, Field(ge=0)] = 0  # seconds before expiry


class AgentClientConfig(BaseModel):
    """Main configuration for the WeCom agent SDK."""

    model_config = ConfigDict(frozen=True, validate_default=True)

    credentials: AgentCredentials

    base_url: str = Field(default=DEFAULT_BASE_URL, min_length=1)
    token_path: str = "/gettoken"

    # HTTP settings
    timeout: Annotated[float, Field(gt=0, le=300)] = 30.0
    connect_timeout: Annotated[float, Field(gt=0, le=60)] = 10.0

    # Sub-configurations
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)

    @property
    def base_url_str(self) -> str:
        """Get base URL as string without trailing slash."""
        return self.base_url.rstrip("/")

    def with_overrides(self, **kwargs: Any) -> Self:
        """Create new config with overridden values."""
        data = self.model_dump()
        data["credentials"] = self.credentials
        data.update(kwargs)
        return self.__class__(**data)

    @classmethod
    def from_env(cls, prefix: str = "WECHAT_", *, strict: bool = False) -> Self:
        """Create config from environment variables.

        Reads ``{prefix}CORP_ID``, ``{prefix}AGENT_ID``, ``{prefix}SECRET`` and
        the optional ``{prefix}BASE_URL`` and ``{prefix}TIMEOUT``.

        Raises:
            InvalidConfigError: If the agent id is not an integer, or if
                corp id or secret are missing and ``strict`` is set.
        """

        def get_env(key: str, default: Any = None) -> Any:
            return os.environ.get(f"{prefix}{key}", default)

        corp_id = get_env("CORP_ID", "")
        secret = get_env("SECRET", "")

        missing = [
            f"{prefix}{key}"
            for key, value in (("CORP_ID", corp_id), ("SECRET", secret))
            if not value
        ]
        if missing:
            if strict:
                msg = f"Missing required environment variables: {', '.join(missing)}"
                raise InvalidConfigError(msg, field=missing[0])
            get_logger().warning(
                "WeCom credentials not set in environment",
                missing_fields=missing,
            )

        agent_id_raw = get_env("AGENT_ID", "")
        try:
            agent_id = int(agent_id_raw) if agent_id_raw else 0
        except ValueError as e:
            msg = f"{prefix}AGENT_ID must be an integer, got {agent_id_raw!r}"
            raise InvalidConfigError(msg, field="agent_id") from e

        data: dict[str, Any] = {
            "credentials": AgentCredentials(
                corp_id=corp_id,
                agent_id=agent_id,
                secret=SecretStr(secret),
            ),
        }
        if base_url := get_env("BASE_URL"):
            data["base_url"] = base_url
        if timeout := get_env("TIMEOUT"):
            data["timeout"] = float(timeout)

        return cls(**data)
