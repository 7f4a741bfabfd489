"""WeCom (WeChat Work) agent SDK for Python."""

from .async_client import AsyncAgentClient
from .client import AgentClient
from .config import AgentClientConfig, AgentCredentials, CacheConfig, TelemetryConfig
from .errors import (
    AgentClientError,
    ErrorCode,
    InvalidConfigError,
    PlatformError,
    RequestEncodingError,
    RequestTimeoutError,
    ResponseDecodeError,
    ResponseReadError,
    TokenAcquisitionError,
    TransportError,
)
from .models import AccessTokenResponse, CachedToken, CommonResponse, TokenState
from .telemetry import SDK_VERSION, Telemetry, configure_telemetry

__all__ = [
    "AgentClient",
    "AsyncAgentClient",
    "AgentClientConfig",
    "AgentCredentials",
    "CacheConfig",
    "TelemetryConfig",
    "AgentClientError",
    "ErrorCode",
    "InvalidConfigError",
    "PlatformError",
    "RequestEncodingError",
    "RequestTimeoutError",
    "ResponseDecodeError",
    "ResponseReadError",
    "TokenAcquisitionError",
    "TransportError",
    "AccessTokenResponse",
    "CachedToken",
    "CommonResponse",
    "TokenState",
    "Telemetry",
    "configure_telemetry",
]

__version__ = SDK_VERSION
