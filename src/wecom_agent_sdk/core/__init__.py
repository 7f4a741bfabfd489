"""Core components for the WeCom agent SDK.

Centralized business logic and infrastructure components shared
between sync and async clients.
"""

from __future__ import annotations

from .errors import ErrorFactory
from .http_executor import AsyncHTTPExecutor, SyncHTTPExecutor
from .request_ops import RequestOperations
from .token_cache import AsyncTokenCache, TokenCache
from .token_ops import TokenOperations

__all__ = [
    "ErrorFactory",
    "RequestOperations",
    "TokenOperations",
    "TokenCache",
    "AsyncTokenCache",
    "SyncHTTPExecutor",
    "AsyncHTTPExecutor",
]
