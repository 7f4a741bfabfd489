"""
Shared test fixtures for WeCom agent SDK tests.

Provides common fixtures for configuration, a controllable clock
and an in-process fake of the WeCom API.
"""

import pytest
from hypothesis import settings
from pydantic import SecretStr

from wecom_agent_sdk.client import AgentClient
from wecom_agent_sdk.config import (
    AgentClientConfig,
    AgentCredentials,
    CacheConfig,
    TelemetryConfig,
)

from tests.fakes import FakeClock, FakeWeComBackend

settings.register_profile("ci", max_examples=100)
settings.register_profile("dev", max_examples=50)
settings.load_profile("dev")


@pytest.fixture
def credentials() -> AgentCredentials:
    """Provide the identity used throughout the scenarios."""
    return AgentCredentials(corp_id="CORP1", agent_id=1, secret=SecretStr("S"))


@pytest.fixture
def base_config(credentials: AgentCredentials) -> AgentClientConfig:
    """Provide a basic SDK configuration for testing."""
    return AgentClientConfig(
        credentials=credentials,
        base_url="https://qyapi.example.com/cgi-bin",
    )


@pytest.fixture
def cache_config() -> CacheConfig:
    """Provide cache configuration for testing."""
    return CacheConfig(token_buffer=60)


@pytest.fixture
def telemetry_config() -> TelemetryConfig:
    """Provide telemetry configuration for testing."""
    return TelemetryConfig(enabled=False, service_name="test-sdk")


@pytest.fixture
def clock() -> FakeClock:
    """Provide a manually advanced clock."""
    return FakeClock()


@pytest.fixture
def backend() -> FakeWeComBackend:
    """Provide a fake WeCom backend."""
    return FakeWeComBackend()


@pytest.fixture
def client(base_config: AgentClientConfig, backend: FakeWeComBackend, clock: FakeClock):
    """Provide a sync client wired to the fake backend."""
    with AgentClient(base_config, transport=backend.transport(), clock=clock) as c:
        yield c


@pytest.fixture
def sample_token_response() -> dict:
    """Provide a sample gettoken response."""
    return {
        "errcode": 0,
        "errmsg": "ok",
        "access_token": "abc",
        "expires_in": 7200,
    }
