"""
Pytest configuration and shared fixtures for failover_proxy tests.
"""

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from failover_proxy.config import ProxyConfig
from support import FakeOrigins


@pytest.fixture
def origins() -> FakeOrigins:
    """Simulated origins; every host is down until routed."""
    return FakeOrigins()


@pytest.fixture
def http_client(origins: FakeOrigins) -> httpx.AsyncClient:
    """Upstream client whose requests land on the simulated origins."""
    return httpx.AsyncClient(transport=httpx.MockTransport(origins))


@pytest.fixture
def master_token() -> str:
    return "test-master-token"


@pytest.fixture
def make_config(master_token: str) -> Callable[..., ProxyConfig]:
    """Build a ProxyConfig with two primaries and a fallback, plus overrides."""

    def _make(**overrides: Any) -> ProxyConfig:
        values: dict[str, Any] = {
            "master_token": master_token,
            "primary_origins": [
                {"url": "https://a", "weight": 1},
                {"url": "https://b", "weight": 1},
            ],
            "fallback_origin": "https://c",
        }
        values.update(overrides)
        return ProxyConfig(**values)

    return _make


@pytest.fixture
def config(make_config: Callable[..., ProxyConfig]) -> ProxyConfig:
    return make_config()


@pytest.fixture
def sample_request_body() -> bytes:
    """Provide a sample webhook body for tests."""
    return b'{"type": 1, "id": "evt-12345"}'
