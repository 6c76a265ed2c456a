"""
Global pytest configuration and fixtures for resilient-http tests.
"""
import json
from typing import Callable, List, Optional

import httpx
import pytest
from pydantic import BaseModel

from resilient_http.core.domain.requests import BaseRequest
from resilient_http.infrastructure.http.client_factory import HttpxClientFactory
from resilient_http.infrastructure.http.config import HttpClientConfig
from resilient_http.infrastructure.http.executor import HttpRequestExecutor
from resilient_http.infrastructure.resilience.circuit_breaker import CircuitBreakerConfig
from resilient_http.infrastructure.resilience.policy_store import PolicyStore
from resilient_http.infrastructure.resilience.retry import BackoffType, RetryConfig
from resilient_http.shared.exceptions import TransportError

BASE_URL = "https://api.example.test"


class User(BaseModel):
    """Response model used across executor tests."""
    id: int
    user_name: str
    email: Optional[str] = None


class GetUserRequest(BaseRequest[User]):
    pass


class ListUsersRequest(BaseRequest[List[User]]):
    response_type = List[User]


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Sleep replacement that records requested delays and returns at once."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class RecordingHandler:
    """MockTransport handler that records requests and replays responses."""

    def __init__(self, responder: Callable[[httpx.Request], httpx.Response]):
        self.responder = responder
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    @property
    def calls(self) -> int:
        return len(self.requests)


def json_response(payload, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(payload).encode("utf-8"),
                          headers={"Content-Type": "application/json"})


def transport_failure():
    return TransportError("boom", method="GET", url=f"{BASE_URL}/x", status_code=503)


@pytest.fixture
def fake_clock() -> FakeClock:
    """Controllable clock for circuit breaker tests."""
    return FakeClock()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    """Sleep that records delays instead of waiting."""
    return RecordingSleep()


@pytest.fixture
def policy_store(fake_clock, recording_sleep) -> PolicyStore:
    """Policy store with a fake clock and instant retries."""
    return PolicyStore(
        retry_config=RetryConfig(max_attempts=3, backoff_type=BackoffType.CONSTANT, initial_delay=0.01),
        circuit_breaker_config=CircuitBreakerConfig(
            failure_ratio=0.5, sampling_duration=10.0, minimum_throughput=4, break_duration=5.0
        ),
        clock=fake_clock,
        sleep=recording_sleep
    )


@pytest.fixture
def make_executor(policy_store):
    """Build an executor whose default client talks to a mock transport."""
    def _make(responder: Callable[[httpx.Request], httpx.Response]):
        handler = RecordingHandler(responder)
        factory = HttpxClientFactory(
            default_config=HttpClientConfig(base_url=BASE_URL),
            transport=httpx.MockTransport(handler)
        )
        return HttpRequestExecutor(factory, policy_store), handler
    return _make
