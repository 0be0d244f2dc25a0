"""Root test configuration."""

import copy
import logging
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import structlog
from privlink.config import Settings
from privlink.core.errors import ActionCallError

RESPONSE_URL = "https://cloudformation-custom-resource-response.s3.amazonaws.com/callback?sig=abc"


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


class ScriptedClients:
    """ClientFactory whose services answer from per-action response queues.

    Each queued item is returned (or raised, for exceptions) once; the last
    item repeats for any further calls.
    """

    def __init__(self) -> None:
        self._scripts: dict[tuple[str, str], list[Any]] = {}
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    def script(self, service: str, action: str, *responses: Any) -> "ScriptedClients":
        self._scripts[(service, action)] = list(responses)
        return self

    def __call__(self, service: str) -> "_ScriptedClient":
        return _ScriptedClient(self, service)

    def count(self, action: str) -> int:
        return sum(1 for _, called, _ in self.calls if called == action)

    def params(self, action: str) -> list[dict[str, Any]]:
        return [params for _, called, params in self.calls if called == action]

    async def _answer(self, service: str, action: str, params: dict[str, Any]) -> dict[str, Any]:
        self.calls.append((service, action, copy.deepcopy(params)))
        queue = self._scripts.get((service, action))
        if not queue:
            return {}
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, BaseException):
            raise item
        return copy.deepcopy(item)


class _ScriptedClient:
    def __init__(self, owner: ScriptedClients, service: str) -> None:
        self._owner = owner
        self.service = service

    async def call(self, action: str, params: dict[str, Any]) -> dict[str, Any]:
        return await self._owner._answer(self.service, action, params)


def call_error(service: str, action: str, code: str = "InvalidParameterValue") -> ActionCallError:
    return ActionCallError(f"{code} from {action}", service=service, action=action, code=code)


@pytest.fixture
def clients() -> ScriptedClients:
    return ScriptedClients()


@pytest.fixture
def clients_factory():
    return ScriptedClients


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def _sleep(delay: float) -> None:
        sleeps.append(delay)

    return _sleep


@pytest.fixture
def metrics():
    collector = MagicMock()
    collector.emit = AsyncMock()
    collector.close = AsyncMock()
    return collector


@pytest.fixture
def settings() -> Settings:
    return Settings(
        aws_region="eu-west-1",
        poll_interval_seconds=5.0,
        metrics_enabled=False,
        service_id="vpce-svc-0123456789abcdef0",
        dns_name="api.example.com",
        hosted_zone_id="Z0123456789ABC",
        trust_store_name="mtls-store",
        trust_store_bucket="ca-bundles",
        trust_store_key="bundle.pem",
        vpce_id="vpce-0abc",
        target_group_arn="arn:aws:elasticloadbalancing:eu-west-1:111122223333:targetgroup/tg/abc",
        api_url="https://a1b2c3d4e5.execute-api.eu-west-1.amazonaws.com/prod",
        account_id="111122223333",
        api_key_secret_id="prod/api-key",
    )


def make_event(request_type: str = "Create", **overrides: Any) -> dict[str, Any]:
    event = {
        "RequestType": request_type,
        "StackId": "arn:aws:cloudformation:eu-west-1:111122223333:stack/producer/guid",
        "RequestId": "req-123",
        "LogicalResourceId": "ConfigurePrivateDns",
        "ResponseURL": RESPONSE_URL,
        "ResourceType": "Custom::PrivateDns",
        "ResourceProperties": {"ServiceToken": "arn:aws:lambda:eu-west-1:111122223333:function:x"},
    }
    event.update(overrides)
    return event


@pytest.fixture
def event_factory():
    return make_event


@pytest.fixture
def response_url() -> str:
    return RESPONSE_URL


@pytest.fixture
def failing_call():
    return call_error
