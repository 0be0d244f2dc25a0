"""Tests for provisioning/reporter.py."""

import json

import httpx
import pytest
import respx
from httpx import Response
from privlink.provisioning.models import ProvisioningEvent, ProvisioningResult
from privlink.provisioning.reporter import ResultReporter


@pytest.fixture
def event(event_factory):
    return ProvisioningEvent.parse(event_factory())


@pytest.mark.asyncio
async def test_puts_response_body(event, response_url):
    reporter = ResultReporter(log_stream_name="2024/01/01/[$LATEST]abc")
    result = ProvisioningResult.success(event, "phys-1", {"ServiceName": "svc"})

    with respx.mock:
        route = respx.put(response_url).mock(return_value=Response(200))

        delivered = await reporter.send(response_url, result)

    assert delivered is True
    assert route.call_count == 1
    request = route.calls.last.request
    body = json.loads(request.content)
    assert body["Status"] == "SUCCESS"
    assert body["Reason"] == "See the details in CloudWatch Log Stream: 2024/01/01/[$LATEST]abc"
    assert body["PhysicalResourceId"] == "phys-1"
    assert body["RequestId"] == "req-123"
    assert body["Data"] == {"ServiceName": "svc"}
    assert request.headers["content-type"] == ""
    assert request.headers["content-length"] == str(len(request.content))


@pytest.mark.asyncio
async def test_network_error_is_swallowed_and_counted(event, response_url, metrics):
    reporter = ResultReporter(metrics=metrics)

    with respx.mock:
        route = respx.put(response_url).mock(side_effect=httpx.ConnectError("connection refused"))

        delivered = await reporter.send(response_url, ProvisioningResult.failure(event))

    assert delivered is False
    assert route.call_count == 1
    metrics.emit.assert_awaited_once_with("ResponseDeliveryFailed", 1, Status="FAILED")


@pytest.mark.asyncio
async def test_rejected_put_is_not_retried(event, response_url, metrics):
    reporter = ResultReporter(metrics=metrics)

    with respx.mock:
        route = respx.put(response_url).mock(return_value=Response(403, text="SignatureDoesNotMatch"))

        delivered = await reporter.send(response_url, ProvisioningResult.failure(event))

    assert delivered is False
    assert route.call_count == 1
    metrics.emit.assert_awaited_once()


@pytest.mark.asyncio
async def test_invalid_url_is_swallowed(event):
    reporter = ResultReporter()

    delivered = await reporter.send("https://", ProvisioningResult.failure(event))

    assert delivered is False


def test_reason_without_log_stream():
    assert ResultReporter().reason == "See the details in CloudWatch Log Stream: unknown"
