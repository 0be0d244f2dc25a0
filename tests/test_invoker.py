"""Tests for provisioning/invoker.py."""

import pytest
from privlink.core.errors import ActionError, PollTransientError
from privlink.provisioning.invoker import ActionInvoker
from privlink.provisioning.lifecycle import InvocationLifecycle, InvocationPhase


@pytest.mark.asyncio
async def test_call_returns_response_and_counts(clients, metrics):
    clients.script("ec2", "ModifyVpcEndpoint", {"Return": True})
    invoker = ActionInvoker(clients, metrics=metrics)

    response = await invoker.call("ec2", "ModifyVpcEndpoint", {"VpcEndpointId": "vpce-1"})

    assert response == {"Return": True}
    assert invoker.calls == 1
    assert clients.params("ModifyVpcEndpoint") == [{"VpcEndpointId": "vpce-1"}]
    metrics.emit.assert_awaited_once_with("ActionCall", 1, Service="ec2", Action="ModifyVpcEndpoint")


@pytest.mark.asyncio
async def test_call_failure_becomes_action_error(clients, metrics, failing_call):
    clients.script("elbv2", "CreateTrustStore", failing_call("elbv2", "CreateTrustStore", "DuplicateTrustStoreName"))
    invoker = ActionInvoker(clients, metrics=metrics)

    with pytest.raises(ActionError) as exc_info:
        await invoker.call("elbv2", "CreateTrustStore", {"Name": "store"})

    assert exc_info.value.details == {
        "service": "elbv2",
        "action": "CreateTrustStore",
        "code": "DuplicateTrustStoreName",
    }
    # Not retried
    assert clients.count("CreateTrustStore") == 1
    emitted = [call.args[0] for call in metrics.emit.await_args_list]
    assert emitted == ["ActionCall", "ActionCallFailed"]


@pytest.mark.asyncio
async def test_call_moves_lifecycle_to_invoking(clients):
    lifecycle = InvocationLifecycle()
    invoker = ActionInvoker(clients, lifecycle=lifecycle)

    await invoker.call("ec2", "DescribeVpcEndpoints", {})

    assert lifecycle.phase is InvocationPhase.invoking


@pytest.mark.asyncio
async def test_query_failure_becomes_poll_transient_error(clients, failing_call):
    action = "DescribeTrustStores"
    clients.script("elbv2", action, failing_call("elbv2", action, "TrustStoreNotFound"))
    invoker = ActionInvoker(clients)

    with pytest.raises(PollTransientError) as exc_info:
        await invoker.query("elbv2", action, {"TrustStoreArns": ["arn:1"]})

    assert exc_info.value.details["code"] == "TrustStoreNotFound"
    assert invoker.calls == 0
