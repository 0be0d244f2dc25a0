"""Tests for clients/aws.py."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError
from privlink.clients.aws import AwsActionClient, AwsClientFactory
from privlink.core.errors import ActionCallError


def make_session(client):
    session = MagicMock()
    session.client = MagicMock(
        return_value=AsyncMock(
            __aenter__=AsyncMock(return_value=client),
            __aexit__=AsyncMock(return_value=None),
        )
    )
    return session


@pytest.mark.asyncio
async def test_action_name_maps_to_boto_method():
    client = MagicMock(spec=["describe_trust_stores"])
    client.describe_trust_stores = AsyncMock(
        return_value={"TrustStores": [{"Status": "ACTIVE"}], "ResponseMetadata": {"HTTPStatusCode": 200}}
    )
    session = make_session(client)

    response = await AwsActionClient("elbv2", session).call(
        "DescribeTrustStores", {"TrustStoreArns": ["arn:x"]}
    )

    assert response == {"TrustStores": [{"Status": "ACTIVE"}]}
    session.client.assert_called_once_with("elbv2")
    client.describe_trust_stores.assert_awaited_once_with(TrustStoreArns=["arn:x"])


@pytest.mark.asyncio
async def test_client_error_becomes_action_call_error():
    client = MagicMock(spec=["register_targets"])
    client.register_targets = AsyncMock(
        side_effect=ClientError(
            {"Error": {"Code": "TargetGroupNotFound", "Message": "One or more target groups not found"}},
            "RegisterTargets",
        )
    )

    with pytest.raises(ActionCallError) as exc_info:
        await AwsActionClient("elbv2", make_session(client)).call("RegisterTargets", {})

    error = exc_info.value
    assert error.code == "TargetGroupNotFound"
    assert error.service == "elbv2"
    assert error.action == "RegisterTargets"
    assert error.message == "One or more target groups not found"


@pytest.mark.asyncio
async def test_botocore_error_uses_type_name():
    client = MagicMock(spec=["modify_vpc_endpoint"])
    client.modify_vpc_endpoint = AsyncMock(
        side_effect=EndpointConnectionError(endpoint_url="https://ec2.eu-west-1.amazonaws.com")
    )

    with pytest.raises(ActionCallError) as exc_info:
        await AwsActionClient("ec2", make_session(client)).call("ModifyVpcEndpoint", {})

    assert exc_info.value.code == "EndpointConnectionError"


@pytest.mark.asyncio
async def test_unknown_action():
    client = MagicMock(spec=[])

    with pytest.raises(ActionCallError) as exc_info:
        await AwsActionClient("ec2", make_session(client)).call("LaunchRocket", {})

    assert exc_info.value.code == "UnknownAction"


def test_factory_reuses_clients_per_service():
    session = MagicMock()
    factory = AwsClientFactory("eu-west-1", session=session)

    ec2 = factory("ec2")

    assert factory("ec2") is ec2
    assert factory("route53") is not ec2
    assert ec2.service == "ec2"
