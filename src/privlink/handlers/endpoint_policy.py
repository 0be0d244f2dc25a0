from __future__ import annotations

import json
from urllib.parse import urlparse

from privlink.core.errors import ActionError, ConfigurationError
from privlink.handlers.base import HandlerContext, ProvisioningOutcome
from privlink.handlers.registry import register_handler


def api_id_from_url(api_url: str) -> str:
    """``https://abc123.execute-api.eu-west-1.amazonaws.com/prod`` -> ``abc123``."""
    host = urlparse(api_url).hostname if "://" in api_url else api_url.split("/")[0]
    api_id = (host or "").split(".")[0]
    if not api_id:
        raise ConfigurationError("Cannot derive API id", {"api_url": api_url})
    return api_id


def invoke_policy(region: str, account_id: str, api_id: str) -> dict:
    return {
        "Statement": [
            {
                "Action": "execute-api:Invoke",
                "Effect": "Allow",
                "Principal": {"AWS": "*"},
                "Resource": f"arn:aws:execute-api:{region}:{account_id}:{api_id}/*",
            }
        ],
        "Version": "2012-10-17",
    }


class EndpointPolicyHandler:
    """Restrict an execute-api interface endpoint to a single private API."""

    name = "endpoint_policy"

    async def provision(self, ctx: HandlerContext) -> ProvisioningOutcome:
        vpce_id = ctx.param("VpcEndpointId", "vpce_id")
        api_id = api_id_from_url(ctx.param("ApiUrl", "api_url"))
        region = ctx.param("Region", "aws_region")
        account_id = ctx.param("AccountId", "account_id")

        policy = invoke_policy(region, account_id, api_id)
        response = await ctx.invoker.call(
            "ec2",
            "ModifyVpcEndpoint",
            {"VpcEndpointId": vpce_id, "PolicyDocument": json.dumps(policy, separators=(",", ":"))},
        )
        if response.get("Return") is False:
            raise ActionError("ModifyVpcEndpoint was not applied", {"vpce_id": vpce_id})

        return ProvisioningOutcome(data={"ApiId": api_id})


register_handler(
    EndpointPolicyHandler.name,
    EndpointPolicyHandler,
    description="Scope an interface endpoint policy to one execute-api API",
)

__all__ = ["EndpointPolicyHandler", "api_id_from_url", "invoke_policy"]
