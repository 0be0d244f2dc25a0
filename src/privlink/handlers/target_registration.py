"""Register a VPC endpoint's private IPs as targets of a load balancer target group."""

from __future__ import annotations

import structlog

from privlink.core.errors import ActionError
from privlink.handlers.base import HandlerContext, ProvisioningOutcome
from privlink.handlers.registry import register_handler
from privlink.provisioning.poller import dig

logger = structlog.get_logger()


class TargetRegistrationHandler:
    name = "target_registration"

    async def provision(self, ctx: HandlerContext) -> ProvisioningOutcome:
        vpce_id = ctx.param("VpcEndpointId", "vpce_id")
        target_group_arn = ctx.param("TargetGroupArn", "target_group_arn")

        endpoints = await ctx.invoker.call(
            "ec2", "DescribeVpcEndpoints", {"VpcEndpointIds": [vpce_id]}
        )
        eni_ids = dig(endpoints, ("VpcEndpoints", 0, "NetworkInterfaceIds")) or []
        if not eni_ids:
            # An empty filter would describe every interface in the account
            raise ActionError("Endpoint has no network interfaces", {"vpce_id": vpce_id})

        enis = await ctx.invoker.call(
            "ec2", "DescribeNetworkInterfaces", {"NetworkInterfaceIds": list(eni_ids)}
        )
        addresses = [
            eni["PrivateIpAddress"]
            for eni in enis.get("NetworkInterfaces", [])
            if eni.get("PrivateIpAddress")
        ]
        logger.info("endpoint_addresses_discovered", vpce_id=vpce_id, count=len(addresses))

        for address in addresses:
            await ctx.invoker.call(
                "elbv2",
                "RegisterTargets",
                {"TargetGroupArn": target_group_arn, "Targets": [{"Id": address}]},
            )

        return ProvisioningOutcome(data={"TargetIps": ",".join(addresses)})


register_handler(
    TargetRegistrationHandler.name,
    TargetRegistrationHandler,
    description="Register interface endpoint IPs with an ELBv2 target group",
)

__all__ = ["TargetRegistrationHandler"]
