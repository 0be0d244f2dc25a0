"""
Private DNS name verification for a VPC endpoint service.

Sets the private DNS name on the service, waits for the service to expose
its domain-ownership TXT record, publishes that record in Route 53, starts
verification, and waits until the name is verified. Verification waits on
DNS propagation, which is why this handler gets the longest Lambda timeout.
"""

from __future__ import annotations

import structlog

from privlink.handlers.base import HandlerContext, ProvisioningOutcome
from privlink.handlers.registry import register_handler
from privlink.provisioning.models import ExternalHandle
from privlink.provisioning.poller import ConvergenceCondition, StatusQuery

logger = structlog.get_logger()

SERVICE_AVAILABLE = ConvergenceCondition(
    status_path=("ServiceState",),
    success=frozenset({"Available"}),
    failure=frozenset({"Failed", "Deleting", "Deleted"}),
    attributes={
        "service_name": ("ServiceName",),
        "record_name": ("PrivateDnsNameConfiguration", "Name"),
        "record_value": ("PrivateDnsNameConfiguration", "Value"),
    },
    required=frozenset({"service_name", "record_name", "record_value"}),
    description="endpoint service available",
)

DNS_VERIFIED = ConvergenceCondition(
    status_path=("PrivateDnsNameConfiguration", "State"),
    success=frozenset({"verified"}),
    failure=frozenset({"failed"}),
    description="private dns name verified",
)


def _txt_value(value: str) -> str:
    if value.startswith('"') and value.endswith('"'):
        return value
    return f'"{value}"'


class PrivateDnsVerificationHandler:
    name = "private_dns"

    async def provision(self, ctx: HandlerContext) -> ProvisioningOutcome:
        service_id = ctx.param("ServiceId", "service_id")
        dns_name = ctx.param("DnsName", "dns_name")
        hosted_zone_id = ctx.param("HostedZoneId", "hosted_zone_id")
        ttl = int(ctx.param("RecordTtl", "dns_record_ttl"))

        handle = ExternalHandle(service_id, kind="vpc-endpoint-service")
        log = logger.bind(service_id=handle.id, dns_name=dns_name)

        await ctx.invoker.call(
            "ec2",
            "ModifyVpcEndpointServiceConfiguration",
            {"ServiceId": handle.id, "PrivateDnsName": dns_name},
        )

        describe = StatusQuery(
            service="ec2",
            action="DescribeVpcEndpointServiceConfigurations",
            params={"ServiceIds": [handle.id]},
            resource_path=("ServiceConfigurations", 0),
        )
        available = await ctx.poller.wait_for(describe, SERVICE_AVAILABLE)
        record_name = available.attributes["record_name"]
        record_value = available.attributes["record_value"]

        # UPSERT so an Update can republish the same record
        await ctx.invoker.call(
            "route53",
            "ChangeResourceRecordSets",
            {
                "HostedZoneId": hosted_zone_id,
                "ChangeBatch": {
                    "Changes": [
                        {
                            "Action": "UPSERT",
                            "ResourceRecordSet": {
                                "Name": record_name,
                                "Type": "TXT",
                                "TTL": ttl,
                                "ResourceRecords": [{"Value": _txt_value(record_value)}],
                            },
                        }
                    ]
                },
            },
        )
        log.info("verification_record_published", record_name=record_name)

        await ctx.invoker.call(
            "ec2",
            "StartVpcEndpointServicePrivateDnsVerification",
            {"ServiceId": handle.id},
        )
        await ctx.poller.wait_for(describe, DNS_VERIFIED)

        return ProvisioningOutcome(data={"ServiceName": available.attributes["service_name"]})


register_handler(
    PrivateDnsVerificationHandler.name,
    PrivateDnsVerificationHandler,
    description="Verify an endpoint service's private DNS name through Route 53",
)

__all__ = ["PrivateDnsVerificationHandler", "SERVICE_AVAILABLE", "DNS_VERIFIED"]
