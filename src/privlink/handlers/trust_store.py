"""ELBv2 trust store backed by a CA bundle in S3."""

from __future__ import annotations

import structlog

from privlink.core.errors import ActionError
from privlink.handlers.base import HandlerContext, ProvisioningOutcome
from privlink.handlers.registry import register_handler
from privlink.provisioning.models import ExternalHandle
from privlink.provisioning.poller import ConvergenceCondition, StatusQuery, dig

logger = structlog.get_logger()

# DescribeTrustStores only reports CREATING or ACTIVE; a store that vanishes
# mid-poll surfaces as a failed status query instead.
TRUST_STORE_ACTIVE = ConvergenceCondition(
    status_path=("Status",),
    success=frozenset({"ACTIVE"}),
    failure=frozenset(),
    attributes={"arn": ("TrustStoreArn",), "name": ("Name",)},
    description="trust store active",
)


class TrustStoreHandler:
    name = "trust_store"

    async def provision(self, ctx: HandlerContext) -> ProvisioningOutcome:
        bucket = ctx.param("CaCertificatesBundleS3Bucket", "trust_store_bucket")
        key = ctx.param("CaCertificatesBundleS3Key", "trust_store_key")

        existing = ctx.event.physical_resource_id
        if ctx.is_update and existing and existing.startswith("arn:"):
            handle = await self._modify(ctx, existing, bucket, key)
        else:
            handle = await self._create(ctx, bucket, key)

        # Newly created stores are never ACTIVE on the first describe
        await ctx.poller.wait_for(
            StatusQuery(
                service="elbv2",
                action="DescribeTrustStores",
                params={"TrustStoreArns": [handle.id]},
                resource_path=("TrustStores", 0),
            ),
            TRUST_STORE_ACTIVE,
            initial_delay=ctx.poller.interval,
        )
        return ProvisioningOutcome(physical_resource_id=handle.id, data={"TrustStoreArn": handle.id})

    async def _create(self, ctx: HandlerContext, bucket: str, key: str) -> ExternalHandle:
        name = ctx.param("Name", "trust_store_name")
        response = await ctx.invoker.call(
            "elbv2",
            "CreateTrustStore",
            {
                "Name": name,
                "CaCertificatesBundleS3Bucket": bucket,
                "CaCertificatesBundleS3Key": key,
            },
        )
        arn = dig(response, ("TrustStores", 0, "TrustStoreArn"))
        if not arn:
            raise ActionError("CreateTrustStore returned no trust store", {"name": name})
        logger.info("trust_store_created", trust_store_arn=arn)
        return ExternalHandle(arn, kind="trust-store")

    async def _modify(self, ctx: HandlerContext, arn: str, bucket: str, key: str) -> ExternalHandle:
        await ctx.invoker.call(
            "elbv2",
            "ModifyTrustStore",
            {
                "TrustStoreArn": arn,
                "CaCertificatesBundleS3Bucket": bucket,
                "CaCertificatesBundleS3Key": key,
            },
        )
        logger.info("trust_store_modified", trust_store_arn=arn)
        return ExternalHandle(arn, kind="trust-store")


register_handler(
    TrustStoreHandler.name,
    TrustStoreHandler,
    description="Create or refresh an ELBv2 trust store from an S3 CA bundle",
)

__all__ = ["TrustStoreHandler", "TRUST_STORE_ACTIVE"]
