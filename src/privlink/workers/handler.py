from __future__ import annotations

import asyncio
from typing import Any

import structlog

from privlink.clients import AwsClientFactory, ClientFactory
from privlink.cloudwatch import MetricsCollector
from privlink.config import Settings, get_settings
from privlink.core.errors import ConfigurationError
from privlink.handlers import (
    endpoint_policy,
    private_dns,
    target_registration,
    trust_store,
)
from privlink.handlers.authorizer import TokenAuthorizer
from privlink.logging import bind_invocation, configure_logging
from privlink.provisioning.poller import Sleep
from privlink.provisioning.reporter import ResultReporter
from privlink.secrets import SecretsManager
from privlink.tracing import init_xray
from privlink.workflows.provisioning import ProvisioningWorkflow

logger = structlog.get_logger()


async def handle_event(
    event: dict[str, Any],
    context: Any,
    settings: Settings,
    *,
    handler_name: str | None = None,
    clients: ClientFactory | None = None,
    metrics: MetricsCollector | None = None,
    sleep: Sleep = asyncio.sleep,
) -> dict[str, Any]:
    """Run one custom resource event and return a summary of what was reported."""
    log_stream_name = getattr(context, "log_stream_name", None)
    properties = event.get("ResourceProperties") if isinstance(event, dict) else None
    name = (
        handler_name
        or (properties.get("Handler") if isinstance(properties, dict) else None)
        or settings.handler
        or "unknown"
    )
    metrics = metrics or MetricsCollector(
        settings.metrics_namespace,
        settings.aws_region,
        enabled=settings.metrics_enabled,
    )

    workflow = ProvisioningWorkflow(
        clients=clients or AwsClientFactory(settings.aws_region),
        reporter=ResultReporter(
            log_stream_name=log_stream_name,
            timeout=settings.response_timeout,
            metrics=metrics,
        ),
        settings=settings,
        handler_name=handler_name,
        metrics=metrics,
        sleep=sleep,
        default_physical_id=log_stream_name,
    )

    try:
        async with metrics.timer("InvocationDuration", Handler=name):
            outcome = await workflow.handle(event)
    finally:
        await metrics.close()

    result = outcome.result
    return {
        "Status": str(result.status) if result else None,
        "PhysicalResourceId": result.physical_resource_id if result else None,
        "ResponseDelivered": outcome.delivered,
    }


def _run(event: dict[str, Any], context: Any, handler_name: str | None) -> dict[str, Any]:
    settings = get_settings()
    configure_logging(settings.log_level)
    if settings.xray_enabled:
        init_xray("privlink")

    request_id = getattr(context, "aws_request_id", "unknown")
    bind_invocation(
        aws_request_id=request_id,
        environment=settings.environment,
        handler=handler_name or settings.handler,
    )
    logger.info(
        "lambda_invoked",
        request_type=event.get("RequestType") if isinstance(event, dict) else None,
        logical_resource_id=event.get("LogicalResourceId") if isinstance(event, dict) else None,
    )

    return asyncio.run(handle_event(event, context, settings, handler_name=handler_name))


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Generic entrypoint; the handler comes from ResourceProperties.Handler or PRIVLINK_HANDLER."""
    return _run(event, context, None)


def private_dns_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    return _run(event, context, private_dns.PrivateDnsVerificationHandler.name)


def trust_store_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    return _run(event, context, trust_store.TrustStoreHandler.name)


def target_registration_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    return _run(event, context, target_registration.TargetRegistrationHandler.name)


def endpoint_policy_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    return _run(event, context, endpoint_policy.EndpointPolicyHandler.name)


async def authorize_event(
    event: dict[str, Any],
    settings: Settings,
    *,
    secrets: SecretsManager | None = None,
) -> dict[str, Any]:
    if not settings.api_key_secret_id:
        raise ConfigurationError(
            "Missing handler parameter ApiKeySecretId",
            {"env": "PRIVLINK_API_KEY_SECRET_ID"},
        )
    authorizer = TokenAuthorizer(
        secrets or SecretsManager(settings.aws_region),
        settings.api_key_secret_id,
    )
    return await authorizer.authorize(event.get("authorizationToken"), event.get("methodArn"))


def authorizer_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """API Gateway TOKEN authorizer entrypoint."""
    settings = get_settings()
    configure_logging(settings.log_level)
    bind_invocation(
        aws_request_id=getattr(context, "aws_request_id", "unknown"),
        environment=settings.environment,
    )
    return asyncio.run(authorize_event(event, settings))
