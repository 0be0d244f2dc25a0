from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Mapping

import structlog

from privlink.clients.base import ClientFactory
from privlink.cloudwatch import MetricsCollector
from privlink.config import Settings
from privlink.core.errors import (
    ConfigurationError,
    EventValidationError,
    PrivlinkError,
    format_error_message,
)
from privlink.handlers.base import HandlerContext, ProvisioningHandler, ProvisioningOutcome
from privlink.handlers.registry import HandlerRegistry, handler_registry
from privlink.logging import bind_context
from privlink.provisioning.dispatcher import Route, dispatch
from privlink.provisioning.invoker import ActionInvoker
from privlink.provisioning.lifecycle import InvocationLifecycle, InvocationPhase
from privlink.provisioning.models import (
    ProvisioningEvent,
    ProvisioningResult,
    RequestType,
    ResponseStatus,
)
from privlink.provisioning.poller import ConvergencePoller, Sleep
from privlink.provisioning.reporter import ResultReporter
from privlink.tracing import trace_async

logger = structlog.get_logger()


@dataclass(slots=True)
class InvocationOutcome:
    result: ProvisioningResult | None
    delivered: bool
    phases: tuple[InvocationPhase, ...] = ()


@dataclass(slots=True)
class ProvisioningWorkflow:
    """Runs one provisioning event to exactly one reported result.

    Delete is acknowledged straight away. Create and Update run the selected
    handler; any error it raises turns into a FAILED result, and the detail
    stays in the logs.
    """

    clients: ClientFactory
    reporter: ResultReporter
    settings: Settings
    handler_name: str | None = None
    metrics: MetricsCollector | None = None
    registry: HandlerRegistry = field(default_factory=lambda: handler_registry)
    sleep: Sleep = asyncio.sleep
    default_physical_id: str | None = None

    async def handle(self, raw: Mapping[str, Any]) -> InvocationOutcome:
        """Parse a raw event and run it; malformed events are answered with FAILED when possible."""
        try:
            event = ProvisioningEvent.parse(raw)
        except EventValidationError as exc:
            logger.error("invalid_event", error=exc.message, **exc.details)
            return await self._reject(raw)
        return await self.run(event)

    @trace_async("provisioning_workflow")
    async def run(self, event: ProvisioningEvent) -> InvocationOutcome:
        lifecycle = InvocationLifecycle()
        log = bind_context(
            request_type=str(event.request_type),
            logical_resource_id=event.logical_resource_id,
            request_id=event.request_id,
        )
        log.info("request_received", stack_id=event.stack_id, resource_type=event.resource_type)

        if dispatch(event) is Route.report:
            log.info("delete_acknowledged")
            result = ProvisioningResult.success(event, self._physical_id(event, None))
        else:
            result = await self._provision(event, lifecycle, log)

        lifecycle.advance(InvocationPhase.reporting)
        delivered = await self.reporter.send(event.response_url, result)
        lifecycle.advance(InvocationPhase.done)

        log.info("request_completed", status=str(result.status), delivered=delivered)
        return InvocationOutcome(result=result, delivered=delivered, phases=lifecycle.history)

    async def _provision(
        self,
        event: ProvisioningEvent,
        lifecycle: InvocationLifecycle,
        log: structlog.stdlib.BoundLogger,
    ) -> ProvisioningResult:
        invoker = ActionInvoker(self.clients, metrics=self.metrics, lifecycle=lifecycle)
        poller = ConvergencePoller(
            invoker,
            interval=self.settings.poll_interval_seconds,
            max_attempts=self.settings.poll_max_attempts,
            tolerate_errors=self.settings.tolerate_poll_errors,
            sleep=self.sleep,
            metrics=self.metrics,
            lifecycle=lifecycle,
        )

        handler_name = "unknown"
        try:
            handler = self._resolve_handler(event)
            handler_name = handler.name
            log = log.bind(handler=handler_name)
            ctx = HandlerContext(event=event, invoker=invoker, poller=poller, settings=self.settings)
            outcome = await handler.provision(ctx)
        except PrivlinkError as exc:
            log.error(
                "provisioning_failed",
                error_type=type(exc).__name__,
                message=format_error_message(exc),
                phase=str(lifecycle.phase),
            )
            await self._emit("ProvisioningFailed", handler_name)
            return ProvisioningResult.failure(event, self._failure_physical_id(event))
        except Exception as exc:
            log.exception(
                "provisioning_crashed",
                error_type=type(exc).__name__,
                phase=str(lifecycle.phase),
            )
            await self._emit("ProvisioningFailed", handler_name)
            return ProvisioningResult.failure(event, self._failure_physical_id(event))

        log.info(
            "provisioning_succeeded",
            action_calls=invoker.calls,
            poll_queries=poller.queries,
        )
        await self._emit("ProvisioningSucceeded", handler_name)
        return ProvisioningResult.success(event, self._physical_id(event, outcome), outcome.data)

    def _resolve_handler(self, event: ProvisioningEvent) -> ProvisioningHandler:
        name = self.handler_name or event.prop("Handler") or self.settings.handler
        if not name:
            raise ConfigurationError("No provisioning handler configured")
        try:
            return self.registry.create(name)
        except KeyError as exc:
            available = {spec.name: spec.description for spec in self.registry.list()}
            logger.warning("unknown_handler", handler=name, available=available)
            raise ConfigurationError(
                f"Unknown provisioning handler {name}",
                {"handler": name, "available": sorted(available)},
            ) from exc

    def _physical_id(self, event: ProvisioningEvent, outcome: ProvisioningOutcome | None) -> str:
        if event.request_type is not RequestType.create and event.physical_resource_id:
            return event.physical_resource_id
        if outcome is not None and outcome.physical_resource_id:
            return outcome.physical_resource_id
        return self.default_physical_id or event.logical_resource_id

    @staticmethod
    def _failure_physical_id(event: ProvisioningEvent) -> str:
        if event.request_type is RequestType.update and event.physical_resource_id:
            return event.physical_resource_id
        return ""

    async def _reject(self, raw: Any) -> InvocationOutcome:
        response_url = raw.get("ResponseURL") if isinstance(raw, Mapping) else None
        if not isinstance(response_url, str) or not response_url:
            logger.error("invalid_event_unanswerable")
            return InvocationOutcome(result=None, delivered=False)

        result = ProvisioningResult(
            status=ResponseStatus.failed,
            physical_resource_id=str(raw.get("PhysicalResourceId") or ""),
            stack_id=str(raw.get("StackId") or ""),
            request_id=str(raw.get("RequestId") or ""),
            logical_resource_id=str(raw.get("LogicalResourceId") or ""),
        )
        delivered = await self.reporter.send(response_url, result)
        return InvocationOutcome(result=result, delivered=delivered)

    async def _emit(self, metric: str, handler_name: str) -> None:
        if self.metrics is not None:
            await self.metrics.emit(metric, 1, Handler=handler_name)
