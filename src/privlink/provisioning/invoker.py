from __future__ import annotations

from typing import Any

import structlog

from privlink.clients.base import ClientFactory
from privlink.cloudwatch import MetricsCollector
from privlink.core.errors import ActionCallError, ActionError, PollTransientError
from privlink.provisioning.lifecycle import InvocationLifecycle, InvocationPhase

logger = structlog.get_logger()


class ActionInvoker:
    """Issues control-plane calls for one invocation.

    ``call`` is used for the side-effecting steps (and the discovery reads that
    feed them); failures become ``ActionError`` and are never retried here.
    ``query`` is used by the poller; failures become ``PollTransientError``.
    """

    def __init__(
        self,
        clients: ClientFactory,
        *,
        metrics: MetricsCollector | None = None,
        lifecycle: InvocationLifecycle | None = None,
    ) -> None:
        self._clients = clients
        self._metrics = metrics
        self._lifecycle = lifecycle
        self.calls = 0

    async def call(self, service: str, action: str, params: dict[str, Any]) -> dict[str, Any]:
        if self._lifecycle is not None:
            self._lifecycle.advance(InvocationPhase.invoking)

        logger.info("action_call_started", service=service, action=action)
        self.calls += 1
        await self._emit("ActionCall", service, action)
        try:
            response = await self._clients(service).call(action, params)
        except ActionCallError as exc:
            logger.error(
                "action_call_failed",
                service=service,
                action=action,
                code=exc.code,
                error=exc.message,
            )
            await self._emit("ActionCallFailed", service, action)
            raise ActionError(
                f"{action} failed",
                {"service": service, "action": action, "code": exc.code},
            ) from exc

        logger.info("action_call_succeeded", service=service, action=action)
        return response

    async def query(self, service: str, action: str, params: dict[str, Any]) -> dict[str, Any]:
        try:
            return await self._clients(service).call(action, params)
        except ActionCallError as exc:
            raise PollTransientError(
                f"{action} status query failed",
                {"service": service, "action": action, "code": exc.code},
            ) from exc

    async def _emit(self, metric: str, service: str, action: str) -> None:
        if self._metrics is not None:
            await self._metrics.emit(metric, 1, Service=service, Action=action)
