"""
Constant-delay convergence polling.

The control plane offers no push notification for DNS verification or
trust store activation, so each handler polls a describe call until a
terminal status shows up. The delay between attempts is fixed, there is
no backoff, and by default there is no attempt bound: the Lambda deadline
is what ends a poll that never converges. ``max_attempts`` adds an
internal bound when one is wanted.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Sequence

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    stop_never,
    wait_fixed,
)

from privlink.cloudwatch import MetricsCollector
from privlink.core.errors import (
    ConvergenceFailedError,
    PollLimitExceededError,
    PollTransientError,
)
from privlink.provisioning.invoker import ActionInvoker
from privlink.provisioning.lifecycle import InvocationLifecycle, InvocationPhase
from privlink.provisioning.models import ConvergenceState, ConvergenceStatus

logger = structlog.get_logger()

DEFAULT_POLL_INTERVAL = 5.0

PathPart = str | int
Path = Sequence[PathPart]
Sleep = Callable[[float], Awaitable[None]]


def dig(document: Any, path: Path) -> Any:
    """Follow ``path`` through nested dicts and lists, None when any step is missing."""
    current = document
    for part in path:
        if isinstance(part, int):
            if not isinstance(current, list) or not -len(current) <= part < len(current):
                return None
            current = current[part]
        else:
            if not isinstance(current, dict):
                return None
            current = current.get(part)
        if current is None:
            return None
    return current


@dataclass(frozen=True)
class StatusQuery:
    """Describe call issued on every attempt, and where the resource sits in its response."""

    service: str
    action: str
    params: dict[str, Any]
    resource_path: tuple[PathPart, ...] = ()


@dataclass(frozen=True)
class ConvergenceCondition:
    """Terminal predicate over one status field of the polled resource.

    A success value only counts once every name in ``required`` has been
    extracted, since some control planes flip the status before they fill
    in the fields that go with it.
    """

    status_path: tuple[PathPart, ...]
    success: frozenset[str]
    failure: frozenset[str] = frozenset()
    attributes: Mapping[str, tuple[PathPart, ...]] = field(default_factory=dict)
    required: frozenset[str] = frozenset()
    description: str = ""

    def classify(self, raw_status: Any) -> ConvergenceStatus:
        if not isinstance(raw_status, str):
            return ConvergenceStatus.unknown
        if raw_status in self.success:
            return ConvergenceStatus.converged
        if raw_status in self.failure:
            return ConvergenceStatus.failed
        return ConvergenceStatus.pending

    def extract(self, resource: Any) -> dict[str, Any]:
        return {name: dig(resource, path) for name, path in self.attributes.items()}


class ConvergencePoller:
    """Polls a StatusQuery until its ConvergenceCondition reaches a terminal value."""

    def __init__(
        self,
        invoker: ActionInvoker,
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
        max_attempts: int | None = None,
        tolerate_errors: bool = False,
        sleep: Sleep = asyncio.sleep,
        metrics: MetricsCollector | None = None,
        lifecycle: InvocationLifecycle | None = None,
    ) -> None:
        if interval < 0:
            raise ValueError("interval must be >= 0")
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._invoker = invoker
        self.interval = interval
        self.max_attempts = max_attempts
        self.tolerate_errors = tolerate_errors
        self._sleep = sleep
        self._metrics = metrics
        self._lifecycle = lifecycle
        self.queries = 0

    async def wait_for(
        self,
        query: StatusQuery,
        condition: ConvergenceCondition,
        *,
        initial_delay: float = 0.0,
    ) -> ConvergenceState:
        if self._lifecycle is not None:
            self._lifecycle.advance(InvocationPhase.polling)

        log = logger.bind(
            service=query.service,
            action=query.action,
            condition=condition.description or query.action,
        )
        log.info("poll_started", interval=self.interval, max_attempts=self.max_attempts)
        started = time.monotonic()
        attempt = 0

        async def probe() -> ConvergenceState:
            nonlocal attempt
            attempt += 1
            self.queries += 1
            if self._metrics is not None:
                await self._metrics.emit("PollAttempt", 1, Action=query.action)

            response = await self._invoker.query(query.service, query.action, query.params)
            resource = dig(response, query.resource_path)
            raw_status = dig(resource, condition.status_path)
            status = condition.classify(raw_status)

            if status is ConvergenceStatus.failed:
                raise ConvergenceFailedError(
                    f"{query.action} reported terminal status {raw_status}",
                    {"status": raw_status, "attempt": attempt},
                )

            attributes: dict[str, Any] = {}
            if status is ConvergenceStatus.converged:
                attributes = condition.extract(resource)
                missing = sorted(name for name in condition.required if attributes.get(name) is None)
                if missing:
                    log.info("poll_attributes_missing", attempt=attempt, missing=missing)
                    status = ConvergenceStatus.pending

            return ConvergenceState(
                status=status,
                raw_status=None if raw_status is None else str(raw_status),
                attributes=attributes,
                attempt=attempt,
            )

        if initial_delay > 0:
            await self._sleep(initial_delay)

        retrying = AsyncRetrying(
            sleep=self._sleep,
            wait=wait_fixed(self.interval),
            stop=stop_after_attempt(self.max_attempts) if self.max_attempts else stop_never,
            retry=self._retry_condition(),
            before_sleep=lambda state: self._log_pending(log, state),
        )

        try:
            state = await retrying(probe)
        except RetryError as exc:
            log.error("poll_limit_exceeded", attempts=attempt)
            raise PollLimitExceededError(
                f"{query.action} did not converge",
                {"attempts": attempt},
            ) from exc
        except ConvergenceFailedError as exc:
            log.error("convergence_failed", attempts=attempt, status=exc.details.get("status"))
            raise
        except PollTransientError as exc:
            log.error("poll_query_failed", attempts=attempt, code=exc.details.get("code"))
            raise

        log.info(
            "convergence_reached",
            attempts=state.attempt,
            status=state.raw_status,
            elapsed=round(time.monotonic() - started, 3),
        )
        return state

    def _retry_condition(self):
        pending = retry_if_result(lambda state: not state.terminal)
        if self.tolerate_errors:
            return pending | retry_if_exception_type(PollTransientError)
        return pending

    def _log_pending(self, log: structlog.stdlib.BoundLogger, retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome
        if outcome is not None and outcome.failed:
            log.warning(
                "poll_query_failed_retrying",
                attempt=retry_state.attempt_number,
                error=str(outcome.exception()),
            )
            return
        state = outcome.result() if outcome is not None else None
        log.info(
            "poll_pending",
            attempt=retry_state.attempt_number,
            status=getattr(state, "raw_status", None),
            next_delay=self.interval,
        )
