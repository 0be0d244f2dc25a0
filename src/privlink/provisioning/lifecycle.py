"""Per-invocation phase tracking.

    received -> reporting                      (Delete)
    received -> invoking -> polling -> reporting -> done
    invoking <-> polling                       (multi-step handlers)
    invoking | polling -> reporting            (any failure)
"""

from __future__ import annotations

from enum import StrEnum
from types import MappingProxyType

import structlog

logger = structlog.get_logger()


class InvocationPhase(StrEnum):
    received = "received"
    invoking = "invoking"
    polling = "polling"
    reporting = "reporting"
    done = "done"


ALLOWED_TRANSITIONS = MappingProxyType(
    {
        InvocationPhase.received: frozenset({InvocationPhase.invoking, InvocationPhase.reporting}),
        InvocationPhase.invoking: frozenset(
            {InvocationPhase.invoking, InvocationPhase.polling, InvocationPhase.reporting}
        ),
        InvocationPhase.polling: frozenset(
            {InvocationPhase.invoking, InvocationPhase.polling, InvocationPhase.reporting}
        ),
        InvocationPhase.reporting: frozenset({InvocationPhase.done}),
        InvocationPhase.done: frozenset(),
    }
)


class InvalidPhaseTransition(ValueError):
    """Raised for transitions outside ALLOWED_TRANSITIONS."""

    def __init__(self, from_phase: str, to_phase: str) -> None:
        self.from_phase = from_phase
        self.to_phase = to_phase
        super().__init__(f"invalid phase transition: {from_phase!r} -> {to_phase!r}")


class InvocationLifecycle:
    """Tracks the phase of one invocation and rejects re-entry after done."""

    def __init__(self) -> None:
        self._phase = InvocationPhase.received
        self._history: list[InvocationPhase] = [InvocationPhase.received]

    @property
    def phase(self) -> InvocationPhase:
        return self._phase

    @property
    def history(self) -> tuple[InvocationPhase, ...]:
        return tuple(self._history)

    @property
    def reported(self) -> bool:
        return self._phase in (InvocationPhase.reporting, InvocationPhase.done)

    def advance(self, target: InvocationPhase) -> None:
        if target not in ALLOWED_TRANSITIONS[self._phase]:
            raise InvalidPhaseTransition(self._phase, target)
        if target is not self._phase:
            logger.debug("phase_changed", from_phase=str(self._phase), to_phase=str(target))
        self._phase = target
        self._history.append(target)
