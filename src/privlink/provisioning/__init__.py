"""Provisioning engine: dispatch, invoke, poll, report."""

from privlink.provisioning.dispatcher import Route, dispatch
from privlink.provisioning.invoker import ActionInvoker
from privlink.provisioning.lifecycle import (
    InvalidPhaseTransition,
    InvocationLifecycle,
    InvocationPhase,
)
from privlink.provisioning.models import (
    ConvergenceState,
    ConvergenceStatus,
    ExternalHandle,
    ProvisioningEvent,
    ProvisioningResult,
    RequestType,
    ResponseStatus,
)
from privlink.provisioning.poller import ConvergenceCondition, ConvergencePoller, StatusQuery
from privlink.provisioning.reporter import ResultReporter

__all__ = [
    "ActionInvoker",
    "ConvergenceCondition",
    "ConvergencePoller",
    "ConvergenceState",
    "ConvergenceStatus",
    "ExternalHandle",
    "InvalidPhaseTransition",
    "InvocationLifecycle",
    "InvocationPhase",
    "ProvisioningEvent",
    "ProvisioningResult",
    "RequestType",
    "ResponseStatus",
    "ResultReporter",
    "Route",
    "StatusQuery",
    "dispatch",
]
