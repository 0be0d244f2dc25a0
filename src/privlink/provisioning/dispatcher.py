"""Route a provisioning event by its lifecycle intent."""

from __future__ import annotations

from enum import StrEnum

from privlink.provisioning.models import ProvisioningEvent, RequestType


class Route(StrEnum):
    report = "report"
    provision = "provision"


def dispatch(event: ProvisioningEvent) -> Route:
    """Deletes are acknowledged without touching external state."""
    if event.request_type is RequestType.delete:
        return Route.report
    return Route.provision
