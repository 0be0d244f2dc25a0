from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from privlink.config import Settings
from privlink.core.errors import ConfigurationError
from privlink.provisioning.invoker import ActionInvoker
from privlink.provisioning.models import ProvisioningEvent, RequestType
from privlink.provisioning.poller import ConvergencePoller

_MISSING = object()


@dataclass(frozen=True, slots=True)
class ProvisioningOutcome:
    """What a handler produced on success.

    ``physical_resource_id`` is only used on Create; Updates keep the id the
    orchestrator already holds.
    """

    physical_resource_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class HandlerContext:
    """Everything a handler may touch during one Create or Update."""

    event: ProvisioningEvent
    invoker: ActionInvoker
    poller: ConvergencePoller
    settings: Settings

    @property
    def is_update(self) -> bool:
        return self.event.request_type is RequestType.update

    def param(self, key: str, setting: str, *, default: Any = _MISSING) -> Any:
        """Resolve a handler parameter from ResourceProperties, then settings."""
        value = self.event.prop(key)
        if value in (None, ""):
            value = getattr(self.settings, setting, None)
        if value in (None, ""):
            if default is not _MISSING:
                return default
            raise ConfigurationError(
                f"Missing handler parameter {key}",
                {"property": key, "env": f"PRIVLINK_{setting.upper()}"},
            )
        return value


class ProvisioningHandler(Protocol):
    """One instantiation of the request -> side effect -> poll -> respond workflow."""

    name: str

    async def provision(self, ctx: HandlerContext) -> ProvisioningOutcome:
        ...
