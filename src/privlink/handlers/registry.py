from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List

from privlink.handlers.base import ProvisioningHandler

HandlerFactory = Callable[[], ProvisioningHandler]


@dataclass(frozen=True)
class HandlerSpec:
    """Metadata describing a registered provisioning handler."""

    name: str
    factory: HandlerFactory
    description: str | None = None


class HandlerRegistry:
    """Simple in-memory registry for provisioning handlers."""

    def __init__(self) -> None:
        self._handlers: Dict[str, HandlerSpec] = {}

    def register(
        self,
        name: str,
        factory: HandlerFactory,
        *,
        description: str | None = None,
    ) -> None:
        if not name:
            raise ValueError("Handler name is required")
        self._handlers[name] = HandlerSpec(name=name, factory=factory, description=description)

    def create(self, name: str) -> ProvisioningHandler:
        spec = self._handlers.get(name)
        if spec is None:
            raise KeyError(f"Handler '{name}' is not registered")
        return spec.factory()

    def list(self) -> List[HandlerSpec]:
        return list(self._handlers.values())


handler_registry = HandlerRegistry()


def register_handler(
    name: str,
    factory: HandlerFactory,
    *,
    description: str | None = None,
) -> None:
    handler_registry.register(name, factory, description=description)

