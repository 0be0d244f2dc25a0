from __future__ import annotations

from typing import Any, Protocol


class ActionClient(Protocol):
    """A single control-plane service reached through named actions.

    Implementations raise ``ActionCallError`` for every provider failure so the
    workflow only ever sees one failure signal.
    """

    service: str

    async def call(self, action: str, params: dict[str, Any]) -> dict[str, Any]:
        ...


class ClientFactory(Protocol):
    """Builds an ActionClient for a service name ("ec2", "route53", ...)."""

    def __call__(self, service: str) -> ActionClient:
        ...
