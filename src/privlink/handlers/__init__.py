"""Provisioning handlers and built-in registrations."""

# Import built-in handlers for side effects (registration)
from privlink.handlers import endpoint_policy as _endpoint_policy  # noqa: F401
from privlink.handlers import private_dns as _private_dns  # noqa: F401
from privlink.handlers import target_registration as _target_registration  # noqa: F401
from privlink.handlers import trust_store as _trust_store  # noqa: F401
from privlink.handlers.base import HandlerContext, ProvisioningHandler, ProvisioningOutcome
from privlink.handlers.registry import (
    HandlerRegistry,
    handler_registry,
    register_handler,
)

__all__ = [
    "HandlerContext",
    "HandlerRegistry",
    "ProvisioningHandler",
    "ProvisioningOutcome",
    "handler_registry",
    "register_handler",
]
