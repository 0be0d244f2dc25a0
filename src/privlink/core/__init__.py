"""Core types shared across privlink."""

from privlink.core.errors import (
    ActionCallError,
    ActionError,
    ConfigurationError,
    ConvergenceFailedError,
    EventValidationError,
    PollLimitExceededError,
    PollTransientError,
    PrivlinkError,
    ResponseDeliveryError,
    Unauthorized,
)

__all__ = [
    "ActionCallError",
    "ActionError",
    "ConfigurationError",
    "ConvergenceFailedError",
    "EventValidationError",
    "PollLimitExceededError",
    "PollTransientError",
    "PrivlinkError",
    "ResponseDeliveryError",
    "Unauthorized",
]
