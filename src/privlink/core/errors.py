"""
Error taxonomy for privlink provisioning workflows.

Every failure inside an invocation is converted into a ``FAILED`` callback by
the workflow; these types only decide what gets logged and counted.

- EventValidationError: the inbound event is malformed
- ConfigurationError: a required handler parameter is missing
- ActionError: an initiating (mutating) control-plane call failed
- PollTransientError: a status query failed
- ConvergenceFailedError: the external resource reached a failure state
- PollLimitExceededError: the optional poll bound was exceeded
- ResponseDeliveryError: the callback PUT failed
- Unauthorized: the authorizer rejected a token
"""

from __future__ import annotations

from typing import Any


class PrivlinkError(Exception):
    """Base exception for privlink errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class EventValidationError(PrivlinkError):
    """Raised when an inbound provisioning event cannot be parsed."""


class ConfigurationError(PrivlinkError):
    """Raised when a handler parameter is missing from both properties and settings."""


class ActionCallError(PrivlinkError):
    """Uniform failure signal raised by an ActionClient."""

    def __init__(
        self,
        message: str,
        *,
        service: str,
        action: str,
        code: str | None = None,
    ) -> None:
        super().__init__(message, {"service": service, "action": action, "code": code})
        self.service = service
        self.action = action
        self.code = code


class ActionError(PrivlinkError):
    """Raised when an initiating control-plane call fails. Never retried."""


class PollTransientError(PrivlinkError):
    """Raised when a status query fails while polling."""


class ConvergenceFailedError(PrivlinkError):
    """Raised when the polled resource reports a terminal failure status."""


class PollLimitExceededError(PrivlinkError):
    """Raised when a bounded poll runs out of attempts."""


class ResponseDeliveryError(PrivlinkError):
    """Raised internally when the callback PUT fails."""


class Unauthorized(PrivlinkError):
    """Raised by the authorizer to deny a request."""


def format_error_message(error: PrivlinkError) -> str:
    """Format an error message for logs."""
    msg = error.message
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    return msg
