from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from privlink.core.errors import EventValidationError


class RequestType(StrEnum):
    """Lifecycle intent carried by a provisioning event."""

    create = "Create"
    update = "Update"
    delete = "Delete"


class ResponseStatus(StrEnum):
    success = "SUCCESS"
    failed = "FAILED"


class ConvergenceStatus(StrEnum):
    """Classification of one observed external status."""

    pending = "pending"
    converged = "converged"
    failed = "failed"
    unknown = "unknown"


class ProvisioningEvent(BaseModel):
    """Custom resource request as delivered by the orchestrator."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    request_type: RequestType = Field(alias="RequestType")
    stack_id: str = Field(alias="StackId", min_length=1)
    request_id: str = Field(alias="RequestId", min_length=1)
    logical_resource_id: str = Field(alias="LogicalResourceId", min_length=1)
    response_url: str = Field(alias="ResponseURL")
    physical_resource_id: str | None = Field(default=None, alias="PhysicalResourceId")
    resource_type: str | None = Field(default=None, alias="ResourceType")
    resource_properties: dict[str, Any] = Field(
        default_factory=dict, alias="ResourceProperties"
    )

    @field_validator("response_url")
    @classmethod
    def _check_response_url(cls, value: str) -> str:
        if not value.startswith(("https://", "http://")):
            raise ValueError("ResponseURL must be an http(s) URL")
        return value

    @classmethod
    def parse(cls, raw: Mapping[str, Any]) -> ProvisioningEvent:
        """Validate a raw event payload, failing fast on malformed input."""
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
            raise EventValidationError(
                "Malformed provisioning event",
                {"fields": fields},
            ) from exc

    def prop(self, key: str, default: Any = None) -> Any:
        return self.resource_properties.get(key, default)


@dataclass(frozen=True, slots=True)
class ExternalHandle:
    """Identifier returned by an initiating call and used as the poll key."""

    id: str
    kind: str = "resource"

    def __str__(self) -> str:
        return self.id


@dataclass(frozen=True, slots=True)
class ConvergenceState:
    status: ConvergenceStatus
    raw_status: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)
    attempt: int = 0

    @property
    def terminal(self) -> bool:
        return self.status in (ConvergenceStatus.converged, ConvergenceStatus.failed)


@dataclass(frozen=True, slots=True)
class ProvisioningResult:
    """Outcome reported back to the orchestrator for one event."""

    status: ResponseStatus
    physical_resource_id: str
    stack_id: str
    request_id: str
    logical_resource_id: str
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(
        cls,
        event: ProvisioningEvent,
        physical_resource_id: str,
        data: Mapping[str, Any] | None = None,
    ) -> ProvisioningResult:
        return cls(
            status=ResponseStatus.success,
            physical_resource_id=physical_resource_id,
            stack_id=event.stack_id,
            request_id=event.request_id,
            logical_resource_id=event.logical_resource_id,
            data=dict(data or {}),
        )

    @classmethod
    def failure(cls, event: ProvisioningEvent, physical_resource_id: str = "") -> ProvisioningResult:
        return cls(
            status=ResponseStatus.failed,
            physical_resource_id=physical_resource_id,
            stack_id=event.stack_id,
            request_id=event.request_id,
            logical_resource_id=event.logical_resource_id,
        )

    def to_response_body(self, reason: str) -> str:
        body: dict[str, Any] = {
            "Status": str(self.status),
            "Reason": reason,
            "PhysicalResourceId": self.physical_resource_id,
            "StackId": self.stack_id,
            "RequestId": self.request_id,
            "LogicalResourceId": self.logical_resource_id,
        }
        if self.data:
            body["Data"] = self.data
        return json.dumps(body, separators=(",", ":"), default=str)
