"""Output schemas for service commands."""

from typing import Any

from pydantic import Field

from ._base import BaseOutputSchema
from ._registry import register_output_schema


class ServiceListOutput(BaseOutputSchema):
    """Output schema for service list command."""

    platform: str = Field(..., description="Service manager name ('systemd' or 'launchd'), empty if undetected")
    scope: str = Field(..., description="Requested scope: 'user', 'system' or 'all'")
    services: list[dict[str, Any]] = Field(..., description="Services found, system scope first for 'all'")


class ServiceShowOutput(BaseOutputSchema):
    """Output schema for service show command."""

    service: dict[str, Any] | None = Field(..., description="The service, or None if not found")


class ServiceActionOutput(BaseOutputSchema):
    """Output schema for start/stop/restart/enable/disable."""

    name: str = Field(..., description="Service name")
    scope: str = Field(..., description="Service scope")
    action: str = Field(..., description="Requested action (e.g., 'start')")
    status: str = Field(..., description="Resulting state (e.g., 'started'), empty string on failure")


class ServiceCreateOutput(BaseOutputSchema):
    """Output schema for service create command."""

    name: str = Field(..., description="Service name")
    scope: str = Field(..., description="Service scope")
    path: str = Field(..., description="Path of the written descriptor, empty string if not written")
    created: bool = Field(..., description="Whether the descriptor was written")


class ServiceDeleteOutput(BaseOutputSchema):
    """Output schema for service delete command."""

    name: str = Field(..., description="Service name")
    scope: str = Field(..., description="Service scope")
    deleted: bool = Field(..., description="Whether the descriptor was removed")


class ServicePlatformOutput(BaseOutputSchema):
    """Output schema for service platform command."""

    platform: str = Field(..., description="Service manager name, empty if undetected")
    elevated: bool = Field(..., description="Whether running with effective uid 0")


register_output_schema("service", "list", ServiceListOutput)
register_output_schema("service", "show", ServiceShowOutput)
register_output_schema("service", "action", ServiceActionOutput)
register_output_schema("service", "create", ServiceCreateOutput)
register_output_schema("service", "delete", ServiceDeleteOutput)
register_output_schema("service", "platform", ServicePlatformOutput)
