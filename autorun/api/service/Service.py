"""Service DTO."""

from dataclasses import dataclass
from typing import Any

from .Scope import Scope
from .ServiceStatus import ServiceStatus


@dataclass
class Service:
    """A service as seen through one provider and one scope.

    Recomputed on every enumeration; identity is name + scope.
    """

    name: str
    """Logical name (unit name without suffix, or launchd label)."""

    display_name: str
    """Human-readable name."""

    status: ServiceStatus
    """Normalized run state."""

    enabled: bool
    """Whether the service starts automatically."""

    scope: Scope
    """Scope the service was found in."""

    description: str = ""
    """Free-text description reported by the service manager, if any."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "display_name": self.display_name,
            "status": self.status.value,
            "enabled": self.enabled,
            "scope": self.scope.value,
            "description": self.description,
        }
