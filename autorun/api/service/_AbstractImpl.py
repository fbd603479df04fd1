"""Abstract base class for service providers (one per native service manager)."""

import threading
from abc import ABC, abstractmethod
from pathlib import Path

from .errors import ServiceNotFoundError, ServiceValidationError
from .LogStream import LogStream
from .Scope import Scope
from .Service import Service
from .ServiceConfig import ServiceConfig


def validate_service_config(config: ServiceConfig) -> None:
    """Reject a config that is missing a required field.

    Raises:
        ServiceValidationError: If name or program is empty
    """
    if not config.name.strip():
        raise ServiceValidationError("service name is required")
    if not config.program.strip():
        raise ServiceValidationError("program path is required")
    if "/" in config.name:
        raise ServiceValidationError(f"service name must not contain '/': {config.name!r}")


class _AbstractImpl(ABC):
    """Abstract base class for platform-specific service providers.

    Every call derives its state fresh from the native tools; implementations
    hold no mutable state and may be shared between threads.
    """

    name: str = ""
    """Service manager name (e.g., 'systemd', 'launchd')."""

    @abstractmethod
    def list_services(self, scope: Scope) -> list[Service]:
        """Return every service that has a descriptor in the given scope."""

    def get_service(self, name: str, scope: Scope) -> Service:
        """Return one service.

        Raises:
            ServiceNotFoundError: If no service with that name exists in scope
        """
        for service in self.list_services(scope):
            if self._matches(service, name):
                return service
        raise ServiceNotFoundError(f"service not found: {name}")

    @abstractmethod
    def start(self, name: str, scope: Scope) -> None:
        """Start a service."""

    @abstractmethod
    def stop(self, name: str, scope: Scope) -> None:
        """Stop a service."""

    @abstractmethod
    def restart(self, name: str, scope: Scope) -> None:
        """Restart a service."""

    @abstractmethod
    def enable(self, name: str, scope: Scope) -> None:
        """Enable a service to start automatically."""

    @abstractmethod
    def disable(self, name: str, scope: Scope) -> None:
        """Disable automatic start of a service."""

    @abstractmethod
    def stream_logs(self, name: str, scope: Scope, cancel: threading.Event | None = None) -> LogStream:
        """Start streaming log lines for a service.

        Args:
            name: Service name
            scope: Service scope
            cancel: Event that ends the stream when set; one is created if omitted

        Returns:
            A started LogStream

        Raises:
            ExecutionError: If the log subprocess cannot be started
        """

    @abstractmethod
    def create_service(self, config: ServiceConfig, scope: Scope) -> Path:
        """Write a new service descriptor and register it.

        Returns:
            Path of the written descriptor
        """

    @abstractmethod
    def delete_service(self, name: str, scope: Scope) -> None:
        """Stop, disable and remove a service descriptor."""

    def _matches(self, service: Service, name: str) -> bool:
        return service.name == name
