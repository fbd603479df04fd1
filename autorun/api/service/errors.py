"""Errors raised by the service providers."""


class ServiceError(Exception):
    """Base class for provider failures."""


class ServiceNotFoundError(ServiceError):
    """No descriptor exists for the name in the resolved scope directories."""


class ServiceExistsError(ServiceError):
    """A descriptor with the requested name already exists."""


class ServiceValidationError(ServiceError, ValueError):
    """Invalid input: missing required config field or unknown scope."""


class ExecutionError(ServiceError, RuntimeError):
    """A native command exited non-zero or could not be spawned.

    Insufficient privileges surface here too; the captured output says so.
    """

    def __init__(self, message: str, output: str = "", command: list[str] | None = None):
        super().__init__(message)
        self.output = output
        self.command = list(command) if command else []


class PlatformError(RuntimeError):
    """No supported service manager was detected."""
