"""Service module - one abstraction over systemd and launchd."""

from .detect_provider import detect_provider, get_provider
from .errors import (
    ExecutionError,
    PlatformError,
    ServiceError,
    ServiceExistsError,
    ServiceNotFoundError,
    ServiceValidationError,
)
from .LogStream import LogStream
from .Scope import Scope
from .Service import Service
from .ServiceConfig import ServiceConfig
from .ServiceStatus import ServiceStatus

__all__ = [
    "ExecutionError",
    "LogStream",
    "PlatformError",
    "Scope",
    "Service",
    "ServiceConfig",
    "ServiceError",
    "ServiceExistsError",
    "ServiceNotFoundError",
    "ServiceStatus",
    "ServiceValidationError",
    "detect_provider",
    "get_provider",
]
