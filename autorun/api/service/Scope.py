"""Scope enum - user or system level service management."""

from enum import Enum

from .errors import ServiceValidationError


class Scope(str, Enum):
    USER = "user"
    SYSTEM = "system"

    @classmethod
    def parse(cls, value: "str | Scope") -> "Scope":
        """Convert a user-supplied value into a Scope.

        Raises:
            ServiceValidationError: If value is not 'user' or 'system'
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ServiceValidationError(
                f"Invalid scope: {value!r} (expected one of: {', '.join(s.value for s in cls)})"
            ) from None
