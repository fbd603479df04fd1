"""Logging setup for autorun."""

from .configure_logging import configure_logging

__all__ = ["configure_logging"]
