"""API module for autorun.

Functions defined here are the single source of truth for the CLI and for any
other consumer (an HTTP layer, for instance) of the service providers.
"""

__all__ = []
