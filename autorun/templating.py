"""Jinja2 environment shared by the unit file and plist renderers."""

from collections.abc import Callable
from typing import Any

from jinja2 import BaseLoader, Environment, StrictUndefined

# Descriptor files are whitespace-sensitive; block tags must not leave blank lines behind.
_ENV = Environment(
    loader=BaseLoader(),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    undefined=StrictUndefined,
)


def register_filter(name: str, func: Callable[..., Any]) -> None:
    """Make func available to templates as `{{ value | name }}`."""
    _ENV.filters[name] = func


def render_template(template: str, context: dict[str, Any]) -> str:
    return _ENV.from_string(template).render(**context)
