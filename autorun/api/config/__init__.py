"""Config API module."""

from .AutorunConfig import AutorunConfig
from .LogConfig import LogConfig
from .StreamConfig import StreamConfig

__all__ = ["AutorunConfig", "LogConfig", "StreamConfig"]
