"""Select the service provider for the running operating system."""

import logging
import platform
import threading
from pathlib import Path

from ..config.AutorunConfig import AutorunConfig
from ._AbstractImpl import _AbstractImpl
from .errors import PlatformError

logger = logging.getLogger(__name__)

SYSTEMD_MARKER = Path("/run/systemd/system")

_provider: _AbstractImpl | None = None
_provider_lock = threading.Lock()


def detect_provider(
    system: str | None = None,
    systemd_marker: Path = SYSTEMD_MARKER,
    config: AutorunConfig | None = None,
) -> _AbstractImpl:
    """Build the provider for this host.

    Args:
        system: OS identifier as platform.system().lower(); detected if None
        systemd_marker: Directory whose presence means systemd is PID 1
        config: Configuration; loaded from AUTORUN_HOME if None

    Raises:
        PlatformError: If no supported service manager is available
    """
    system = (system or platform.system()).lower()
    if config is None:
        config = AutorunConfig.load()

    if system == "darwin":
        from ._darwin._Impl import _Impl as _DarwinImpl

        logger.debug("detected launchd")
        return _DarwinImpl(stream_config=config.stream)

    if system == "linux":
        if not systemd_marker.is_dir():
            raise PlatformError("systemd not detected on this Linux system")
        from ._linux._Impl import _Impl as _LinuxImpl

        logger.debug("detected systemd")
        return _LinuxImpl(stream_config=config.stream)

    raise PlatformError(f"unsupported platform: {system}")


def get_provider() -> _AbstractImpl:
    """Process-wide provider, detected on first use."""
    global _provider
    with _provider_lock:
        if _provider is None:
            _provider = detect_provider()
        return _provider
