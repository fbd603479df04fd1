"""Get autorun home directory path or path under it."""

import os
from pathlib import Path

from ...constants import AUTORUN_HOME_EXT


def get_home_dir(*parts: str) -> Path:
    """Get autorun home directory path or path under it.

    Checks AUTORUN_HOME environment variable first, defaults to ~/.autorun if not set.

    Args:
        *parts: Optional path components to join (e.g., "config.json")

    Returns:
        Absolute path to the home directory or subpath under it

    Examples:
        >>> get_home_dir()
        Path("/Users/user/.autorun")
        >>> get_home_dir("config.json")
        Path("/Users/user/.autorun/config.json")
    """
    home_env = os.environ.get("AUTORUN_HOME")
    if home_env:
        home = Path(home_env).expanduser().resolve()
    else:
        home = Path.home() / AUTORUN_HOME_EXT

    return home / Path(*parts) if parts else home
