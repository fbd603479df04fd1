"""autorun - one interface over systemd and launchd services."""

__version__ = "0.1.0"
