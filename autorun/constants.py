"""Shared constants for the autorun home directory."""

AUTORUN_HOME_EXT = ".autorun"  # user-level state/config directory under $HOME

LOG_FILE_NAME = "autorun.log"

CONFIG_FILE_NAME = "config.json"
