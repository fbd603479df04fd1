"""Top-level autorun configuration."""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ...constants import CONFIG_FILE_NAME
from .get_home_dir import get_home_dir
from .LogConfig import LogConfig
from .StreamConfig import StreamConfig


class AutorunConfig(BaseModel):
    """Top-level configuration for autorun."""

    model_config = ConfigDict(extra="forbid")

    log: LogConfig = Field(default_factory=LogConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)

    @classmethod
    def get_home_dir(cls) -> Path:
        """Get autorun home directory based on AUTORUN_HOME or default to ~/.autorun."""
        return get_home_dir()

    @classmethod
    def get_config_path(cls) -> Path:
        """Get path to config file under the home directory."""
        return cls.get_home_dir() / CONFIG_FILE_NAME

    @classmethod
    def load(cls) -> "AutorunConfig":
        """Load and validate config from file.

        A missing config file is not an error: every section has defaults.

        Raises:
            ValueError: If the file holds invalid JSON or fails validation
        """
        path = cls.get_config_path()

        if not path.exists():
            return cls()

        try:
            with path.open() as fh:
                raw = json.load(fh)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in config file {path}: {e}") from e

        if not isinstance(raw, dict):
            raise ValueError(f"Config file {path} must hold a JSON object, got {type(raw).__name__}")

        try:
            return cls(**raw)
        except ValidationError as e:
            error_list = e.errors() or [{"msg": str(e), "loc": (), "type": "value_error", "input": None}]
            first = error_list[0]
            error_msg = first.get("msg", str(e))
            loc = first.get("loc", ())
            field = ".".join(str(x) for x in loc) if isinstance(loc, (list, tuple)) else ""
            detail = f"{field}: {error_msg}" if field else error_msg
            raise ValueError(f"Configuration validation error: {detail}") from e

    def to_dict(self) -> dict[str, Any]:
        """Convert the config to a dictionary for serialization."""
        return {
            "log": self.log.model_dump(),
            "stream": self.stream.model_dump(),
        }
