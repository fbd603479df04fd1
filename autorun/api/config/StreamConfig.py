"""Log stream configuration."""

from pydantic import BaseModel, ConfigDict, Field


class StreamConfig(BaseModel):
    """Settings for live log streams."""

    model_config = ConfigDict(extra="forbid")

    journal_lines: int = Field(100, gt=0, description="Lines of history replayed before following the journal")
    queue_size: int = Field(100, gt=0, description="Capacity of the per-stream line buffer")
    poll_interval: float = Field(0.2, gt=0, description="Seconds between cancellation checks")
