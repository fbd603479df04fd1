"""Service definition input for create_service."""

from pydantic import BaseModel, ConfigDict, Field


class ServiceConfig(BaseModel):
    """Everything needed to write a new service descriptor.

    Required fields are checked by the providers (see `validate_service_config`)
    so that an incomplete config fails with ServiceValidationError before any
    filesystem or subprocess work.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field("", description="Logical name / label (e.g., 'com.example.worker' or 'worker')")
    program: str = Field("", description="Absolute path of the executable")
    arguments: list[str] = Field(default_factory=list, description="Arguments passed after the program")
    working_directory: str | None = Field(None, description="Working directory for the process")
    environment: dict[str, str] = Field(default_factory=dict, description="Environment variables")
    run_at_load: bool = Field(False, description="Enable and start the service right after creation")
    keep_alive: bool = Field(False, description="Restart the process whenever it exits")
    standard_out_path: str | None = Field(None, description="File receiving stdout")
    standard_error_path: str | None = Field(None, description="File receiving stderr")
    description: str | None = Field(None, description="Free-text description")
