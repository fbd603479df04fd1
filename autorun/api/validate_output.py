"""Validate command output against the registered output schema."""

from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from ._output_schemas._registry import get_output_schema


def validate_output(func: Callable, output: dict[str, Any]) -> dict[str, Any]:
    """Validate output dict against registered schema.

    Args:
        func: The command function (used to infer domain and command name)
        output: The output dict to validate

    Returns:
        Validated output dict (with defaults filled in)

    Raises:
        ValueError: If validation fails
    """
    # autorun.api.<domain>.cmd_<command>
    module_parts = func.__module__.split(".")
    if len(module_parts) < 3 or module_parts[:2] != ["autorun", "api"]:
        return output

    func_name = func.__name__
    if not func_name.startswith("cmd_"):
        return output

    domain = module_parts[2]
    command_name = func_name[4:]
    schema_class = get_output_schema(domain, command_name)
    if schema_class is None:
        return output

    try:
        return schema_class(**output).model_dump(mode="python")
    except ValidationError as e:
        raise ValueError(f"Output validation failed for {domain}.{command_name}: {e}\nGot output: {output}") from e
