"""Service platform command - reports the detected service manager."""

import os
from collections.abc import Iterator

from .._output_schemas.service import ServicePlatformOutput
from ..StageResult import StageResult
from .detect_provider import get_provider
from .errors import PlatformError


def cmd_platform() -> StageResult:
    """Report which service manager is in use and whether we run as root.

    System-scope changes usually need elevation; clients use `elevated`
    to warn before trying.
    """

    def do_work(result_obj: StageResult) -> Iterator[tuple[float, str]]:
        yield (0.5, "Detecting service manager...")
        elevated = os.geteuid() == 0
        try:
            provider = get_provider()
        except (PlatformError, ValueError) as e:
            yield (1.0, "Complete")
            result_obj.result = f"Error: {e}"
            result_obj.output = ServicePlatformOutput(
                errors=[str(e)], warnings=[], platform="", elevated=elevated
            ).model_dump(mode="python")
            result_obj.success = False
            return

        yield (1.0, "Complete")
        result_obj.result = f"Service manager: {provider.name}" + (" (elevated)" if elevated else "")
        result_obj.output = ServicePlatformOutput(
            errors=[], warnings=[], platform=provider.name, elevated=elevated
        ).model_dump(mode="python")
        result_obj.success = True

    return StageResult(
        announce="Detecting platform...",
        progress_callback=do_work,
    )
