"""Service delete command - stops, disables and removes a service descriptor."""

import logging
from collections.abc import Iterator

from .._output_schemas.service import ServiceDeleteOutput
from ..StageResult import StageResult
from .detect_provider import get_provider
from .errors import PlatformError, ServiceError
from .Scope import Scope

logger = logging.getLogger(__name__)


def cmd_delete(name: str, scope: str = Scope.USER.value) -> StageResult:
    """Delete a service."""

    def do_work(result_obj: StageResult) -> Iterator[tuple[float, str]]:
        yield (0.2, "Detecting service manager...")
        try:
            parsed = Scope.parse(scope)
            provider = get_provider()
            yield (0.5, f"Removing {name}...")
            logger.info("deleting service %s (scope=%s)", name, parsed.value)
            provider.delete_service(name, parsed)
        except (ServiceError, PlatformError, ValueError) as e:
            logger.error("failed to delete service %s: %s", name, e)
            yield (1.0, "Complete")
            result_obj.result = f"Error: failed to delete {name}: {e}"
            result_obj.output = ServiceDeleteOutput(
                errors=[str(e)], warnings=[], name=name, scope=scope, deleted=False
            ).model_dump(mode="python")
            result_obj.success = False
            return

        yield (1.0, "Complete")
        result_obj.result = f"Service {name} deleted"
        result_obj.output = ServiceDeleteOutput(
            errors=[], warnings=[], name=name, scope=parsed.value, deleted=True
        ).model_dump(mode="python")
        result_obj.success = True

    return StageResult(
        announce=f"Deleting service {name}...",
        progress_callback=do_work,
    )
