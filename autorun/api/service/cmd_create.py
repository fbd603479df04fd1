"""Service create command - writes and registers a new service descriptor."""

import logging
from collections.abc import Iterator

from .._output_schemas.service import ServiceCreateOutput
from ..StageResult import StageResult
from .detect_provider import get_provider
from .errors import PlatformError, ServiceError
from .Scope import Scope
from .ServiceConfig import ServiceConfig

logger = logging.getLogger(__name__)


def cmd_create(config: ServiceConfig, scope: str = Scope.USER.value) -> StageResult:
    """Create a service from a ServiceConfig.

    With run_at_load the service is also enabled and started; if that part
    fails the descriptor stays in place and the command reports the error.
    """

    def do_work(result_obj: StageResult) -> Iterator[tuple[float, str]]:
        yield (0.2, "Detecting service manager...")
        path = ""
        try:
            parsed = Scope.parse(scope)
            provider = get_provider()
            yield (0.5, f"Writing descriptor for {config.name}...")
            logger.info("creating service %s (program=%s, scope=%s)", config.name, config.program, parsed.value)
            path = str(provider.create_service(config, parsed))
        except (ServiceError, PlatformError, ValueError) as e:
            logger.error("failed to create service %s: %s", config.name, e)
            yield (1.0, "Complete")
            result_obj.result = f"Error: failed to create {config.name}: {e}"
            result_obj.output = ServiceCreateOutput(
                errors=[str(e)], warnings=[], name=config.name, scope=scope, path=path, created=False
            ).model_dump(mode="python")
            result_obj.success = False
            return

        yield (1.0, "Complete")
        result_obj.result = f"Service {config.name} created at {path}"
        result_obj.output = ServiceCreateOutput(
            errors=[], warnings=[], name=config.name, scope=parsed.value, path=path, created=True
        ).model_dump(mode="python")
        result_obj.success = True

    return StageResult(
        announce=f"Creating service {config.name or '(unnamed)'}...",
        progress_callback=do_work,
    )
