"""Service control commands - start, stop, restart, enable, disable."""

import logging
from collections.abc import Iterator

from .._output_schemas.service import ServiceActionOutput
from ..StageResult import StageResult
from .detect_provider import get_provider
from .errors import PlatformError, ServiceError, ServiceValidationError
from .Scope import Scope

logger = logging.getLogger(__name__)

# action -> (provider method, resulting status, progress verb)
ACTIONS = {
    "start": ("start", "started", "Starting"),
    "stop": ("stop", "stopped", "Stopping"),
    "restart": ("restart", "restarted", "Restarting"),
    "enable": ("enable", "enabled", "Enabling"),
    "disable": ("disable", "disabled", "Disabling"),
}


def cmd_action(action: str, name: str, scope: str = Scope.USER.value) -> StageResult:
    """Run one control action against a service.

    Args:
        action: One of start, stop, restart, enable, disable
        name: Service name
        scope: "user" or "system"
    """
    verb = ACTIONS.get(action, (action, "", action.capitalize()))[2]

    def do_work(result_obj: StageResult) -> Iterator[tuple[float, str]]:
        """Do the actual work - generator that yields progress and updates result.

        Yields: (progress_percent: float, message: str) tuples
        Updates result_obj.result, result_obj.output, and result_obj.success before finishing.
        """
        yield (0.2, "Detecting service manager...")
        try:
            if action not in ACTIONS:
                raise ServiceValidationError(f"Unknown action: {action!r} (expected one of: {', '.join(ACTIONS)})")
            method, status, _ = ACTIONS[action]
            parsed = Scope.parse(scope)
            provider = get_provider()

            yield (0.5, f"{verb} {name}...")
            logger.info("%s service %s (scope=%s)", action, name, parsed.value)
            getattr(provider, method)(name, parsed)
        except (ServiceError, PlatformError, ValueError) as e:
            logger.error("failed to %s service %s (scope=%s): %s", action, name, scope, e)
            yield (1.0, "Complete")
            result_obj.result = f"Error: failed to {action} {name}: {e}"
            result_obj.output = ServiceActionOutput(
                errors=[str(e)], warnings=[], name=name, scope=scope, action=action, status=""
            ).model_dump(mode="python")
            result_obj.success = False
            return

        yield (1.0, "Complete")
        result_obj.result = f"Service {name} {status}"
        result_obj.output = ServiceActionOutput(
            errors=[], warnings=[], name=name, scope=parsed.value, action=action, status=status
        ).model_dump(mode="python")
        result_obj.success = True

    return StageResult(
        announce=f"{verb} service {name}...",
        progress_callback=do_work,
    )
