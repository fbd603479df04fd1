"""Service show command - reports one service."""

from collections.abc import Iterator

from .._output_schemas.service import ServiceShowOutput
from ..StageResult import StageResult
from .detect_provider import get_provider
from .errors import PlatformError, ServiceError
from .Scope import Scope


def cmd_show(name: str, scope: str = Scope.USER.value) -> StageResult:
    """Show status and enable state of one service."""

    def do_work(result_obj: StageResult) -> Iterator[tuple[float, str]]:
        yield (0.3, f"Looking up {name}...")
        try:
            service = get_provider().get_service(name, Scope.parse(scope))
        except (ServiceError, PlatformError, ValueError) as e:
            yield (1.0, "Complete")
            result_obj.result = f"Error: {e}"
            result_obj.output = ServiceShowOutput(errors=[str(e)], warnings=[], service=None).model_dump(
                mode="python"
            )
            result_obj.success = False
            return

        yield (1.0, "Complete")
        result_obj.result = f"{service.name} is {service.status.value} ({'enabled' if service.enabled else 'disabled'})"
        result_obj.output = ServiceShowOutput(errors=[], warnings=[], service=service.to_dict()).model_dump(
            mode="python"
        )
        result_obj.success = True

    return StageResult(
        announce=f"Showing service {name}...",
        progress_callback=do_work,
    )
