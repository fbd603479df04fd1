"""Service list command - enumerates services in one or both scopes."""

import logging
from collections.abc import Iterator

from .._output_schemas.service import ServiceListOutput
from ..StageResult import StageResult
from .detect_provider import get_provider
from .errors import PlatformError, ServiceError
from .Scope import Scope

logger = logging.getLogger(__name__)

ALL_SCOPES = "all"


def cmd_list(scope: str = ALL_SCOPES) -> StageResult:
    """List services.

    With scope "all" both scopes are listed, system first; a scope that
    cannot be listed becomes a warning instead of failing the command.
    """

    def do_work(result_obj: StageResult) -> Iterator[tuple[float, str]]:
        """Do the actual work - generator that yields progress and updates result.

        Yields: (progress_percent: float, message: str) tuples
        Updates result_obj.result, result_obj.output, and result_obj.success before finishing.
        """
        yield (0.1, "Detecting service manager...")
        try:
            provider = get_provider()
            scopes = [Scope.SYSTEM, Scope.USER] if scope == ALL_SCOPES else [Scope.parse(scope)]
        except (PlatformError, ValueError) as e:
            yield (1.0, "Complete")
            result_obj.result = f"Error: {e}"
            result_obj.output = ServiceListOutput(
                errors=[str(e)], warnings=[], platform="", scope=scope, services=[]
            ).model_dump(mode="python")
            result_obj.success = False
            return

        services: list[dict] = []
        errors: list[str] = []
        warnings: list[str] = []
        for i, current in enumerate(scopes):
            yield (0.2 + 0.7 * i / len(scopes), f"Listing {current.value} services...")
            try:
                found = provider.list_services(current)
            except ServiceError as e:
                if scope == ALL_SCOPES:
                    logger.warning("failed to list %s services: %s", current.value, e)
                    warnings.append(f"{current.value} services unavailable: {e}")
                else:
                    logger.error("failed to list %s services: %s", current.value, e)
                    errors.append(str(e))
                continue
            services.extend(s.to_dict() for s in found)

        yield (1.0, "Complete")
        result_obj.success = not errors
        result_obj.result = (
            f"Found {len(services)} service(s) ({provider.name}, scope: {scope})"
            if result_obj.success
            else f"Error listing services: {'; '.join(errors)}"
        )
        result_obj.output = ServiceListOutput(
            errors=errors, warnings=warnings, platform=provider.name, scope=scope, services=services
        ).model_dump(mode="python")

    return StageResult(
        announce="Listing services...",
        progress_callback=do_work,
    )
