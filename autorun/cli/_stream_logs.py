"""Follow a service's log stream on stdout."""

import logging

from ..api.service.detect_provider import get_provider
from ..api.service.errors import PlatformError, ServiceError
from ..api.service.Scope import Scope
from .display import CLIDisplay

logger = logging.getLogger(__name__)


def _stream_logs(name: str, scope: str, lines_limit: int = 0) -> int:
    """Print log lines as they arrive; return the exit code.

    Ctrl-C or reaching lines_limit cancels the stream, which terminates the
    log subprocess.
    """
    display = CLIDisplay()
    try:
        stream = get_provider().stream_logs(name, Scope.parse(scope))
    except (ServiceError, PlatformError, ValueError) as e:
        display.error(f"Cannot stream logs for {name}: {e}")
        return 1

    display.status(f"Streaming logs for {name} ({' '.join(stream.args)}), Ctrl-C to stop")
    count = 0
    try:
        with stream:
            for line in stream:
                display.line(line)
                count += 1
                if lines_limit and count >= lines_limit:
                    break
    except KeyboardInterrupt:
        logger.debug("log stream for %s interrupted", name)
    display.success(f"Log stream for {name} closed after {count} line(s)")
    return 0
