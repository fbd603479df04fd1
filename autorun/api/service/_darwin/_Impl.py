"""macOS service provider - manages launchd jobs through launchctl."""

import logging
import os
import pwd
import threading
from collections.abc import Callable
from contextlib import suppress
from pathlib import Path
from typing import Any

from ...config.StreamConfig import StreamConfig
from .._AbstractImpl import _AbstractImpl, validate_service_config
from .._run import CommandResult, run_command
from ..errors import ExecutionError, ServiceExistsError, ServiceNotFoundError
from ..LogStream import LogStream
from ..Scope import Scope
from ..Service import Service
from ..ServiceConfig import ServiceConfig
from ..ServiceStatus import ServiceStatus
from ._attempts import run_attempts, start_attempts, start_succeeded, stop_attempts, stop_succeeded
from ._launchctl import parse_print_disabled, parse_print_services
from ._plist import PLIST_SUFFIX, extract_program_name, render_plist

logger = logging.getLogger(__name__)

SHARED_AGENTS_DIR = Path("/Library/LaunchAgents")
SYSTEM_DAEMON_DIRS = [Path("/Library/LaunchDaemons"), Path("/System/Library/LaunchDaemons")]


def _console_user(runner: Callable[..., CommandResult]) -> tuple[int, Path]:
    """UID and home of the user whose gui domain we manage.

    Under sudo the effective user is root, but user services belong to
    whoever owns the console.
    """
    if os.geteuid() != 0:
        return os.getuid(), Path.home()

    result = runner(["stat", "-f", "%u", "/dev/console"], merge_stderr=False)
    if result.ok:
        try:
            uid = int(result.output.strip())
        except ValueError:
            uid = 0
        if uid > 0:
            try:
                return uid, Path(pwd.getpwuid(uid).pw_dir)
            except KeyError:
                logger.warning("console uid %d has no passwd entry", uid)
                return uid, Path.home()
    logger.debug("console user not found, using root domain")
    return 0, Path.home()


def _quote_predicate(value: str) -> str:
    """Single-quoted NSPredicate string literal."""
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


class _Impl(_AbstractImpl):
    """Service provider for launchd (LaunchAgents and LaunchDaemons)."""

    name = "launchd"

    def __init__(
        self,
        *,
        home: Path | None = None,
        uid: int | None = None,
        user_dirs: list[Path] | None = None,
        system_dirs: list[Path] | None = None,
        runner: Callable[..., CommandResult] = run_command,
        stream_config: StreamConfig | None = None,
        popen: Callable[..., Any] | None = None,
    ):
        """Initialize the launchd provider.

        Args:
            home: Home directory of the managed user. Detected if omitted.
            uid: UID whose gui domain holds user services. Detected if omitted.
            user_dirs: Plist directories for user scope; the first receives new services.
            system_dirs: Plist directories for system scope; the first receives new services.
            runner: Executes native commands (injected by tests).
            stream_config: Log stream settings.
            popen: Subprocess factory for log streams (injected by tests).
        """
        self._run = runner
        if home is None or uid is None:
            detected_uid, detected_home = _console_user(runner)
            home = detected_home if home is None else home
            uid = detected_uid if uid is None else uid
        self._uid = uid
        self._dirs = {
            Scope.USER: list(user_dirs) if user_dirs else [home / "Library" / "LaunchAgents", SHARED_AGENTS_DIR],
            Scope.SYSTEM: list(system_dirs) if system_dirs else list(SYSTEM_DAEMON_DIRS),
        }
        self._stream = stream_config or StreamConfig()
        self._popen = popen

    def _domain(self, scope: Scope) -> str:
        return f"gui/{self._uid}" if scope == Scope.USER else "system"

    def _find_plist(self, name: str, scope: Scope) -> Path | None:
        for directory in self._dirs[scope]:
            path = directory / f"{name}{PLIST_SUFFIX}"
            if path.is_file():
                return path
        return None

    def _require_plist(self, name: str, scope: Scope) -> Path:
        path = self._find_plist(name, scope)
        if path is None:
            logger.error("plist not found for %s (scope=%s)", name, scope.value)
            raise ServiceNotFoundError(f"service not found: {name}")
        return path

    def _plist_labels(self, scope: Scope) -> list[str]:
        labels: dict[str, None] = {}
        for directory in self._dirs[scope]:
            if not directory.is_dir():
                continue
            for path in directory.glob(f"*{PLIST_SUFFIX}"):
                labels.setdefault(path.name[: -len(PLIST_SUFFIX)])
        return list(labels)

    def _running_pids(self, scope: Scope) -> dict[str, int]:
        domain = self._domain(scope)
        result = self._run(["launchctl", "print", domain], merge_stderr=False)
        if not result.ok:
            logger.error("launchctl print %s failed: %s", domain, result.describe())
            raise ExecutionError(f"launchctl print failed: {result.describe()}", result.output, result.args)
        return {entry.label: entry.pid for entry in parse_print_services(result.output)}

    def _disabled_labels(self, scope: Scope) -> dict[str, bool]:
        domain = self._domain(scope)
        result = self._run(["launchctl", "print-disabled", domain], merge_stderr=False)
        if not result.ok:
            # Without the override database every descriptor counts as enabled.
            logger.warning("launchctl print-disabled %s failed: %s", domain, result.describe())
            return {}
        return parse_print_disabled(result.output)

    def list_services(self, scope: Scope) -> list[Service]:
        pids = self._running_pids(scope)
        disabled = self._disabled_labels(scope)

        services = []
        for label in sorted(self._plist_labels(scope)):
            running = pids.get(label, 0) > 0
            services.append(
                Service(
                    name=label,
                    display_name=label,
                    status=ServiceStatus.RUNNING if running else ServiceStatus.STOPPED,
                    enabled=not disabled.get(label, False),
                    scope=scope,
                )
            )
        logger.debug("listed %d services (scope=%s, loaded=%d)", len(services), scope.value, len(pids))
        return services

    def start(self, name: str, scope: Scope) -> None:
        plist = self._require_plist(name, scope)
        chain = run_attempts(start_attempts(self._domain(scope), name, str(plist)), self._run)
        if not start_succeeded(chain.outcomes):
            detail = chain.failure_detail()
            logger.error("failed to start %s: %s", name, detail)
            raise ExecutionError(f"failed to start {name}: {detail}", detail, chain.results[-1].args)
        logger.debug("started %s (%s)", name, ", ".join(k for k, ok in chain.outcomes.items() if ok))

    def stop(self, name: str, scope: Scope) -> None:
        plist = self._find_plist(name, scope)
        chain = run_attempts(stop_attempts(self._domain(scope), name, str(plist) if plist else None), self._run)
        if not stop_succeeded(chain.outcomes):
            detail = chain.failure_detail()
            logger.error("failed to stop %s: %s", name, detail)
            raise ExecutionError(f"failed to stop {name}: {detail}", detail, chain.results[-1].args)
        logger.debug("stopped %s", name)

    def restart(self, name: str, scope: Scope) -> None:
        # Not running is fine; start reports the real problem
        with suppress(ExecutionError):
            self.stop(name, scope)
        self.start(name, scope)

    def _load_toggle(self, verb: str, name: str, scope: Scope) -> None:
        plist = self._require_plist(name, scope)
        result = self._run(["launchctl", verb, "-w", str(plist)])
        if not result.ok:
            logger.error("launchctl %s -w %s failed: %s", verb, plist, result.output.strip())
            raise ExecutionError(f"launchctl {verb} failed: {result.output.strip()}", result.output, result.args)

    def enable(self, name: str, scope: Scope) -> None:
        self._load_toggle("load", name, scope)

    def disable(self, name: str, scope: Scope) -> None:
        self._load_toggle("unload", name, scope)

    def _process_name(self, name: str, scope: Scope) -> str:
        """Executable name recorded in the plist, else the label's last component."""
        plist = self._find_plist(name, scope)
        if plist is not None:
            result = self._run(["plutil", "-convert", "xml1", "-o", "-", str(plist)], merge_stderr=False)
            if result.ok:
                program = extract_program_name(result.output)
                if program:
                    return program
            else:
                logger.debug("plutil failed for %s: %s", plist, result.describe())
        return name.rsplit(".", 1)[-1]

    def stream_logs(self, name: str, scope: Scope, cancel: threading.Event | None = None) -> LogStream:
        process = _quote_predicate(self._process_name(name, scope))
        subsystem = _quote_predicate(name)
        predicate = f"process == {process} OR process CONTAINS {process} OR subsystem CONTAINS {subsystem}"
        args = ["log", "stream", "--predicate", predicate, "--style", "compact"]

        kwargs: dict[str, Any] = {}
        if self._popen is not None:
            kwargs["popen"] = self._popen
        stream = LogStream(
            args,
            cancel=cancel,
            queue_size=self._stream.queue_size,
            poll_interval=self._stream.poll_interval,
            label=name,
            **kwargs,
        )
        return stream.start()

    def create_service(self, config: ServiceConfig, scope: Scope) -> Path:
        """Write a plist and, with run_at_load, start it.

        launchd reads plists on bootstrap, so there is no reload step.
        """
        validate_service_config(config)
        logger.debug("creating launchd service %s (program=%s, scope=%s)", config.name, config.program, scope.value)

        target_dir = self._dirs[scope][0]
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("failed to create directory %s: %s", target_dir, e)
            raise ExecutionError(f"failed to create directory {target_dir}: {e}", str(e)) from e

        plist_path = target_dir / f"{config.name}{PLIST_SUFFIX}"
        if plist_path.exists():
            logger.warning("service already exists: %s (%s)", config.name, plist_path)
            raise ServiceExistsError(f"service {config.name} already exists")

        try:
            plist_path.write_text(render_plist(config), encoding="utf-8")
        except OSError as e:
            logger.error("failed to write plist %s: %s", plist_path, e)
            raise ExecutionError(f"failed to write plist: {e}", str(e)) from e

        if config.run_at_load:
            self.start(config.name, scope)

        logger.debug("service created: %s", config.name)
        return plist_path

    def delete_service(self, name: str, scope: Scope) -> None:
        plist = self._require_plist(name, scope)
        logger.debug("deleting launchd service %s (%s)", name, plist)

        with suppress(ExecutionError):
            self.stop(name, scope)
        with suppress(ExecutionError):
            self.disable(name, scope)

        try:
            plist.unlink()
        except OSError as e:
            logger.error("failed to delete plist %s: %s", plist, e)
            raise ExecutionError(f"failed to delete service file: {e}", str(e)) from e
        logger.debug("service deleted: %s", name)
