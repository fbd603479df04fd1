"""Linux service provider - manages systemd units through systemctl."""

import json
import logging
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
from ._unit_file import check_unit_fields, logical_name, render_unit_file, unit_name

logger = logging.getLogger(__name__)

SYSTEM_UNIT_DIR = Path("/etc/systemd/system")


def map_unit_status(active: str, sub: str) -> ServiceStatus:
    """Map systemd active/sub state to a ServiceStatus."""
    if active == "active":
        return ServiceStatus.RUNNING if sub == "running" else ServiceStatus.STOPPED
    if active == "inactive":
        return ServiceStatus.STOPPED
    if active == "failed":
        return ServiceStatus.FAILED
    return ServiceStatus.UNKNOWN


class _Impl(_AbstractImpl):
    """Service provider for systemd (system units and user units)."""

    name = "systemd"

    def __init__(
        self,
        *,
        home: Path | None = None,
        system_unit_dir: Path = SYSTEM_UNIT_DIR,
        runner: Callable[..., CommandResult] = run_command,
        stream_config: StreamConfig | None = None,
        popen: Callable[..., Any] | None = None,
    ):
        """Initialize the systemd provider.

        Args:
            home: Home directory holding user units. Defaults to Path.home().
            system_unit_dir: Directory receiving system units.
            runner: Executes native commands (injected by tests).
            stream_config: Log stream settings.
            popen: Subprocess factory for log streams (injected by tests).
        """
        self._home = home
        self._system_unit_dir = system_unit_dir
        self._run = runner
        self._stream = stream_config or StreamConfig()
        self._popen = popen

    def _unit_dir(self, scope: Scope) -> Path:
        """Directory where create_service writes units for a scope."""
        if scope == Scope.USER:
            home = self._home if self._home is not None else Path.home()
            return home / ".config" / "systemd" / "user"
        return self._system_unit_dir

    @staticmethod
    def _systemctl(scope: Scope, *args: str) -> list[str]:
        cmd = ["systemctl"]
        if scope == Scope.USER:
            cmd.append("--user")
        cmd.extend(args)
        return cmd

    def _list_units(self, scope: Scope) -> list[dict[str, Any]]:
        result = self._run(
            self._systemctl(scope, "list-units", "--type=service", "--all", "--output=json"),
            merge_stderr=False,
        )
        if not result.ok:
            logger.error("systemctl list-units failed (scope=%s): %s", scope.value, result.describe())
            raise ExecutionError(f"systemctl list-units failed: {result.stderr.strip()}", result.stderr, result.args)

        try:
            units = json.loads(result.output or "[]")
        except json.JSONDecodeError as e:
            logger.error("failed to parse systemctl output: %s (%s)", e, result.output[:200])
            raise ExecutionError(f"failed to parse systemctl output: {e}", result.output, result.args) from e
        if not isinstance(units, list):
            raise ExecutionError("unexpected systemctl output: expected a JSON array", result.output, result.args)

        logger.debug("listed %d units (scope=%s)", len(units), scope.value)
        return units

    def _is_enabled(self, unit: str, scope: Scope) -> bool:
        # Static and generated units fail this query; they count as disabled.
        result = self._run(self._systemctl(scope, "is-enabled", unit), merge_stderr=False)
        return result.output.strip() == "enabled"

    def list_services(self, scope: Scope) -> list[Service]:
        services = []
        for unit in self._list_units(scope):
            unit_id = str(unit.get("unit", ""))
            if not unit_id or unit.get("load") == "not-found":
                continue
            name = logical_name(unit_id)
            services.append(
                Service(
                    name=name,
                    display_name=name,
                    status=map_unit_status(str(unit.get("active", "")), str(unit.get("sub", ""))),
                    enabled=self._is_enabled(unit_id, scope),
                    scope=scope,
                    description=str(unit.get("description") or ""),
                )
            )
        return services

    def _matches(self, service: Service, name: str) -> bool:
        return service.name == name or unit_name(service.name) == name

    def _systemctl_verb(self, action: str, name: str, scope: Scope) -> None:
        unit = unit_name(name)
        logger.debug("systemctl %s %s (scope=%s)", action, unit, scope.value)
        result = self._run(self._systemctl(scope, action, unit))
        if not result.ok:
            logger.error("systemctl %s %s failed (scope=%s): %s", action, unit, scope.value, result.output.strip())
            raise ExecutionError(f"systemctl {action} failed: {result.output.strip()}", result.output, result.args)

    def start(self, name: str, scope: Scope) -> None:
        self._systemctl_verb("start", name, scope)

    def stop(self, name: str, scope: Scope) -> None:
        self._systemctl_verb("stop", name, scope)

    def restart(self, name: str, scope: Scope) -> None:
        self._systemctl_verb("restart", name, scope)

    def enable(self, name: str, scope: Scope) -> None:
        self._systemctl_verb("enable", name, scope)

    def disable(self, name: str, scope: Scope) -> None:
        self._systemctl_verb("disable", name, scope)

    def _daemon_reload(self, scope: Scope) -> None:
        result = self._run(self._systemctl(scope, "daemon-reload"))
        if not result.ok:
            logger.error("daemon-reload failed (scope=%s): %s", scope.value, result.output.strip())
            raise ExecutionError(f"daemon-reload failed: {result.output.strip()}", result.output, result.args)
        logger.debug("daemon-reload succeeded (scope=%s)", scope.value)

    def stream_logs(self, name: str, scope: Scope, cancel: threading.Event | None = None) -> LogStream:
        args = ["journalctl", "-f", "-n", str(self._stream.journal_lines)]
        if scope == Scope.USER:
            args += ["--user-unit", unit_name(name)]
        else:
            args += ["-u", unit_name(name)]

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
        """Write a unit file, reload systemd, and optionally enable and start it.

        A failed reload removes the unit file again. A failed enable/start
        leaves it in place so the caller can retry without recreating.
        """
        validate_service_config(config)
        check_unit_fields(config)
        logger.debug("creating systemd service %s (program=%s, scope=%s)", config.name, config.program, scope.value)

        target_dir = self._unit_dir(scope)
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("failed to create directory %s: %s", target_dir, e)
            raise ExecutionError(f"failed to create directory {target_dir}: {e}", str(e)) from e

        unit_path = target_dir / unit_name(config.name)
        if unit_path.exists():
            logger.warning("service already exists: %s (%s)", config.name, unit_path)
            raise ServiceExistsError(f"service {config.name} already exists")

        logger.debug("writing unit file %s", unit_path)
        try:
            unit_path.write_text(render_unit_file(config), encoding="utf-8")
        except OSError as e:
            logger.error("failed to write unit file %s: %s", unit_path, e)
            raise ExecutionError(f"failed to write unit file: {e}", str(e)) from e

        try:
            self._daemon_reload(scope)
        except ExecutionError:
            logger.error("daemon-reload failed, removing %s", unit_path)
            with suppress(OSError):
                unit_path.unlink()
            raise

        if config.run_at_load:
            logger.debug("enabling and starting %s", config.name)
            self.enable(config.name, scope)
            self.start(config.name, scope)

        logger.debug("service created: %s", config.name)
        return unit_path

    def delete_service(self, name: str, scope: Scope) -> None:
        """Stop, disable and remove a unit, then reload systemd.

        The unit file is removed before the reload; a failed reload is
        reported even though the file is already gone.
        """
        logger.debug("deleting systemd service %s (scope=%s)", name, scope.value)
        unit_path = self._unit_dir(scope) / unit_name(name)
        if not unit_path.exists():
            logger.error("service not found for deletion: %s (%s)", name, unit_path)
            raise ServiceNotFoundError(f"service not found: {name}")

        # May already be stopped or disabled
        with suppress(ExecutionError):
            self.stop(name, scope)
        with suppress(ExecutionError):
            self.disable(name, scope)

        try:
            unit_path.unlink()
        except OSError as e:
            logger.error("failed to delete unit file %s: %s", unit_path, e)
            raise ExecutionError(f"failed to delete service file: {e}", str(e)) from e

        self._daemon_reload(scope)
        logger.debug("service deleted: %s", name)
