"""Shared pytest configuration and fixtures for all tests."""

import importlib
import io
import logging
from collections.abc import Callable
from pathlib import Path

import pytest

from autorun.api.service._AbstractImpl import _AbstractImpl
from autorun.api.service._run import CommandResult
from autorun.api.service.errors import ServiceNotFoundError
from autorun.api.service.LogStream import LogStream
from autorun.api.service.Scope import Scope
from autorun.api.service.Service import Service
from autorun.api.service.ServiceConfig import ServiceConfig
from autorun.api.service.ServiceStatus import ServiceStatus

# Modules whose names are shadowed by the functions their packages re-export
configure_logging_module = importlib.import_module("autorun.api.log.configure_logging")
detect_provider_module = importlib.import_module("autorun.api.service.detect_provider")


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without external processes or services")
    config.addinivalue_line("markers", "integration: tests that spawn real child processes")


def pytest_collection_modifyitems(config, items):
    """Automatically apply markers based on test file location."""
    for item in items:
        path_str = str(item.fspath)
        if "/unit/" in path_str:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in path_str:
            item.add_marker(pytest.mark.integration)


# =============================================================================
# Command Helpers
# =============================================================================


class FakeRunner:
    """Stands in for run_command: canned results keyed by argv, every call recorded.

    Commands without a canned result succeed with empty output.
    """

    def __init__(self):
        self.responses: dict[tuple[str, ...], CommandResult | Callable[[], CommandResult]] = {}
        self.calls: list[list[str]] = []
        self.merge_flags: list[bool] = []

    def set(self, args: list[str], returncode: int = 0, output: str = "", stderr: str = "") -> None:
        self.responses[tuple(args)] = CommandResult(list(args), returncode, output, stderr)

    def __call__(self, args: list[str], *, merge_stderr: bool = True) -> CommandResult:
        self.calls.append(list(args))
        self.merge_flags.append(merge_stderr)
        canned = self.responses.get(tuple(args))
        if canned is None:
            return CommandResult(list(args), 0, "")
        return canned() if callable(canned) else canned

    def called(self, *prefix: str) -> list[list[str]]:
        """Recorded calls starting with prefix."""
        return [c for c in self.calls if c[: len(prefix)] == list(prefix)]


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def run_cmd():
    """Execute a cmd function and return the result with progress_callback executed."""

    def _run(cmd_func, *args, **kwargs):
        result = cmd_func(*args, **kwargs)
        list(result.progress_callback(result))
        return result

    return _run


# =============================================================================
# Environment
# =============================================================================


@pytest.fixture
def autorun_home(tmp_path: Path, monkeypatch) -> Path:
    """Point AUTORUN_HOME at an empty temp directory."""
    home = tmp_path / ".autorun"
    home.mkdir()
    monkeypatch.setenv("AUTORUN_HOME", str(home))
    monkeypatch.delenv("AUTORUN_LOG_LEVEL", raising=False)
    return home


@pytest.fixture(autouse=True)
def _reset_process_state(monkeypatch):
    """Fresh provider singleton and logging setup for every test."""
    monkeypatch.setattr(detect_provider_module, "_provider", None)
    monkeypatch.setattr(configure_logging_module, "_CONFIGURED", False)
    logger = logging.getLogger("autorun")
    handlers = list(logger.handlers)
    level = logger.level
    yield
    logger.setLevel(level)
    for handler in logger.handlers[:]:
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()


@pytest.fixture
def use_provider(monkeypatch):
    """Install a provider as the process-wide one."""

    def _use(provider):
        monkeypatch.setattr(detect_provider_module, "_provider", provider)
        return provider

    return _use


# =============================================================================
# Log Stream Helpers
# =============================================================================


class FakeProc:
    """Popen stand-in whose output is a fixed set of lines."""

    def __init__(self, args, lines=(), **kwargs):
        self.args = list(args)
        self.kwargs = kwargs
        self.stdout = io.StringIO("".join(f"{line}\n" for line in lines))
        self.terminated = False

    def poll(self):
        return 0

    def terminate(self):
        self.terminated = True

    def wait(self, timeout=None):
        return 0


@pytest.fixture
def fake_popen():
    """Popen factory recording every FakeProc it creates; set .lines to choose output."""

    class _Factory:
        def __init__(self):
            self.procs: list[FakeProc] = []
            self.lines: list[str] = []

        def __call__(self, args, **kwargs):
            proc = FakeProc(args, self.lines, **kwargs)
            self.procs.append(proc)
            return proc

    return _Factory()


# =============================================================================
# Provider Helpers
# =============================================================================


class FakeProvider(_AbstractImpl):
    """In-memory provider: services keyed by (name, scope), every call recorded.

    Set `errors[method] = exc` to make a method raise.
    """

    name = "fake"

    def __init__(self, services: list[Service] | None = None):
        self.services = {(s.name, s.scope): s for s in services or []}
        self.calls: list[tuple] = []
        self.errors: dict[str, Exception] = {}
        self.streams: list[LogStream] = []
        self.stream_lines: list[str] = []

    def _record(self, method: str, *args) -> None:
        self.calls.append((method, *args))
        if method in self.errors:
            raise self.errors[method]

    def list_services(self, scope: Scope) -> list[Service]:
        self._record("list_services", scope)
        return sorted((s for (_, sc), s in self.services.items() if sc == scope), key=lambda s: s.name)

    def start(self, name: str, scope: Scope) -> None:
        self._record("start", name, scope)

    def stop(self, name: str, scope: Scope) -> None:
        self._record("stop", name, scope)

    def restart(self, name: str, scope: Scope) -> None:
        self._record("restart", name, scope)

    def enable(self, name: str, scope: Scope) -> None:
        self._record("enable", name, scope)

    def disable(self, name: str, scope: Scope) -> None:
        self._record("disable", name, scope)

    def stream_logs(self, name: str, scope: Scope, cancel=None) -> LogStream:
        self._record("stream_logs", name, scope)
        lines = self.stream_lines
        stream = LogStream(["fake-log", name], cancel=cancel, popen=lambda args, **kw: FakeProc(args, lines, **kw))
        self.streams.append(stream)
        return stream.start()

    def create_service(self, config: ServiceConfig, scope: Scope) -> Path:
        self._record("create_service", config, scope)
        self.services[(config.name, scope)] = Service(
            name=config.name, display_name=config.name, status=ServiceStatus.STOPPED, enabled=False, scope=scope
        )
        return Path("/fake") / scope.value / config.name

    def delete_service(self, name: str, scope: Scope) -> None:
        self._record("delete_service", name, scope)
        if (name, scope) not in self.services:
            raise ServiceNotFoundError(f"service not found: {name}")
        del self.services[(name, scope)]


@pytest.fixture
def fake_provider(use_provider) -> FakeProvider:
    """A FakeProvider installed as the process-wide provider, with one service per scope."""
    return use_provider(
        FakeProvider(
            [
                Service("web", "web", ServiceStatus.RUNNING, True, Scope.USER, "Web app"),
                Service("sshd", "sshd", ServiceStatus.RUNNING, True, Scope.SYSTEM, "OpenSSH"),
                Service("cron", "cron", ServiceStatus.FAILED, False, Scope.SYSTEM),
            ]
        )
    )
