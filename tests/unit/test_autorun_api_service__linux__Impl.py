"""Unit tests for the systemd provider with a fake command runner."""

import json

import pytest

from autorun.api.config.StreamConfig import StreamConfig
from autorun.api.service._linux._Impl import _Impl, map_unit_status
from autorun.api.service.errors import (
    ExecutionError,
    ServiceExistsError,
    ServiceNotFoundError,
    ServiceValidationError,
)
from autorun.api.service.Scope import Scope
from autorun.api.service.ServiceConfig import ServiceConfig
from autorun.api.service.ServiceStatus import ServiceStatus

LIST_USER = ["systemctl", "--user", "list-units", "--type=service", "--all", "--output=json"]
LIST_SYSTEM = ["systemctl", "list-units", "--type=service", "--all", "--output=json"]

UNITS = [
    {"unit": "foo.service", "load": "loaded", "active": "failed", "sub": "failed", "description": "Foo daemon"},
    {"unit": "bar.service", "load": "loaded", "active": "active", "sub": "running", "description": "Bar daemon"},
    {"unit": "oneshot.service", "load": "loaded", "active": "active", "sub": "exited", "description": ""},
    {"unit": "ghost.service", "load": "not-found", "active": "inactive", "sub": "dead", "description": "ghost"},
]


@pytest.fixture
def provider(tmp_path, runner):
    return _Impl(home=tmp_path / "home", system_unit_dir=tmp_path / "system", runner=runner)


@pytest.fixture
def user_dir(tmp_path):
    return tmp_path / "home" / ".config" / "systemd" / "user"


def _config(**overrides) -> ServiceConfig:
    data = {"name": "worker", "program": "/usr/bin/worker", "arguments": ["--port", "8000"]}
    data.update(overrides)
    return ServiceConfig(**data)


@pytest.mark.parametrize(
    ("active", "sub", "expected"),
    [
        ("active", "running", ServiceStatus.RUNNING),
        ("active", "exited", ServiceStatus.STOPPED),
        ("inactive", "dead", ServiceStatus.STOPPED),
        ("failed", "failed", ServiceStatus.FAILED),
        ("activating", "start", ServiceStatus.UNKNOWN),
        ("", "", ServiceStatus.UNKNOWN),
    ],
)
def test_map_unit_status(active, sub, expected):
    assert map_unit_status(active, sub) is expected


def test_list_services_maps_sample_output(provider, runner):
    runner.set(LIST_USER, output=json.dumps(UNITS))
    runner.set(["systemctl", "--user", "is-enabled", "bar.service"], output="enabled\n")
    runner.set(["systemctl", "--user", "is-enabled", "foo.service"], returncode=1, output="disabled\n")

    services = {s.name: s for s in provider.list_services(Scope.USER)}

    assert set(services) == {"foo", "bar", "oneshot"}
    foo = services["foo"]
    assert (foo.status, foo.enabled, foo.scope, foo.description) == (
        ServiceStatus.FAILED,
        False,
        Scope.USER,
        "Foo daemon",
    )
    assert services["bar"].status is ServiceStatus.RUNNING
    assert services["bar"].enabled is True
    assert services["oneshot"].status is ServiceStatus.STOPPED
    # stdout of list-units is parsed on its own
    assert runner.merge_flags[0] is False


def test_list_services_system_scope_has_no_user_flag(provider, runner):
    runner.set(LIST_SYSTEM, output=json.dumps(UNITS[:1]))
    services = provider.list_services(Scope.SYSTEM)
    assert [s.name for s in services] == ["foo"]
    assert runner.calls[0] == LIST_SYSTEM
    assert runner.calls[1] == ["systemctl", "is-enabled", "foo.service"]


def test_list_services_failure_raises(provider, runner):
    runner.set(LIST_USER, returncode=1, stderr="Failed to connect to bus: No medium found")
    with pytest.raises(ExecutionError, match="Failed to connect to bus") as exc_info:
        provider.list_services(Scope.USER)
    assert exc_info.value.command == LIST_USER


def test_list_services_bad_json_raises(provider, runner):
    runner.set(LIST_USER, output="not json")
    with pytest.raises(ExecutionError, match="failed to parse"):
        provider.list_services(Scope.USER)


def test_get_service_matches_with_or_without_suffix(provider, runner):
    runner.set(LIST_USER, output=json.dumps(UNITS))
    assert provider.get_service("bar", Scope.USER).name == "bar"
    assert provider.get_service("bar.service", Scope.USER).name == "bar"


def test_get_service_not_found(provider, runner):
    runner.set(LIST_USER, output=json.dumps(UNITS))
    with pytest.raises(ServiceNotFoundError):
        provider.get_service("ghost", Scope.USER)


@pytest.mark.parametrize("verb", ["start", "stop", "restart", "enable", "disable"])
def test_control_verbs_issue_one_systemctl_call(provider, runner, verb):
    getattr(provider, verb)("worker", Scope.USER)
    assert runner.calls == [["systemctl", "--user", verb, "worker.service"]]


def test_control_verb_failure_carries_output(provider, runner):
    output = "Job for worker.service failed because the control process exited with error code.\n"
    runner.set(["systemctl", "start", "worker.service"], returncode=1, output=output)

    with pytest.raises(ExecutionError) as exc_info:
        provider.start("worker", Scope.SYSTEM)

    assert exc_info.value.output == output
    assert exc_info.value.command == ["systemctl", "start", "worker.service"]


def test_create_service_writes_unit_and_reloads(provider, runner, user_dir):
    path = provider.create_service(_config(), Scope.USER)

    assert path == user_dir / "worker.service"
    assert "ExecStart=/usr/bin/worker --port 8000" in path.read_text()
    assert runner.calls == [["systemctl", "--user", "daemon-reload"]]


def test_create_service_system_scope(provider, runner, tmp_path):
    path = provider.create_service(_config(), Scope.SYSTEM)
    assert path == tmp_path / "system" / "worker.service"
    assert runner.calls == [["systemctl", "daemon-reload"]]


def test_create_service_run_at_load_enables_then_starts(provider, runner):
    provider.create_service(_config(run_at_load=True), Scope.USER)
    assert runner.calls == [
        ["systemctl", "--user", "daemon-reload"],
        ["systemctl", "--user", "enable", "worker.service"],
        ["systemctl", "--user", "start", "worker.service"],
    ]


def test_create_service_reload_failure_removes_unit(provider, runner, user_dir):
    runner.set(["systemctl", "--user", "daemon-reload"], returncode=1, output="Access denied")

    with pytest.raises(ExecutionError, match="Access denied"):
        provider.create_service(_config(), Scope.USER)

    assert not (user_dir / "worker.service").exists()


def test_create_service_start_failure_keeps_unit(provider, runner, user_dir):
    runner.set(["systemctl", "--user", "start", "worker.service"], returncode=1, output="bad exec")

    with pytest.raises(ExecutionError, match="bad exec"):
        provider.create_service(_config(run_at_load=True), Scope.USER)

    assert (user_dir / "worker.service").exists()


def test_create_service_existing_unit(provider, runner, user_dir):
    user_dir.mkdir(parents=True)
    (user_dir / "worker.service").write_text("[Unit]\n")

    with pytest.raises(ServiceExistsError):
        provider.create_service(_config(), Scope.USER)
    assert runner.calls == []


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": ""},
        {"name": "   "},
        {"program": ""},
        {"name": "a/b"},
        {"description": "one\nExecStartPre=/bin/evil"},
        {"working_directory": "/srv\r\nUser=root"},
        {"standard_out_path": "/tmp/out\n"},
    ],
)
def test_create_service_validates_before_io(provider, runner, user_dir, overrides):
    with pytest.raises(ServiceValidationError):
        provider.create_service(_config(**overrides), Scope.USER)
    assert runner.calls == []
    assert not user_dir.exists()


def test_delete_service_stops_disables_removes_and_reloads(provider, runner, user_dir):
    provider.create_service(_config(), Scope.USER)
    runner.calls.clear()
    runner.set(["systemctl", "--user", "stop", "worker.service"], returncode=5, output="not loaded")

    provider.delete_service("worker", Scope.USER)

    assert not (user_dir / "worker.service").exists()
    assert runner.calls == [
        ["systemctl", "--user", "stop", "worker.service"],
        ["systemctl", "--user", "disable", "worker.service"],
        ["systemctl", "--user", "daemon-reload"],
    ]


def test_delete_service_missing_unit(provider, runner):
    with pytest.raises(ServiceNotFoundError):
        provider.delete_service("worker", Scope.USER)
    assert runner.calls == []


def test_delete_service_reload_failure_reported_after_unlink(provider, runner, user_dir):
    provider.create_service(_config(), Scope.USER)
    runner.set(["systemctl", "--user", "daemon-reload"], returncode=1, output="bus error")

    with pytest.raises(ExecutionError, match="bus error"):
        provider.delete_service("worker", Scope.USER)

    assert not (user_dir / "worker.service").exists()


def test_create_then_delete_then_get_is_not_found(provider, runner):
    provider.create_service(_config(), Scope.USER)
    provider.delete_service("worker", Scope.USER)
    runner.set(LIST_USER, output="[]")

    with pytest.raises(ServiceNotFoundError):
        provider.get_service("worker", Scope.USER)


@pytest.mark.parametrize(
    ("scope", "selector"),
    [(Scope.USER, ["--user-unit", "worker.service"]), (Scope.SYSTEM, ["-u", "worker.service"])],
)
def test_stream_logs_follows_journal(tmp_path, runner, fake_popen, scope, selector):
    fake_popen.lines = ["first", "second"]
    provider = _Impl(home=tmp_path, runner=runner, popen=fake_popen, stream_config=StreamConfig(journal_lines=20))

    stream = provider.stream_logs("worker", scope)

    assert list(stream) == ["first", "second"]
    assert fake_popen.procs[0].args == ["journalctl", "-f", "-n", "20", *selector]
