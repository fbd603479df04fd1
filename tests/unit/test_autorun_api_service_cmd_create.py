"""Unit tests for autorun.api.service.cmd_create and cmd_delete."""

from autorun.api.service.cmd_create import cmd_create
from autorun.api.service.cmd_delete import cmd_delete
from autorun.api.service.errors import ServiceExistsError, ServiceValidationError
from autorun.api.service.Scope import Scope
from autorun.api.service.ServiceConfig import ServiceConfig


def test_create_success(fake_provider, run_cmd):
    config = ServiceConfig(name="worker", program="/usr/bin/worker")

    result = run_cmd(cmd_create, config, "system")

    assert result.success is True
    assert result.output["created"] is True
    assert result.output["path"] == "/fake/system/worker"
    assert fake_provider.calls == [("create_service", config, Scope.SYSTEM)]


def test_create_exists(fake_provider, run_cmd):
    fake_provider.errors["create_service"] = ServiceExistsError("service worker already exists")

    result = run_cmd(cmd_create, ServiceConfig(name="worker", program="/usr/bin/worker"))

    assert result.success is False
    assert result.output["created"] is False
    assert result.output["errors"] == ["service worker already exists"]


def test_create_validation_error(fake_provider, run_cmd):
    fake_provider.errors["create_service"] = ServiceValidationError("program path is required")
    result = run_cmd(cmd_create, ServiceConfig(name="worker"))
    assert result.success is False
    assert result.output["errors"] == ["program path is required"]


def test_delete_success_and_not_found(fake_provider, run_cmd):
    result = run_cmd(cmd_delete, "web", "user")
    assert result.success is True
    assert result.output["deleted"] is True

    again = run_cmd(cmd_delete, "web", "user")
    assert again.success is False
    assert again.output["deleted"] is False
    assert again.output["errors"] == ["service not found: web"]
