"""Unit tests for autorun.api.service.cmd_platform."""

import importlib

from autorun.api.service.cmd_platform import cmd_platform
from autorun.api.service.errors import PlatformError

cmd_platform_module = importlib.import_module("autorun.api.service.cmd_platform")


def test_platform_reports_provider(fake_provider, run_cmd, monkeypatch):
    monkeypatch.setattr(cmd_platform_module.os, "geteuid", lambda: 0)
    result = run_cmd(cmd_platform)
    assert result.success is True
    assert result.output == {"errors": [], "warnings": [], "platform": "fake", "elevated": True}


def test_platform_not_elevated(fake_provider, run_cmd, monkeypatch):
    monkeypatch.setattr(cmd_platform_module.os, "geteuid", lambda: 1000)
    result = run_cmd(cmd_platform)
    assert result.output["elevated"] is False


def test_platform_detection_failure(monkeypatch, run_cmd):
    def fail():
        raise PlatformError("systemd not detected on this Linux system")

    monkeypatch.setattr(cmd_platform_module, "get_provider", fail)
    result = run_cmd(cmd_platform)
    assert result.success is False
    assert result.output["platform"] == ""
    assert result.output["errors"] == ["systemd not detected on this Linux system"]
