"""Unit tests for service provider detection."""

import importlib
import threading

import pytest

from autorun.api.config.AutorunConfig import AutorunConfig
from autorun.api.config.StreamConfig import StreamConfig
from autorun.api.service import detect_provider, get_provider
from autorun.api.service._darwin._Impl import _Impl as DarwinImpl
from autorun.api.service._linux._Impl import _Impl as LinuxImpl
from autorun.api.service.errors import PlatformError

detect_provider_module = importlib.import_module("autorun.api.service.detect_provider")


def test_linux_with_systemd(tmp_path):
    config = AutorunConfig(stream=StreamConfig(journal_lines=7))
    provider = detect_provider("Linux", systemd_marker=tmp_path, config=config)
    assert isinstance(provider, LinuxImpl)
    assert provider.name == "systemd"


def test_linux_without_systemd(tmp_path):
    with pytest.raises(PlatformError, match="systemd not detected on this Linux system"):
        detect_provider("linux", systemd_marker=tmp_path / "missing", config=AutorunConfig())


def test_darwin(monkeypatch):
    darwin_impl = importlib.import_module("autorun.api.service._darwin._Impl")
    monkeypatch.setattr(darwin_impl, "_console_user", lambda runner: (501, darwin_impl.Path("/Users/me")))

    provider = detect_provider("darwin", config=AutorunConfig())

    assert isinstance(provider, DarwinImpl)
    assert provider.name == "launchd"


@pytest.mark.parametrize("system", ["windows", "freebsd", ""])
def test_unsupported_platform(monkeypatch, system):
    monkeypatch.setattr(detect_provider_module.platform, "system", lambda: system or "Plan9")
    with pytest.raises(PlatformError, match="unsupported platform"):
        detect_provider(system or None, config=AutorunConfig())


def test_config_loaded_when_not_given(autorun_home, tmp_path):
    (autorun_home / "config.json").write_text('{"stream": {"journal_lines": 3}}')
    provider = detect_provider("linux", systemd_marker=tmp_path)
    assert provider._stream.journal_lines == 3


def test_get_provider_detects_once(monkeypatch):
    calls = []

    def fake_detect():
        calls.append(1)
        return object()

    monkeypatch.setattr(detect_provider_module, "detect_provider", fake_detect)

    results = []
    threads = [threading.Thread(target=lambda: results.append(get_provider())) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(calls) == 1
    assert all(r is results[0] for r in results)


def test_get_provider_propagates_detection_failure(monkeypatch):
    def fail():
        raise PlatformError("unsupported platform: plan9")

    monkeypatch.setattr(detect_provider_module, "detect_provider", fail)
    with pytest.raises(PlatformError):
        get_provider()
    assert detect_provider_module._provider is None
