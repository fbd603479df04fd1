"""Unit tests for autorun.api.log.configure_logging."""

import logging
from logging.handlers import RotatingFileHandler

from autorun.api.log import configure_logging


def _new_handlers(before):
    return [h for h in logging.getLogger("autorun").handlers if h not in before]


def test_file_handler_installed_once(autorun_home):
    before = list(logging.getLogger("autorun").handlers)
    configure_logging(home=autorun_home, level="WARN")
    configure_logging(home=autorun_home, level="DEBUG")

    handlers = _new_handlers(before)
    assert len(handlers) == 1
    assert isinstance(handlers[0], RotatingFileHandler)
    assert handlers[0].maxBytes == 5 * 1024 * 1024
    assert handlers[0].backupCount == 3
    assert logging.getLogger("autorun").level == logging.WARNING


def test_records_reach_log_file(autorun_home):
    configure_logging(home=autorun_home)
    logging.getLogger("autorun.api.service.test").warning("hello from test")
    for handler in logging.getLogger("autorun").handlers:
        handler.flush()
    assert "hello from test" in (autorun_home / "autorun.log").read_text()


def test_env_debug_forces_verbose(autorun_home, monkeypatch):
    monkeypatch.setenv("AUTORUN_LOG_LEVEL", "debug")
    before = list(logging.getLogger("autorun").handlers)
    configure_logging(home=autorun_home, level="ERROR")

    assert logging.getLogger("autorun").level == logging.DEBUG
    kinds = {type(h) for h in _new_handlers(before)}
    assert kinds == {RotatingFileHandler, logging.StreamHandler}
