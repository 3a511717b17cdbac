"""Tests for the root logger setup."""

import logging

import pytest

from delegation_portal_api.app.core.logging_config import resolve_level, setup_logging


@pytest.fixture
def bare_root_logger(monkeypatch):
    """A handler-less logger standing in for the root logger."""
    fresh = logging.Logger("root-under-test", logging.WARNING)
    get_logger = logging.getLogger
    monkeypatch.setattr(logging, "getLogger", lambda name=None: fresh if name is None else get_logger(name))
    yield fresh
    for handler in fresh.handlers:
        handler.close()


@pytest.mark.parametrize(
    "level, debug, expected",
    [
        ("INFO", False, logging.INFO),
        ("warning", False, logging.WARNING),
        ("verbose", False, logging.INFO),
        ("WARNING", True, logging.DEBUG),
    ],
)
def test_resolve_level(level, debug, expected):
    assert resolve_level(level, debug) == expected


def test_debug_flag_forces_debug_level(bare_root_logger):
    setup_logging("ERROR", debug=True)
    assert bare_root_logger.level == logging.DEBUG
    assert len(bare_root_logger.handlers) == 1


def test_file_handler_creates_directories(bare_root_logger, tmp_path):
    logfile = tmp_path / "logs" / "portal.log"
    setup_logging("INFO", str(logfile))

    bare_root_logger.info("hello")
    for handler in bare_root_logger.handlers:
        handler.flush()

    assert "[INFO] root-under-test: hello" in logfile.read_text(encoding="utf-8")


def test_configured_only_once(bare_root_logger):
    setup_logging("INFO")
    setup_logging("DEBUG")
    assert len(bare_root_logger.handlers) == 1
    assert bare_root_logger.level == logging.INFO
