"""Tests for logging setup."""

import logging

import pytest

from arbor_scheduler.logging_setup import init_logging


@pytest.fixture
def package_logger():
    logger = logging.getLogger("arbor_scheduler")
    saved_handlers, saved_level = list(logger.handlers), logger.level
    logger.handlers = [h for h in logger.handlers if h.get_name() != "arbor_scheduler"]
    yield logger
    logger.handlers = saved_handlers
    logger.setLevel(saved_level)


def test_init_logging_is_idempotent(package_logger):
    init_logging("info")
    init_logging("debug")

    ours = [h for h in package_logger.handlers if h.get_name() == "arbor_scheduler"]
    assert len(ours) == 1
    assert package_logger.level == logging.DEBUG


def test_init_logging_reads_environment(package_logger, monkeypatch):
    monkeypatch.setenv("ARBOR_LOG_LEVEL", "error")

    init_logging()

    assert package_logger.level == logging.ERROR
