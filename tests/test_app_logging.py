"""Tests for logging configuration."""

import logging

from exchange_planner.app_logging import configure_logging


def test_configure_logging_idempotent() -> None:
    logger = logging.getLogger("exchange_planner")
    logger.handlers.clear()

    configure_logging()
    first_count = len(logger.handlers)

    configure_logging()
    second_count = len(logger.handlers)

    assert first_count == 1
    assert second_count == 1
    assert logger.propagate is False


def test_module_loggers_inherit_package_level() -> None:
    logger = logging.getLogger("exchange_planner")
    logger.handlers.clear()

    configure_logging(logging.DEBUG)

    child = logging.getLogger("exchange_planner.services.plans")
    assert child.getEffectiveLevel() == logging.DEBUG


def test_configure_logging_accepts_level_names(monkeypatch) -> None:
    logger = logging.getLogger("exchange_planner")
    monkeypatch.setattr(logger, "level", logger.level)
    logger.handlers.clear()

    configure_logging("warning")

    assert logger.level == logging.WARNING
