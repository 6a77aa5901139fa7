"""Pytest configuration and fixtures."""

from __future__ import annotations

import logging

from typing import TYPE_CHECKING

import pytest

from flexgrid.config import clear_settings
from flexgrid.log import get_logger
from flexgrid.metadata.conventions import reset_conventions_set
from flexgrid.metadata.entity import ModelConfiguration, get_model_configuration, reset_model_configuration
from flexgrid.metadata.formatters import reset_formatter_registry
from tests.support import Person, make_people


if TYPE_CHECKING:
    from collections.abc import Generator


def _reset_registries() -> None:
    reset_model_configuration()
    reset_formatter_registry()
    reset_conventions_set()
    clear_settings()


@pytest.fixture(autouse=True)
def clean_registries() -> Generator[None, None, None]:
    """Give every test fresh process-wide configuration registries."""
    _reset_registries()
    yield
    _reset_registries()


@pytest.fixture(autouse=True)
def restore_log_level() -> Generator[None, None, None]:
    """Undo log level and format changes made by a test."""
    logger = get_logger()
    level = logger.level
    formatters = [handler.formatter for handler in logger.handlers]
    yield
    logger.setLevel(level)
    for handler, formatter in zip(logger.handlers, formatters):
        handler.setFormatter(formatter)


@pytest.fixture
def model() -> ModelConfiguration:
    """The process-wide model configuration."""
    return get_model_configuration()


@pytest.fixture
def people() -> list[Person]:
    """Three people, two of them with orders."""
    return make_people()


@pytest.fixture
def flexgrid_caplog(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    """Capture everything the flexgrid logger emits."""
    caplog.set_level(logging.DEBUG, logger="flexgrid")
    return caplog
