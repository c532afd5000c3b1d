"""Fixtures for unit tests."""

import logging

import pytest

from taskwarrior_mcp.core.logging_config import ROOT_LOGGER_NAME


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Drop handlers installed by configure_logging so they don't outlive a test."""
    yield
    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)
