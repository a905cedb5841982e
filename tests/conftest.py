"""Pytest configuration for realmroute tests."""

import sys
from collections.abc import Iterator

import pytest
from loguru import logger


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Restore the default loguru sink after tests that reconfigure logging."""
    yield
    logger.remove()
    logger.add(sys.stderr, level="DEBUG")
