"""Pytest configuration and fixtures."""

import pytest
import structlog

from amm_pool.pool import Pool
from tests.helpers import FixedClock, make_funded_pool, make_pool


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo any structlog.configure() done by a test."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def pool(clock: FixedClock) -> Pool:
    """Empty AAA/BBB pool; alice and bob hold plenty of both assets."""
    return make_pool(clock=clock)


@pytest.fixture
def funded_pool(clock: FixedClock) -> Pool:
    """Pool seeded by alice with (100, 400): 200 shares outstanding."""
    return make_funded_pool(100, 400, clock=clock)
