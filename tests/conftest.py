import pytest

from tests.helpers import CATALOG, at, window


@pytest.fixture
def catalog():
    """A/B/C three-shift catalog, C spanning midnight."""
    return list(CATALOG)


@pytest.fixture
def shift_a():
    """Full 06:00-14:00 window of shift A on the test day."""
    return window(at(6), at(14))
