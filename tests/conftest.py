"""Shared fixtures for the crop advisory test suite."""
import pytest

from helpers import make_forecast, make_reading


@pytest.fixture
def reading():
    return make_reading()


@pytest.fixture
def forecast():
    return make_forecast([2.5, 0, 15, 8, 0])
