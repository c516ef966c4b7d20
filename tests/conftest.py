"""Shared fixtures for the BaZi engine tests."""

import pytest

from bazi_compute.bazi import BaziChart
from bazi_compute.profile import BirthInput, compute_profile, profile_from_chart

# Beijing, 1990-06-15 14:30 clock time → solar 14:15:37
GOLDEN_BIRTH = BirthInput(timestamp="1990-06-15T14:30:00", longitude=116.4074, gender="male")
GOLDEN_PILLARS = ("庚午", "癸未", "丁亥", "丁未")


@pytest.fixture
def golden_birth():
    return GOLDEN_BIRTH


@pytest.fixture
def golden_profile():
    return compute_profile(GOLDEN_BIRTH)


@pytest.fixture
def make_profile():
    """Factory: profile around four literal pillars."""

    def _make(pillars, gender="male", birth_time="1990-01-01T12:00:00", name=None):
        chart = BaziChart.from_strings(*pillars)
        return profile_from_chart(chart, gender, birth_time, name=name)

    return _make
