"""Shared fixtures."""

import pytest


@pytest.fixture
def dropped_trigger_streams():
    """
    Two 80-row streams at a 2:1 clock ratio with one tick of jitter,
    where device 2 missed trigger 40.
    """
    times1 = [100 * i for i in range(80)]
    times2 = [200 * j + (j % 2) for j in range(81) if j != 40]
    return times1, times2
