"""Shared fixtures for the CHIP-8 VM test suite."""

import pytest


class FakeClock:
    """Monotonic nanosecond clock that only moves when told to."""

    def __init__(self, start: int = 0):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ns: int):
        self.now += ns


@pytest.fixture
def fake_clock():
    return FakeClock()
