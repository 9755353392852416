"""Shared test fixtures."""

import pytest

from src.signals.engine import SignalEngine


class FakeClock:
    """Manually advanced clock (seconds) for time-windowed stores."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def engine(clock: FakeClock) -> SignalEngine:
    """Engine with fresh stores driven by the fake clock."""
    return SignalEngine(clock=clock)
