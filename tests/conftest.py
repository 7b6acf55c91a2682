from __future__ import annotations

import pytest


class FakeClock:
    """Controllable epoch-millisecond clock."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(start=1_700_000_000_000.0)
