"""Shared test fixtures."""
from __future__ import annotations

import pytest


class FakeClock:
    """Callable clock whose time only moves when a test sets ``now``."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
