"""Shared fixtures: a controllable clock and the bundled seven-level catalogue."""

from __future__ import annotations

from typing import List

import pytest

from circuitmap.core.levels import Level, build_levels

SEVEN_LEVELS = [
    {"id": 1, "x": 15, "y": 85, "difficulty": "Easy", "stars": 1, "topic": "Cyber"},
    {"id": 2, "x": 50, "y": 65, "difficulty": "Easy", "stars": 1, "topic": "AI & Machine Learning"},
    {"id": 3, "x": 85, "y": 55, "difficulty": "Easy", "stars": 2, "topic": "Phishing Detection"},
    {"id": 4, "x": 50, "y": 45, "difficulty": "Medium", "stars": 2, "topic": "Password Security"},
    {"id": 5, "x": 15, "y": 35, "difficulty": "Medium", "stars": 2, "topic": "Network Security"},
    {"id": 6, "x": 50, "y": 25, "difficulty": "Medium", "stars": 2, "topic": "System Administration"},
    {"id": 7, "x": 85, "y": 15, "difficulty": "Hard", "stars": 3, "topic": "Penetration Testing"},
]


class FakeClock:
    """Monotonic clock in seconds that only moves when told to."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def seven_levels() -> List[Level]:
    return build_levels(SEVEN_LEVELS)
