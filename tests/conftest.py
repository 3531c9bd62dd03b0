from __future__ import annotations

import pytest

from HLT_tool.metrics import MetricsRecorder, RecorderConfig


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.t = start

    def __call__(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += dt


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def messages():
    return []


@pytest.fixture
def rec(clock, messages):
    return MetricsRecorder(RecorderConfig(freq=5, delay=0), diagnose=messages.append, clock=clock)
