import pytest

from crowd_guard.config import EngineConfig
from crowd_guard.engine import Engine


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedDetector:
    """Returns queued responses in order; an Exception instance is raised instead."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = 0

    def push(self, *responses):
        self.responses.extend(responses)

    def __call__(self, frame):
        self.calls += 1
        response = self.responses.pop(0) if self.responses else []
        if isinstance(response, Exception):
            raise response
        return response


def person(x, y, w, h, score=0.9):
    return {"label": "person", "score": score, "box": [x, y, w, h]}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def detector():
    return ScriptedDetector()


@pytest.fixture
def engine(detector, clock):
    return Engine(detector, EngineConfig(), clock=clock)
