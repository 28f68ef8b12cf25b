from __future__ import annotations

import asyncio
import random
from typing import List

import pytest

from game_engine import GameEngine
from presenter import RenderModel
from sessions import ClickGuard, SessionStore


class FakeClock:
    """Manually advanced stand-in for ``time.monotonic``."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingDeliver:
    """Collects every render the engine pushes; yields once per call like a real network send."""

    def __init__(self) -> None:
        self.models: List[RenderModel] = []

    async def __call__(self, model: RenderModel) -> None:
        self.models.append(model)
        await asyncio.sleep(0)

    @property
    def last(self) -> RenderModel:
        return self.models[-1]


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store(clock: FakeClock) -> SessionStore:
    return SessionStore(rng=random.Random(1234), clock=clock)


@pytest.fixture()
def guard() -> ClickGuard:
    return ClickGuard()


@pytest.fixture()
def engine(store: SessionStore, guard: ClickGuard, clock: FakeClock) -> GameEngine:
    return GameEngine(store, guard, penalty_delay=0, clock=clock)


@pytest.fixture()
def deliver() -> RecordingDeliver:
    return RecordingDeliver()
