from __future__ import annotations

import random
from dataclasses import replace

import pytest

from moltmon import config
from moltmon.machine import PetStateMachine
from moltmon.models import PetState, PetStateData
from moltmon.store import Store

START = 1_700_000_000_000


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now: int = START) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


@pytest.fixture(autouse=True)
def _production_profile(monkeypatch):
    monkeypatch.setattr(config, "_dev_mode", False)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_path):
    return Store(tmp_path / "data", owner=True)


@pytest.fixture
def timing():
    return replace(config.DEV_TIMING, rebirth_delay_ms=0)


@pytest.fixture
def make_machine(store, timing, clock):
    def _make(state: PetStateData | PetState | None = None, **changes) -> PetStateMachine:
        if isinstance(state, PetState):
            changes = {"state": state, **changes}
            state = None
        if state is None:
            state = PetStateData.fresh(1, clock())
        for name, value in changes.items():
            setattr(state, name, value)
        return PetStateMachine(state, store=store, timing=timing, clock=clock, rng=random.Random(7))
    return _make
