"""Care API for processes that do not tick the pet.

Front ends go through this layer instead of touching the state machine: it
reads the shared state file, refuses actions that cannot apply right now with
a message meant for the person (or assistant) asking, and otherwise queues the
command for the ticking process.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Optional

from . import config
from .commands import Clean, Feed, Hatch, Heal
from .models import PetState, PetSummary
from .store import Store

logger = logging.getLogger(__name__)

BLUE_CAT = "001_blue_cat"
PINK_DOG = "002_pink_dog"
PERSONALITIES = ("brave", "curious")

PET_NOT_FOUND = "Pet not found. Is a Moltmon window running?"


@dataclass
class ApiResult:
    success: bool
    data: Any = None
    error: Optional[str] = None

    def to_dict(self):
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "error": self.error}


def determine_creature(personality: str, rng=None) -> str:
    # brave leans dog, curious leans cat
    roll = (rng or random).random()
    normalized = personality.strip().lower()
    if normalized == "brave":
        return PINK_DOG if roll < 0.8 else BLUE_CAT
    if normalized == "curious":
        return BLUE_CAT if roll < 0.8 else PINK_DOG
    return BLUE_CAT if roll < 0.5 else PINK_DOG


class CareApi:
    def __init__(self, store: Optional[Store] = None, clock=None, rng=None):
        self.store = store or Store()
        self._clock = clock or config.now_ms
        self._rng = rng

    # --- Care actions ---
    def feed(self) -> ApiResult:
        state = self.store.read_state()
        if state is None: return ApiResult(False, error=PET_NOT_FOUND)
        if state.state == PetState.SICK:
            return ApiResult(False, error="Cannot feed a sick pet. Heal it first.")
        if state.state != PetState.HUNGRY:
            return ApiResult(False, error=f"Pet is not hungry. Current state: {state.state.value}")
        self.store.write_command(Feed(timestamp=self._clock()))
        return ApiResult(True, {"message": "Feed command sent! Your Moltmon will be happy."})

    def clean(self) -> ApiResult:
        state = self.store.read_state()
        if state is None: return ApiResult(False, error=PET_NOT_FOUND)
        if state.poop_count == 0:
            return ApiResult(False, error="Nothing to clean. There is no poop.")
        self.store.write_command(Clean(timestamp=self._clock()))
        return ApiResult(True, {"message": "Clean command sent! Your Moltmon appreciates a tidy home."})

    def heal(self) -> ApiResult:
        state = self.store.read_state()
        if state is None: return ApiResult(False, error=PET_NOT_FOUND)
        if state.state != PetState.SICK:
            return ApiResult(False, error=f"Pet is not sick. Current state: {state.state.value}")
        self.store.write_command(Heal(timestamp=self._clock()))
        return ApiResult(True, {"message": "Heal command sent! Your Moltmon will recover soon."})

    def hatch(self, personality: str) -> ApiResult:
        state = self.store.read_state()
        if state is None: return ApiResult(False, error=PET_NOT_FOUND)
        if state.state != PetState.EGG:
            return ApiResult(False, error=f"Pet is not an egg. Current state: {state.state.value}")
        if not personality or not personality.strip():
            return ApiResult(False, error=f"A personality is required, e.g. {' or '.join(PERSONALITIES)}.")
        personality = personality.strip()
        creature_id = determine_creature(personality, self._rng)
        self.store.write_command(Hatch(timestamp=self._clock(), creature_id=creature_id, personality=personality))
        kind = "cat" if "cat" in creature_id else "dog"
        return ApiResult(True, {
            "message": f"Hatch command sent! A {kind} is hatching!",
            "creatureId": creature_id,
            "personality": personality,
        })

    # --- Queries ---
    def get_state(self) -> ApiResult:
        state = self.store.read_state()
        if state is None: return ApiResult(False, error=PET_NOT_FOUND)
        return ApiResult(True, state.to_dict())

    def get_history(self) -> ApiResult:
        return ApiResult(True, self.store.read_history().to_dict())

    def get_current_pet_summary(self) -> ApiResult:
        state = self.store.read_state()
        if state is None: return ApiResult(False, error=PET_NOT_FOUND)
        return ApiResult(True, PetSummary.from_state(state, self._clock()).to_dict())

    def get_formatted_state(self) -> ApiResult:
        state = self.store.read_state()
        if state is None: return ApiResult(False, error=PET_NOT_FOUND)
        current = state.state
        return ApiResult(True, {
            "state": current.value,
            "lastEvent": state.last_event.value if state.last_event else None,
            "timeSinceLastEventMs": self._clock() - state.last_event_time,
            "isHungry": current == PetState.HUNGRY,
            "isSick": current == PetState.SICK,
            "isDead": current == PetState.DEAD,
            "poopCount": state.poop_count,
            "needsFeeding": current == PetState.HUNGRY,
            "needsCleaning": state.poop_count > 0,
            "needsHealing": current == PetState.SICK,
            "petId": state.pet_id,
            "stats": state.stats.to_dict(),
        })
