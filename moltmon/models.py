"""Pet records as they live in memory and in the shared JSON files.

Attributes are snake_case; ``to_dict``/``from_dict`` speak the camelCase
documents every front end reads. Timestamps are epoch milliseconds.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class PetState(str, Enum):
    EGG = "EGG"
    HATCHING = "HATCHING"
    IDLE = "IDLE"
    HUNGRY = "HUNGRY"
    SICK = "SICK"
    DEAD = "DEAD"


class PetEvent(str, Enum):
    HATCHED = "HATCHED"
    BECAME_HUNGRY = "BECAME_HUNGRY"
    FED = "FED"
    POOPED = "POOPED"
    CLEANED = "CLEANED"
    BECAME_SICK = "BECAME_SICK"
    HEALED = "HEALED"
    DIED = "DIED"
    REBORN = "REBORN"


class CauseOfDeath(str, Enum):
    STARVATION = "STARVATION"
    UNTREATED_SICKNESS = "UNTREATED_SICKNESS"


def _enum_or_none(enum_cls, value):
    return enum_cls(value) if value is not None else None


@dataclass
class PetStats:
    born_at: int
    times_fed: int = 0
    times_sick: int = 0
    times_pooped: int = 0
    times_cleaned: int = 0
    died_at: Optional[int] = None
    cause_of_death: Optional[CauseOfDeath] = None
    personality: Optional[str] = None

    def to_dict(self):
        return {
            "timesFed": self.times_fed,
            "timesSick": self.times_sick,
            "timesPooped": self.times_pooped,
            "timesCleaned": self.times_cleaned,
            "bornAt": self.born_at,
            "diedAt": self.died_at,
            "causeOfDeath": self.cause_of_death.value if self.cause_of_death else None,
            "personality": self.personality,
        }

    @classmethod
    def from_dict(cls, data, default_born_at: int):
        return cls(
            born_at=data.get("bornAt") or default_born_at,
            times_fed=data.get("timesFed", 0),
            times_sick=data.get("timesSick", 0),
            times_pooped=data.get("timesPooped", 0),
            times_cleaned=data.get("timesCleaned", 0),
            died_at=data.get("diedAt"),
            cause_of_death=_enum_or_none(CauseOfDeath, data.get("causeOfDeath")),
            personality=data.get("personality"),
        )


@dataclass
class PetStateData:
    pet_id: int
    stats: PetStats
    created_at: int
    last_event_time: int
    state: PetState = PetState.EGG
    last_event: Optional[PetEvent] = None
    creature_id: Optional[str] = None
    poop_count: int = 0
    hunger_timer_start: Optional[int] = None
    hungry_start_time: Optional[int] = None
    next_poop_time: Optional[int] = None
    sickness_start_time: Optional[int] = None
    poop_sickness_deadline: Optional[int] = None
    last_fed_time: Optional[int] = None

    @classmethod
    def fresh(cls, pet_id: int, now: int) -> PetStateData:
        return cls(pet_id=pet_id, stats=PetStats(born_at=now), created_at=now, last_event_time=now)

    def is_alive(self) -> bool:
        return self.state != PetState.DEAD

    def clear_timers(self):
        self.hunger_timer_start = None
        self.hungry_start_time = None
        self.next_poop_time = None
        self.sickness_start_time = None
        self.poop_sickness_deadline = None

    def invariant_violations(self) -> list[str]:
        problems = []
        if self.hunger_timer_start is not None and self.hungry_start_time is not None:
            problems.append("hunger timer and hungry start are both set")
        if self.next_poop_time is not None and self.state != PetState.IDLE:
            problems.append(f"poop scheduled while {self.state.value}")
        if self.sickness_start_time is not None and self.state != PetState.SICK:
            problems.append(f"sickness start set while {self.state.value}")
        if self.poop_count < 0:
            problems.append("negative poop count")
        if self.state == PetState.DEAD and any(
            t is not None
            for t in (self.hunger_timer_start, self.hungry_start_time, self.next_poop_time,
                      self.sickness_start_time, self.poop_sickness_deadline)
        ):
            problems.append("timer still running on a dead pet")
        return problems

    def copy(self) -> PetStateData:
        return copy.deepcopy(self)

    def to_dict(self):
        return {
            "state": self.state.value,
            "lastEvent": self.last_event.value if self.last_event else None,
            "lastEventTime": self.last_event_time,
            "hungerTimerStart": self.hunger_timer_start,
            "lastFedTime": self.last_fed_time,
            "createdAt": self.created_at,
            "poopCount": self.poop_count,
            "nextPoopTime": self.next_poop_time,
            "sicknessStartTime": self.sickness_start_time,
            "poopSicknessDeadline": self.poop_sickness_deadline,
            "hungryStartTime": self.hungry_start_time,
            "petId": self.pet_id,
            "stats": self.stats.to_dict(),
            "creatureId": self.creature_id,
        }

    @classmethod
    def from_dict(cls, data, now: int) -> PetStateData:
        if not isinstance(data, dict):
            raise TypeError(f"state document must be an object, got {type(data).__name__}")
        created_at = data.get("createdAt") or now
        return cls(
            pet_id=data.get("petId", 1),
            stats=PetStats.from_dict(data.get("stats") or {}, default_born_at=created_at),
            created_at=created_at,
            last_event_time=data.get("lastEventTime") or now,
            state=PetState(data.get("state") or PetState.EGG.value),
            last_event=_enum_or_none(PetEvent, data.get("lastEvent")),
            creature_id=data.get("creatureId"),
            poop_count=data.get("poopCount", 0),
            hunger_timer_start=data.get("hungerTimerStart"),
            hungry_start_time=data.get("hungryStartTime"),
            next_poop_time=data.get("nextPoopTime"),
            sickness_start_time=data.get("sicknessStartTime"),
            poop_sickness_deadline=data.get("poopSicknessDeadline"),
            last_fed_time=data.get("lastFedTime"),
        )


def is_legacy_state(doc) -> bool:
    # Saves from before pet identity and stats existed
    return "petId" not in doc or "stats" not in doc


def migrate_state(doc, now: int) -> PetStateData:
    # Legacy pets were the only pet, so they become pet #1 born at creation.
    return PetStateData.from_dict(doc, now)


@dataclass(frozen=True)
class PetSummary:
    pet_id: int
    born_at: int
    died_at: Optional[int]
    survival_time_ms: int
    stats: PetStats
    is_alive: bool

    @classmethod
    def from_state(cls, data: PetStateData, now: int, is_alive: Optional[bool] = None) -> PetSummary:
        stats = copy.deepcopy(data.stats)
        if is_alive is None:
            is_alive = data.is_alive()
        if stats.died_at is not None:
            survival = stats.died_at - stats.born_at
        else:
            survival = max(0, now - stats.born_at)
        return cls(
            pet_id=data.pet_id,
            born_at=stats.born_at,
            died_at=stats.died_at,
            survival_time_ms=survival,
            stats=stats,
            is_alive=is_alive,
        )

    def to_dict(self):
        return {
            "petId": self.pet_id,
            "bornAt": self.born_at,
            "diedAt": self.died_at,
            "survivalTimeMs": self.survival_time_ms,
            "stats": self.stats.to_dict(),
            "isAlive": self.is_alive,
        }

    @classmethod
    def from_dict(cls, data) -> PetSummary:
        born_at = data["bornAt"]
        return cls(
            pet_id=data["petId"],
            born_at=born_at,
            died_at=data.get("diedAt"),
            survival_time_ms=data.get("survivalTimeMs", 0),
            stats=PetStats.from_dict(data.get("stats") or {}, default_born_at=born_at),
            is_alive=data.get("isAlive", data.get("diedAt") is None),
        )


@dataclass
class HistoryData:
    pets: list[PetSummary] = field(default_factory=list)
    current_pet_id: int = 0

    def find(self, pet_id: int) -> Optional[PetSummary]:
        for summary in self.pets:
            if summary.pet_id == pet_id: return summary
        return None

    def upsert(self, summary: PetSummary):
        for i, existing in enumerate(self.pets):
            if existing.pet_id == summary.pet_id:
                self.pets[i] = summary
                break
        else:
            self.pets.append(summary)
        self.current_pet_id = max(self.current_pet_id, summary.pet_id)

    def to_dict(self):
        return {"pets": [p.to_dict() for p in self.pets], "currentPetId": self.current_pet_id}

    @classmethod
    def from_dict(cls, data) -> HistoryData:
        if not isinstance(data, dict):
            raise TypeError(f"history document must be an object, got {type(data).__name__}")
        return cls(
            pets=[PetSummary.from_dict(p) for p in data.get("pets", [])],
            current_pet_id=data.get("currentPetId", 0),
        )
