"""Lifecycle state machine for a single pet.

The machine owns the live ``PetStateData`` of the ticking process. Every tick
it drains the shared command queue, evaluates the timers and writes the record
back, so whatever was last persisted is always a safe place to resume from.
"""
from __future__ import annotations

import asyncio
import logging
import random
from typing import Callable, Optional

from . import config
from .commands import Clean, Command, Feed, Hatch, Heal
from .models import CauseOfDeath, PetEvent, PetState, PetStateData, PetSummary
from .store import Store

logger = logging.getLogger(__name__)

EventListener = Callable[[PetEvent], None]
DeathListener = Callable[[PetSummary], None]

# States in which no timer runs
DORMANT_STATES = (PetState.DEAD, PetState.EGG, PetState.HATCHING)


def next_poop_time(now: int, timing: config.TimingConfig, rng=None) -> int:
    return now + config.random_between(timing.poop_min_delay_ms, timing.poop_max_delay_ms, rng)


def sickness_deadline(poop_count: int, now: int, timing: config.TimingConfig) -> int:
    return now + timing.sickness_threshold(poop_count)


class PetStateMachine:
    def __init__(self, state: Optional[PetStateData] = None, store: Optional[Store] = None,
                 timing: Optional[config.TimingConfig] = None, clock=None, rng=None):
        self._clock = clock or config.now_ms
        self._timing = timing
        self._rng = rng or random.Random()
        self.store = store or Store(owner=True)
        self._state = state if state is not None else PetStateData.fresh(1, self._clock())
        self._listeners: list[EventListener] = []
        self._death_listeners: list[DeathListener] = []
        self._rebirth_pending = False

    @property
    def timing(self) -> config.TimingConfig:
        return self._timing or config.get_config()

    @property
    def rebirth_pending(self) -> bool:
        return self._rebirth_pending

    # --- Tick ---
    def tick(self):
        if self._rebirth_pending: return
        self._process_commands()

        s = self._state
        if s.state in DORMANT_STATES:
            self.store.write_state(s)
            return

        now = self._clock()
        timing = self.timing

        # 1. Poop (only while content)
        if s.state == PetState.IDLE and s.next_poop_time is not None and now >= s.next_poop_time:
            self._poop(now)

        # 2. Uncleaned poop -> sickness
        if (s.poop_count > 0 and s.poop_sickness_deadline is not None
                and now >= s.poop_sickness_deadline
                and s.state in (PetState.IDLE, PetState.HUNGRY)):
            self._become_sick(now)

        # 3. Untreated sickness -> death
        if (s.state == PetState.SICK and s.sickness_start_time is not None
                and now - s.sickness_start_time >= timing.death_after_sick_ms):
            self._die(CauseOfDeath.UNTREATED_SICKNESS, now)

        # 4. Hunger
        if (s.state == PetState.IDLE and s.hunger_timer_start is not None
                and now - s.hunger_timer_start >= timing.hunger_interval_ms):
            self._become_hungry(now)

        # 5. Starvation
        if (s.state == PetState.HUNGRY and s.hungry_start_time is not None
                and now - s.hungry_start_time >= timing.starvation_death_ms):
            self._die(CauseOfDeath.STARVATION, now)

        problems = s.invariant_violations()
        if problems:
            logger.warning("Pet #%d record inconsistent after tick: %s", s.pet_id, "; ".join(problems))
        self.store.write_state(s)

    def _process_commands(self):
        commands, queued = self.store.read_command_queue()
        if not queued: return
        for cmd in commands:
            self.apply(cmd)
        self.store.clear_commands()

    def apply(self, cmd: Command):
        if isinstance(cmd, Feed): self.feed()
        elif isinstance(cmd, Clean): self.clean()
        elif isinstance(cmd, Heal): self.heal()
        elif isinstance(cmd, Hatch): self.hatch(cmd.creature_id, cmd.personality)
        else: logger.debug("Ignoring unsupported command %r", cmd)

    # --- Care actions ---
    def hatch(self, creature_id: str, personality: str):
        if self._state.state != PetState.EGG:
            logger.debug("Ignoring hatch while %s", self._state.state.value)
            return
        self._state.creature_id = creature_id
        self._state.stats.personality = personality
        self._transition(PetState.HATCHING, None)
        logger.info("Pet #%d is hatching as %s (%s)", self._state.pet_id, creature_id, personality)

    def complete_hatching(self):
        if self._state.state != PetState.HATCHING: return
        now = self._clock()
        self._transition(PetState.IDLE, PetEvent.HATCHED, now)
        self._start_hunger_timer(now)
        self._schedule_next_poop(now)

    def feed(self):
        s = self._state
        if s.state != PetState.HUNGRY:
            logger.debug("Ignoring feed while %s", s.state.value)
            return
        now = self._clock()
        s.last_fed_time = now
        s.hungry_start_time = None
        s.stats.times_fed += 1
        self._transition(PetState.IDLE, PetEvent.FED, now)
        self._start_hunger_timer(now)
        self._schedule_next_poop(now)

    def clean(self):
        s = self._state
        if s.poop_count <= 0:
            logger.debug("Ignoring clean, nothing to clean")
            return
        s.poop_count = 0
        s.poop_sickness_deadline = None
        s.stats.times_cleaned += 1
        self._record(PetEvent.CLEANED, self._clock())

    def heal(self):
        s = self._state
        if s.state != PetState.SICK:
            logger.debug("Ignoring heal while %s", s.state.value)
            return
        now = self._clock()
        s.sickness_start_time = None
        self._transition(PetState.IDLE, PetEvent.HEALED, now)
        self._start_hunger_timer(now)
        self._schedule_next_poop(now)

    # --- Timer-driven transitions ---
    def _poop(self, now: int):
        s = self._state
        s.poop_count += 1
        s.stats.times_pooped += 1
        deadline = sickness_deadline(s.poop_count, now, self.timing)
        if s.poop_sickness_deadline is None or deadline < s.poop_sickness_deadline:
            s.poop_sickness_deadline = deadline
        self._schedule_next_poop(now)
        self._record(PetEvent.POOPED, now)

    def _become_sick(self, now: int):
        s = self._state
        s.sickness_start_time = now
        s.stats.times_sick += 1
        # Sickness suspends both pooping and hunger
        s.next_poop_time = None
        s.hunger_timer_start = None
        s.hungry_start_time = None
        self._transition(PetState.SICK, PetEvent.BECAME_SICK, now)

    def _become_hungry(self, now: int):
        s = self._state
        s.hungry_start_time = now
        s.hunger_timer_start = None
        s.next_poop_time = None
        self._transition(PetState.HUNGRY, PetEvent.BECAME_HUNGRY, now)

    def _die(self, cause: CauseOfDeath, now: int):
        s = self._state
        s.state = PetState.DEAD
        s.stats.died_at = now
        s.stats.cause_of_death = cause
        s.clear_timers()
        summary = PetSummary.from_state(s, now, is_alive=False)
        self.store.update_current_pet_in_history(s, now)
        logger.info("Pet #%d died of %s", s.pet_id, cause.value)
        self._record(PetEvent.DIED, now)
        for listener in list(self._death_listeners):
            listener(summary)

    # --- Rebirth ---
    async def rebirth(self):
        if self._rebirth_pending: return
        if self._state.state != PetState.DEAD:
            logger.warning("Rebirth requested for living pet #%d; ignoring", self._state.pet_id)
            return
        self._rebirth_pending = True
        try:
            await asyncio.sleep(self.timing.rebirth_delay_ms / 1000)
            now = self._clock()
            fresh = PetStateData.fresh(self._state.pet_id + 1, now)
            self._state = fresh
            self.store.add_pet_to_history(PetSummary.from_state(fresh, now, is_alive=True))
            self.store.write_state(fresh)
        finally:
            self._rebirth_pending = False
        logger.info("Pet #%d was born", fresh.pet_id)
        self._emit(PetEvent.REBORN)

    # --- Helpers ---
    def _schedule_next_poop(self, now: int):
        self._state.next_poop_time = next_poop_time(now, self.timing, self._rng)

    def _start_hunger_timer(self, now: int):
        self._state.hunger_timer_start = now

    def _transition(self, new_state: PetState, event: Optional[PetEvent], now: Optional[int] = None):
        old = self._state.state
        self._state.state = new_state
        if old != new_state:
            logger.info("Pet #%d: %s -> %s", self._state.pet_id, old.value, new_state.value)
        if event is not None:
            self._record(event, now if now is not None else self._clock())

    def _record(self, event: PetEvent, now: int):
        self._state.last_event = event
        self._state.last_event_time = now
        self._emit(event)

    def _emit(self, event: PetEvent):
        for listener in list(self._listeners):
            listener(event)

    # --- Subscriptions ---
    def on_event(self, listener: EventListener):
        self._listeners.append(listener)

    def on_death(self, listener: DeathListener):
        self._death_listeners.append(listener)

    # --- Queries ---
    def get_state(self) -> PetState:
        return self._state.state

    def get_state_data(self) -> PetStateData:
        return self._state.copy()

    def get_poop_count(self) -> int:
        return self._state.poop_count

    def get_pet_id(self) -> int:
        return self._state.pet_id

    def get_creature_id(self) -> Optional[str]:
        return self._state.creature_id
