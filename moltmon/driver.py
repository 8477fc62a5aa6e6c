import asyncio
import logging

from . import config
from .machine import PetStateMachine
from .models import PetState

logger = logging.getLogger(__name__)


class TickDriver:
    """Drives a state machine from a front end's frame loop.

    Besides ticking, the driver owns the second half of hatching: the pet
    stays in HATCHING long enough for the hatch animation, then becomes IDLE.
    """

    def __init__(self, machine: PetStateMachine, clock=None, hatch_duration_ms: int = config.HATCH_DURATION_MS):
        self.machine = machine
        self.hatch_duration_ms = hatch_duration_ms
        self._clock = clock or config.now_ms
        self._hatch_started_at = None
        self._pending_death = None
        machine.on_death(self._remember_death)

    def _remember_death(self, summary):
        self._pending_death = summary

    def step(self):
        self.machine.tick()
        if self.machine.get_state() == PetState.HATCHING:
            now = self._clock()
            if self._hatch_started_at is None:
                self._hatch_started_at = now
            elif now - self._hatch_started_at >= self.hatch_duration_ms:
                self.machine.complete_hatching()
                self._hatch_started_at = None
        else:
            self._hatch_started_at = None

    def take_death(self):
        summary, self._pending_death = self._pending_death, None
        return summary

    async def run(self, on_frame=None, on_death=None, interval: float = config.TICK_INTERVAL_SECONDS):
        while True:
            self.step()
            if on_frame: on_frame(self)
            summary = self.take_death()
            if summary is not None:
                if on_death: on_death(summary)
                await self.machine.rebirth()
                logger.info("Rebirth finished, now pet #%d", self.machine.get_pet_id())
            await asyncio.sleep(interval)
