"""Tests for death followed by rebirth."""
from __future__ import annotations

import asyncio
from dataclasses import replace

from moltmon.machine import PetStateMachine
from moltmon.models import PetEvent, PetState


def starve(machine, clock, timing):
    s = machine._state
    s.state = PetState.HUNGRY
    s.hungry_start_time = clock() - timing.starvation_death_ms
    machine.tick()
    assert machine.get_state() == PetState.DEAD


def test_rebirth_creates_next_pet(make_machine, clock, timing, store):
    store.restore_or_create_state(clock())
    machine = make_machine(state=store.read_state(clock()))
    starve(machine, clock, timing)
    events = []
    machine.on_event(events.append)

    asyncio.run(machine.rebirth())

    data = machine.get_state_data()
    assert data.pet_id == 2
    assert data.state == PetState.EGG
    assert data.creature_id is None
    assert events == [PetEvent.REBORN]
    assert store.read_state(clock()) == data

    history = store.read_history()
    assert [(p.pet_id, p.is_alive) for p in history.pets] == [(1, False), (2, True)]
    assert history.current_pet_id == 2


def test_concurrent_rebirth_makes_one_pet(make_machine, clock, timing, store):
    machine = make_machine()
    starve(machine, clock, timing)

    async def twice():
        await asyncio.gather(machine.rebirth(), machine.rebirth())

    asyncio.run(twice())
    assert machine.get_pet_id() == 2
    assert [p.pet_id for p in store.read_history().pets] == [1, 2]


def test_rebirth_of_living_pet_is_ignored(make_machine, store):
    machine = make_machine()
    asyncio.run(machine.rebirth())
    assert machine.get_pet_id() == 1
    assert machine.get_state() == PetState.EGG
    assert not store.state_file.exists()


def test_rebirth_waits_for_delay_and_blocks_ticks(store, clock, timing):
    slow = replace(timing, rebirth_delay_ms=50)
    machine = PetStateMachine(store=store, timing=slow, clock=clock)
    starve(machine, clock, slow)
    observed = {}

    async def scenario():
        task = asyncio.ensure_future(machine.rebirth())
        await asyncio.sleep(0)
        observed["pending"] = machine.rebirth_pending
        machine.tick()
        observed["state_during"] = machine.get_state()
        await task

    asyncio.run(scenario())
    assert observed["pending"] is True
    assert observed["state_during"] == PetState.DEAD
    assert machine.rebirth_pending is False
    assert machine.get_state() == PetState.EGG


def test_ticks_during_rebirth_leave_queue_alone(store, clock, timing):
    from moltmon.commands import Feed

    slow = replace(timing, rebirth_delay_ms=50)
    machine = PetStateMachine(store=store, timing=slow, clock=clock)
    starve(machine, clock, slow)

    async def scenario():
        task = asyncio.ensure_future(machine.rebirth())
        await asyncio.sleep(0)
        store.write_command(Feed(timestamp=clock()))
        machine.tick()
        await task

    asyncio.run(scenario())
    assert len(store.read_commands()) == 1
