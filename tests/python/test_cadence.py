from __future__ import annotations

import math

import pytest
from pygame.math import Vector3

from skyflock.sim.core.agent import Agent, HitRecord
from skyflock.sim.systems.cadence import CollisionCadence


class CountingProbe:
    def __init__(self) -> None:
        self.calls: list[Vector3] = []

    def nearest_hit(self, origin: Vector3, direction: Vector3) -> HitRecord | None:
        self.calls.append(Vector3(origin))
        return HitRecord(normal=Vector3(0.0, 0.0, 1.0), distance=origin.length())


def _population(count: int, start_id: int = 0) -> list[Agent]:
    return [
        Agent(
            id=start_id + i,
            position=Vector3(float(i + 1), 0.0, 60.0),
            direction=Vector3(1.0, 0.0, 0.0),
            speed=20.0,
        )
        for i in range(count)
    ]


@pytest.mark.parametrize("population, batch_size", [(10, 3), (9, 3), (4, 8), (1, 1)])
def test_every_agent_refreshed_after_one_rotation(population, batch_size):
    agents = _population(population)
    cadence = CollisionCadence(interval=0.05, batch_size=batch_size)
    probe = CountingProbe()

    for _ in range(math.ceil(population / batch_size)):
        cadence.run_batch(probe, agents)

    assert all(agent.collision_hit is not None for agent in agents)
    assert cadence.cursor == 0
    assert len(probe.calls) == population


def test_player_refreshed_every_cadence_tick():
    agents = _population(6)
    player = _population(1, start_id=100)[0]
    player.position = Vector3(0.0, 0.0, 99.0)
    cadence = CollisionCadence(interval=0.05, batch_size=2)
    probe = CountingProbe()

    refreshed = [cadence.run_batch(probe, agents, player) for _ in range(3)]

    assert refreshed == [3, 3, 3]
    assert player.collision_hit is not None
    assert sum(1 for origin in probe.calls if origin == player.position) == 3


def test_advance_runs_batches_on_interval():
    agents = _population(4)
    cadence = CollisionCadence(interval=0.05, batch_size=2)
    probe = CountingProbe()

    assert cadence.advance(0.025, probe, agents) == 0
    assert cadence.advance(0.025, probe, agents) == 2
    assert cadence.cursor == 2
    # one large step can owe several cadence ticks
    assert cadence.advance(0.1, probe, agents) == 4
    assert cadence.cursor == 2


def test_hits_are_stale_between_refreshes():
    agents = _population(4)
    cadence = CollisionCadence(interval=0.05, batch_size=2)
    probe = CountingProbe()
    cadence.run_batch(probe, agents)
    assert agents[0].collision_hit is not None
    assert agents[2].collision_hit is None


def test_empty_population_keeps_cursor_at_zero():
    cadence = CollisionCadence(interval=0.05, batch_size=4)
    assert cadence.run_batch(CountingProbe(), []) == 0
    assert cadence.cursor == 0


@pytest.mark.parametrize("interval, batch_size", [(0.0, 1), (-1.0, 1), (0.05, 0)])
def test_invalid_cadence_rejected(interval, batch_size):
    with pytest.raises(ValueError):
        CollisionCadence(interval=interval, batch_size=batch_size)
