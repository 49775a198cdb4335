from __future__ import annotations

import pytest
from pygame.math import Vector3

from skyflock.config import FlockConfig
from skyflock.rng import DeterministicRng
from skyflock.sim.core.agent import Agent
from skyflock.sim.core.registry import FlockRegistry


def _make_agent(agent_id: int, x: float = 0.0) -> Agent:
    return Agent(
        id=agent_id,
        position=Vector3(x, 0.0, 60.0),
        direction=Vector3(1.0, 0.0, 0.0),
        speed=20.0,
    )


def test_register_keeps_spawn_order():
    registry = FlockRegistry(FlockConfig())
    for agent_id in (3, 1, 2):
        registry.register(_make_agent(agent_id))
    assert [agent.id for agent in registry.agents] == [3, 1, 2]
    assert len(registry) == 3
    assert registry.next_id() == 4


def test_register_rejects_duplicates():
    registry = FlockRegistry(FlockConfig())
    registry.register(_make_agent(0))
    with pytest.raises(ValueError):
        registry.register(_make_agent(0))


def test_register_rejected_while_frozen():
    registry = FlockRegistry(FlockConfig())
    registry.freeze()
    with pytest.raises(RuntimeError):
        registry.register(_make_agent(0))
    registry.unfreeze()
    registry.register(_make_agent(0))
    assert len(registry) == 1


def test_snapshot_is_isolated_from_later_mutation():
    registry = FlockRegistry(FlockConfig())
    agent = _make_agent(0)
    registry.register(agent)
    snapshot = registry.snapshot()

    agent.position.x = 42.0
    agent.direction = Vector3(0.0, 1.0, 0.0)

    assert snapshot[0].position.x == 0.0
    assert snapshot[0].direction == Vector3(1.0, 0.0, 0.0)


def test_agents_tuple_cannot_grow_registry():
    registry = FlockRegistry(FlockConfig())
    registry.register(_make_agent(0))
    view = registry.agents
    assert isinstance(view, tuple)
    assert len(registry.agents) == 1


def test_personality_is_seeded_and_within_jitter():
    config = FlockConfig(unique_chance=0.0, weight_jitter=0.05)
    weights_a = [FlockRegistry(config).personalize(DeterministicRng(5)) for _ in range(2)]
    assert weights_a[0] == weights_a[1]

    registry = FlockRegistry(config)
    rng = DeterministicRng(11)
    for _ in range(50):
        weights, unique = registry.personalize(rng)
        assert not unique
        assert abs(weights.separation / config.separation_weight - 1.0) <= 0.05 + 1e-12
        assert abs(weights.alignment / config.alignment_weight - 1.0) <= 0.05 + 1e-12
        assert abs(weights.cohesion / config.cohesion_weight - 1.0) <= 0.05 + 1e-12


def test_unique_agents_use_wider_jitter():
    config = FlockConfig(unique_chance=1.0, weight_jitter=0.0, unique_weight_jitter=0.5)
    registry = FlockRegistry(config)
    rng = DeterministicRng(3)
    spread = []
    for _ in range(100):
        weights, unique = registry.personalize(rng)
        assert unique
        ratio = weights.cohesion / config.cohesion_weight
        assert 0.5 - 1e-12 <= ratio <= 1.5 + 1e-12
        spread.append(ratio)
    assert max(spread) - min(spread) > 0.2


def test_spawn_registers_and_copies_vectors():
    registry = FlockRegistry(FlockConfig())
    position = Vector3(0.0, 0.0, 60.0)
    agent = registry.spawn(DeterministicRng(1), position, Vector3(1.0, 0.0, 0.0), 20.0)
    position.z = 0.0
    assert registry.agents == (agent,)
    assert agent.position.z == 60.0
    assert 0.0 <= agent.wing_phase < 1.0
