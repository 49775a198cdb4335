from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Tuple

from pygame.math import Vector3

from ...config import FlockConfig
from ...rng import DeterministicRng
from .agent import Agent, FlockWeights

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NeighborView:
    """Read-only copy of the agent state other agents steer against."""

    id: int
    position: Vector3
    direction: Vector3


class FlockRegistry:
    """Append-only, spawn-ordered set of live agents plus the shared flock tuning."""

    def __init__(self, config: FlockConfig) -> None:
        self._config = config
        self._agents: List[Agent] = []
        self._ids: set[int] = set()
        self._frozen = False
        self._next_id = 0

    @property
    def config(self) -> FlockConfig:
        return self._config

    @property
    def agents(self) -> Tuple[Agent, ...]:
        return tuple(self._agents)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __len__(self) -> int:
        return len(self._agents)

    def freeze(self) -> None:
        self._frozen = True

    def unfreeze(self) -> None:
        self._frozen = False

    def next_id(self) -> int:
        agent_id = self._next_id
        self._next_id += 1
        return agent_id

    def register(self, agent: Agent) -> None:
        if self._frozen:
            raise RuntimeError("cannot register agents while a tick is in progress")
        if agent.id in self._ids:
            raise ValueError(f"agent {agent.id} is already registered")
        self._agents.append(agent)
        self._ids.add(agent.id)
        self._next_id = max(self._next_id, agent.id + 1)

    def personalize(self, rng: DeterministicRng) -> tuple[FlockWeights, bool]:
        """Draw the fixed per-agent weights; unique agents jitter further from the defaults."""
        config = self._config
        unique = rng.next_float() < config.unique_chance
        jitter = config.unique_weight_jitter if unique else config.weight_jitter

        def _jittered(base: float) -> float:
            return base * (1.0 + rng.next_range(-jitter, jitter))

        weights = FlockWeights(
            separation=_jittered(config.separation_weight),
            alignment=_jittered(config.alignment_weight),
            cohesion=_jittered(config.cohesion_weight),
            avoidance=config.avoidance_weight,
        )
        return weights, unique

    def spawn(
        self,
        rng: DeterministicRng,
        position: Vector3,
        direction: Vector3,
        speed: float,
        has_player_control: bool = False,
        has_collision_avoidance: bool = True,
    ) -> Agent:
        weights, unique = self.personalize(rng)
        agent = Agent(
            id=self.next_id(),
            position=Vector3(position),
            direction=Vector3(direction),
            speed=speed,
            weights=weights,
            unique=unique,
            has_player_control=has_player_control,
            has_collision_avoidance=has_collision_avoidance,
            wing_phase=rng.next_float(),
        )
        self.register(agent)
        if unique:
            logger.debug("Spawned unique agent %d with weights %s", agent.id, weights)
        return agent

    def snapshot(self) -> Tuple[NeighborView, ...]:
        return tuple(
            NeighborView(id=agent.id, position=Vector3(agent.position), direction=Vector3(agent.direction))
            for agent in self._agents
        )
