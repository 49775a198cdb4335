from __future__ import annotations

import logging
from typing import Sequence

from ..core.agent import Agent
from ..core.collision import CollisionProbe

logger = logging.getLogger(__name__)


class CollisionCadence:
    """
    Spreads collision probing over time.

    Every `interval` seconds of simulated time one cadence tick refreshes the
    player agent plus `batch_size` autonomous agents, starting at a cursor that
    rotates through the autonomous population.
    """

    def __init__(self, interval: float, batch_size: int) -> None:
        if interval <= 0.0:
            raise ValueError(f"interval must be > 0, got {interval}")
        if batch_size <= 0:
            raise ValueError(f"batch_size must be > 0, got {batch_size}")
        self._interval = interval
        self._batch_size = batch_size
        self._accumulator = 0.0
        self._cursor = 0

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def reset(self) -> None:
        self._accumulator = 0.0
        self._cursor = 0

    def advance(
        self,
        dt: float,
        probe: CollisionProbe,
        autonomous: Sequence[Agent],
        player: Agent | None = None,
    ) -> int:
        """Accumulate `dt` and run any cadence ticks that came due. Returns agents refreshed."""
        self._accumulator += dt
        refreshed = 0
        while self._accumulator >= self._interval:
            self._accumulator -= self._interval
            refreshed += self.run_batch(probe, autonomous, player)
        return refreshed

    def run_batch(self, probe: CollisionProbe, autonomous: Sequence[Agent], player: Agent | None = None) -> int:
        refreshed = 0
        if player is not None:
            refresh_hit(probe, player)
            refreshed += 1

        population = len(autonomous)
        if population == 0:
            self._cursor = 0
            return refreshed
        if self._cursor >= population:
            self._cursor = 0

        end = min(self._cursor + self._batch_size, population)
        for agent in autonomous[self._cursor:end]:
            refresh_hit(probe, agent)
            refreshed += 1

        self._cursor += self._batch_size
        if self._cursor >= population:
            self._cursor = 0
        logger.debug("Collision batch refreshed %d agents (next cursor %d)", refreshed, self._cursor)
        return refreshed


def refresh_hit(probe: CollisionProbe, agent: Agent) -> None:
    agent.collision_hit = probe.nearest_hit(agent.position, agent.direction)
