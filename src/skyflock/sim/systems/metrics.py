from __future__ import annotations

from typing import Sequence

from ..core.agent import Agent
from ..types.metrics import TickMetrics


def create_metrics(tick: int, agents: Sequence[Agent], collision_refreshes: int, duration_ms: float) -> TickMetrics:
    population = len(agents)
    altitude_sum = 0.0
    speed_sum = 0.0
    active_hits = 0
    braking = 0
    for agent in agents:
        altitude_sum += agent.position.length()
        speed_sum += agent.speed
        if agent.collision_hit is not None:
            active_hits += 1
        if agent.brake_away is not None:
            braking += 1
    return TickMetrics(
        tick=tick,
        population=population,
        average_altitude=altitude_sum / population if population else 0.0,
        average_speed=speed_sum / population if population else 0.0,
        collision_refreshes=collision_refreshes,
        active_hits=active_hits,
        braking=braking,
        tick_duration_ms=duration_ms,
    )
