from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    population: int
    average_altitude: float
    average_speed: float
    collision_refreshes: int
    active_hits: int
    braking: int
    tick_duration_ms: float = 0.0
