from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass(frozen=True)
class FlightConfig:
    base_speed: float = 20.0
    speed_jitter: float = 0.01
    yaw_rate: float = 1.2
    pitch_rate: float = 0.8
    pitch_smoothing: float = 0.9
    min_altitude: float = 55.0
    max_altitude: float = 90.0
    altitude_boundary: float = 5.0
    altitude_guard: bool = True
    # Agents steering around terrain historically flew without the altitude guard.
    altitude_guard_with_avoidance: bool = False
    max_roll_angle: float = 0.3
    roll_smoothing: float = 0.98
    turn_indicator_gain: float = 40.0


@dataclass(frozen=True)
class FlockConfig:
    flock_range: float = 40.0
    minimum_separation_distance: float = 10.0
    separation_weight: float = 0.22
    alignment_weight: float = 0.2
    cohesion_weight: float = 0.2
    avoidance_weight: float = 0.2
    avoidance_distance: float = 30.0
    avoidance_gain: float = 10.0
    head_on_threshold: float = 0.8
    brake_chance: float = 0.02
    brake_duration: float = 2.0
    unique_chance: float = 0.03
    weight_jitter: float = 0.05
    unique_weight_jitter: float = 0.5


@dataclass(frozen=True)
class CollisionConfig:
    enabled: bool = True
    interval: float = 0.05
    batch_size: int = 8


@dataclass(frozen=True)
class TerrainConfig:
    radius: float = 50.0
    subdivisions: int = 2
    center: tuple[float, float, float] = (0.0, 0.0, 0.0)


@dataclass(frozen=True)
class AppearanceConfig:
    flap_frequency: float = 5.0
    flap_amplitude: float = 0.2
    flap_offset: float = 0.1
    boost_frequency: float = 15.0
    boost_amplitude: float = 0.3
    glide_angle: float = -0.2
    wing_smoothing: float = 0.95
    dive_speed_threshold: float = 2.0
    climb_speed_threshold: float = 2.0
    atlas_tiles: int = 6


@dataclass(frozen=True)
class SimulationConfig:
    time_step: float = 1.0 / 60.0
    initial_population: int = 60
    player_enabled: bool = True
    seed: int = 42
    config_version: str = "v1"
    flight: FlightConfig = field(default_factory=FlightConfig)
    flock: FlockConfig = field(default_factory=FlockConfig)
    collision: CollisionConfig = field(default_factory=CollisionConfig)
    terrain: TerrainConfig = field(default_factory=TerrainConfig)
    appearance: AppearanceConfig = field(default_factory=AppearanceConfig)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)


def _triple(value: tuple[float, float, float] | list[float] | None, default: tuple[float, float, float]) -> tuple[float, float, float]:
    if isinstance(value, (tuple, list)) and len(value) == 3:
        return (float(value[0]), float(value[1]), float(value[2]))
    return default


def load_config(raw: dict) -> SimulationConfig:
    flight = FlightConfig(**raw.get("flight", {}))
    flock = FlockConfig(**raw.get("flock", {}))
    collision = CollisionConfig(**raw.get("collision", {}))
    terrain_raw = dict(raw.get("terrain", {}))
    center = _triple(terrain_raw.pop("center", None), TerrainConfig.center)
    terrain = TerrainConfig(center=center, **terrain_raw)
    appearance = AppearanceConfig(**raw.get("appearance", {}))
    sim_values = {
        k: v for k, v in raw.items() if k not in {"flight", "flock", "collision", "terrain", "appearance"}
    }
    config = SimulationConfig(
        flight=flight,
        flock=flock,
        collision=collision,
        terrain=terrain,
        appearance=appearance,
        **sim_values,
    )
    validate_config(config)
    return config


def validate_config(config: SimulationConfig) -> None:
    if config.time_step < 0.0:
        raise ValueError(f"time_step must be >= 0, got {config.time_step}")
    if config.initial_population < 0:
        raise ValueError(f"initial_population must be >= 0, got {config.initial_population}")
    flight = config.flight
    if flight.min_altitude > flight.max_altitude:
        raise ValueError(
            f"min_altitude ({flight.min_altitude}) must not exceed max_altitude ({flight.max_altitude})"
        )
    if config.collision.interval <= 0.0:
        raise ValueError(f"collision.interval must be > 0, got {config.collision.interval}")
    if config.collision.batch_size <= 0:
        raise ValueError(f"collision.batch_size must be > 0, got {config.collision.batch_size}")
    if config.terrain.subdivisions < 0:
        raise ValueError(f"terrain.subdivisions must be >= 0, got {config.terrain.subdivisions}")
