from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Dict, List, Tuple

from pygame.math import Vector3

from ...config import SimulationConfig, validate_config
from ...rng import DeterministicRng, derive_stream_seed
from ..systems import appearance, kinematics, metrics as metrics_system
from ..systems.cadence import CollisionCadence
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotWorld
from ..utils.math3d import safe_normalize
from .agent import Agent, PlayerControls
from .collision import CollisionProbe
from .registry import FlockRegistry
from .terrain import Matrix4, TerrainMesh, planet_mesh

logger = logging.getLogger(__name__)

_SPAWN_RNG_SALT = 0x5B1A7E0F0C4E5EED
_PERSONALITY_RNG_SALT = 0x7BADCA11C0FFEE01


class World:
    def __init__(
        self,
        config: SimulationConfig,
        terrain: Tuple[TerrainMesh, Matrix4] | None = None,
    ):
        validate_config(config)
        self._config = config
        self._rng = DeterministicRng(config.seed)
        self._spawn_rng = DeterministicRng(derive_stream_seed(config.seed, _SPAWN_RNG_SALT))
        self._personality_rng = DeterministicRng(derive_stream_seed(config.seed, _PERSONALITY_RNG_SALT))
        self._registry = FlockRegistry(config.flock)
        self._probe: CollisionProbe | None = None
        if config.collision.enabled:
            mesh, transform = terrain if terrain is not None else planet_mesh(config.terrain)
            self._probe = CollisionProbe(mesh, transform)
        self._cadence = CollisionCadence(config.collision.interval, config.collision.batch_size)
        self._player: Agent | None = None
        self._autonomous: List[Agent] = []
        self._metrics: TickMetrics | None = None
        self._time = 0.0
        self._bootstrap_population()

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def registry(self) -> FlockRegistry:
        return self._registry

    @property
    def agents(self) -> Tuple[Agent, ...]:
        return self._registry.agents

    @property
    def player(self) -> Agent | None:
        return self._player

    @property
    def autonomous(self) -> Tuple[Agent, ...]:
        return tuple(self._autonomous)

    @property
    def probe(self) -> CollisionProbe | None:
        return self._probe

    @property
    def cadence(self) -> CollisionCadence:
        return self._cadence

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    @property
    def time(self) -> float:
        return self._time

    def reset(self) -> None:
        self._rng.reset()
        self._spawn_rng.reset()
        self._personality_rng.reset()
        self._registry = FlockRegistry(self._config.flock)
        self._cadence.reset()
        self._player = None
        self._autonomous = []
        self._metrics = None
        self._time = 0.0
        self._bootstrap_population()

    def spawn(self, position: Vector3, direction: Vector3, player: bool = False) -> Agent:
        config = self._config
        agent = self._registry.spawn(
            self._personality_rng,
            position,
            safe_normalize(direction),
            config.flight.base_speed,
            has_player_control=player,
            has_collision_avoidance=self._probe is not None,
        )
        if player:
            self._player = agent
        else:
            self._autonomous.append(agent)
        return agent

    def step(self, tick: int, controls: PlayerControls | None = None) -> TickMetrics:
        start = perf_counter()
        config = self._config
        dt = config.time_step

        self._registry.freeze()
        try:
            neighbors = self._registry.snapshot()
            for agent in self._registry.agents:
                kinematics.update_agent(
                    agent,
                    dt,
                    neighbors,
                    config.flight,
                    config.flock,
                    self._rng,
                    controls if agent.has_player_control else None,
                )
                appearance.update_wings(agent, config.appearance)

            refreshed = 0
            if self._probe is not None:
                refreshed = self._cadence.advance(dt, self._probe, self._autonomous, self._player)
        finally:
            self._registry.unfreeze()

        self._time += dt
        duration_ms = (perf_counter() - start) * 1000.0
        self._metrics = metrics_system.create_metrics(tick, self._registry.agents, refreshed, duration_ms)
        return self._metrics

    def snapshot(self, tick: int) -> Snapshot:
        config = self._config
        agents: List[Dict[str, Any]] = []
        for agent in self._registry.agents:
            hit = agent.collision_hit
            tile = appearance.texture_tile(agent, config.appearance)
            agents.append(
                {
                    "id": agent.id,
                    "x": agent.position.x,
                    "y": agent.position.y,
                    "z": agent.position.z,
                    "dx": agent.direction.x,
                    "dy": agent.direction.y,
                    "dz": agent.direction.z,
                    "roll": agent.roll_angle,
                    "altitude": agent.altitude,
                    "speed": agent.speed,
                    "player": agent.has_player_control,
                    "unique": agent.unique,
                    "wing_angle": appearance.wing_angle(agent, self._time, config.appearance),
                    "texture_tile": list(tile),
                    "braking": agent.brake_away is not None,
                    "hit": None
                    if hit is None
                    else {"nx": hit.normal.x, "ny": hit.normal.y, "nz": hit.normal.z, "distance": hit.distance},
                }
            )
        dt = config.time_step
        return Snapshot(
            tick=tick,
            metrics=self._metrics,
            agents=agents,
            world=SnapshotWorld(
                planet_radius=config.terrain.radius,
                min_altitude=config.flight.min_altitude,
                max_altitude=config.flight.max_altitude,
            ),
            metadata=SnapshotMetadata(
                sim_dt=dt,
                tick_rate=1.0 / dt if dt > 0 else 0.0,
                seed=config.seed,
                config_version=config.config_version,
            ),
        )

    def _bootstrap_population(self) -> None:
        config = self._config
        if config.player_enabled:
            position, direction = self._random_placement()
            self.spawn(position, direction, player=True)
        for _ in range(config.initial_population):
            position, direction = self._random_placement()
            self.spawn(position, direction)
        logger.info(
            "World bootstrapped: %d agents (player=%s, collision=%s, seed=%d)",
            len(self._registry),
            self._player is not None,
            self._probe is not None,
            config.seed,
        )

    def _random_placement(self) -> Tuple[Vector3, Vector3]:
        flight = self._config.flight
        rng = self._spawn_rng
        up = rng.next_unit_vector()
        altitude = rng.next_range(flight.min_altitude, flight.max_altitude)
        # any vector not parallel to `up` gives a tangent after projection
        seed_dir = rng.next_unit_vector()
        tangent = seed_dir - up * seed_dir.dot(up)
        if tangent.length_squared() < 1e-12:
            helper = Vector3(1.0, 0.0, 0.0) if abs(up.x) < 0.9 else Vector3(0.0, 1.0, 0.0)
            tangent = up.cross(helper)
        return up * altitude, safe_normalize(tangent)
