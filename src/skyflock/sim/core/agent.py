from __future__ import annotations

from dataclasses import dataclass, field

from pygame.math import Vector3

from ..utils.math3d import clamp_value


@dataclass(frozen=True, slots=True)
class FlockWeights:
    separation: float = 0.22
    alignment: float = 0.2
    cohesion: float = 0.2
    avoidance: float = 0.2


@dataclass(frozen=True, slots=True)
class HitRecord:
    normal: Vector3
    distance: float


@dataclass(slots=True)
class BrakeAway:
    remaining: float
    duration: float
    target: Vector3
    blend: float = 0.0


@dataclass(frozen=True, slots=True)
class PlayerControls:
    turn_x: float = 0.0
    turn_y: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "turn_x", clamp_value(float(self.turn_x), -1.0, 1.0))
        object.__setattr__(self, "turn_y", clamp_value(float(self.turn_y), -1.0, 1.0))


NO_CONTROLS = PlayerControls()


@dataclass(slots=True)
class Agent:
    id: int
    position: Vector3
    direction: Vector3
    speed: float
    weights: FlockWeights = field(default_factory=FlockWeights)
    unique: bool = False
    has_player_control: bool = False
    has_collision_avoidance: bool = True
    roll_angle: float = 0.0
    smoothed_pitch: float = 0.0
    collision_hit: HitRecord | None = None
    brake_away: BrakeAway | None = None
    vertical_speed: float = 0.0
    wing_phase: float = 0.0
    glide: float = 0.0
    flap_boost: float = 0.0

    @property
    def altitude(self) -> float:
        return self.position.length()
