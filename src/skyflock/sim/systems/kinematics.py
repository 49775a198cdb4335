from __future__ import annotations

import logging
import math
from typing import Sequence

from pygame.math import Vector3

from ...config import FlightConfig, FlockConfig
from ...rng import DeterministicRng
from ..core.agent import Agent, BrakeAway, NO_CONTROLS, PlayerControls
from ..core.registry import NeighborView
from ..utils.math3d import (
    clamp_value,
    is_finite,
    lerp,
    rotate_about,
    safe_acos,
    safe_normalize,
    tangent_correction,
)
from . import flocking

logger = logging.getLogger(__name__)


def update_agent(
    agent: Agent,
    dt: float,
    neighbors: Sequence[NeighborView],
    flight: FlightConfig,
    flock: FlockConfig,
    rng: DeterministicRng,
    controls: PlayerControls | None = None,
) -> None:
    """Advance one agent by `dt` seconds on its current altitude shell."""
    if controls is None or not agent.has_player_control:
        controls = NO_CONTROLS

    gravity = safe_normalize(-agent.position)
    altitude = agent.position.length()
    old_direction = Vector3(agent.direction)

    agent.speed *= rng.next_range(1.0 - flight.speed_jitter, 1.0 + flight.speed_jitter)

    heading = _choose_heading(agent, dt, neighbors, flock, rng)

    velocity = heading * (agent.speed * dt)
    candidate = agent.position + velocity

    angle_to_gravity = safe_acos(velocity, gravity)
    if is_finite(angle_to_gravity):
        elevation = angle_to_gravity - math.pi / 2
        vertical_speed = math.sin(elevation) * agent.speed
    else:
        vertical_speed = 0.0
    new_altitude = altitude + vertical_speed * dt
    agent.vertical_speed = vertical_speed
    placed = safe_normalize(candidate)
    if placed.length_squared() > 0.0:
        agent.position = placed * new_altitude

    # measured on the unsteered velocity, applied after yaw and pitch
    correction_axis, correction_angle = tangent_correction(velocity, gravity)

    if agent.has_player_control:
        velocity = rotate_about(velocity, gravity, controls.turn_x * flight.yaw_rate * dt)

    roll_axis = gravity.cross(velocity)
    agent.smoothed_pitch = (
        flight.pitch_smoothing * agent.smoothed_pitch + (1.0 - flight.pitch_smoothing) * controls.turn_y
    )
    pitch = agent.smoothed_pitch
    if _altitude_guard_enabled(agent, flight):
        pitch = guard_altitude(pitch, altitude, flight)
    velocity = rotate_about(velocity, roll_axis, pitch * flight.pitch_rate * dt)

    velocity = rotate_about(velocity, correction_axis, correction_angle)

    turn_indicator = 0.0
    turn_angle = safe_acos(velocity, old_direction.cross(gravity))
    if is_finite(turn_angle):
        turn_indicator = clamp_value((turn_angle - math.pi / 2) * flight.turn_indicator_gain, -1.0, 1.0)

    new_direction = safe_normalize(velocity)
    if new_direction.length_squared() > 0.0:
        agent.direction = new_direction
    agent.roll_angle = (
        flight.roll_smoothing * agent.roll_angle
        + (1.0 - flight.roll_smoothing) * flight.max_roll_angle * turn_indicator
    )


def _choose_heading(
    agent: Agent,
    dt: float,
    neighbors: Sequence[NeighborView],
    flock: FlockConfig,
    rng: DeterministicRng,
) -> Vector3:
    if agent.has_player_control:
        return Vector3(agent.direction)

    heading = flocking.desired_direction(agent, neighbors, flock)

    brake = agent.brake_away
    if brake is not None:
        heading = apply_brake_away(brake, heading, dt)
        if brake.remaining <= 0.0:
            agent.brake_away = None
    elif rng.next_float() < flock.brake_chance * dt:
        angle = rng.next_range(0.0, math.pi)
        target = safe_normalize(rotate_about(agent.direction, agent.position, angle))
        if target.length_squared() > 0.0:
            agent.brake_away = BrakeAway(remaining=flock.brake_duration, duration=flock.brake_duration, target=target)
            logger.debug("Agent %d breaking away by %.3f rad", agent.id, angle)
    return heading


def apply_brake_away(brake: BrakeAway, heading: Vector3, dt: float) -> Vector3:
    brake.remaining -= dt
    if brake.duration > 0.0:
        brake.blend = min(1.0, (brake.duration - brake.remaining) / brake.duration)
    else:
        brake.blend = 1.0
    blended = safe_normalize(lerp(heading, brake.target, brake.blend))
    if blended.length_squared() == 0.0:
        return heading
    return blended


def _altitude_guard_enabled(agent: Agent, flight: FlightConfig) -> bool:
    if agent.has_collision_avoidance and not agent.has_player_control:
        return flight.altitude_guard_with_avoidance
    return flight.altitude_guard


def guard_altitude(pitch: float, altitude: float, flight: FlightConfig) -> float:
    """Blend pitch toward a full climb near the floor and a full dive near the ceiling."""
    boundary = flight.altitude_boundary
    if boundary <= 0.0:
        return pitch
    low_edge = flight.min_altitude + boundary
    high_edge = flight.max_altitude - boundary
    if altitude < low_edge:
        t = clamp_value((low_edge - altitude) / boundary, 0.0, 1.0)
        return pitch * (1.0 - t) + t
    if altitude > high_edge:
        t = clamp_value((altitude - high_edge) / boundary, 0.0, 1.0)
        return pitch * (1.0 - t) - t
    return pitch
