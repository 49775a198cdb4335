from __future__ import annotations

import math
from typing import Sequence

from pygame.math import Vector3

from ...config import FlockConfig
from ..core.agent import Agent
from ..core.registry import NeighborView
from ..utils.math3d import blend_direction, clamp_value, safe_normalize


def desired_direction(agent: Agent, neighbors: Sequence[NeighborView], config: FlockConfig) -> Vector3:
    """
    Boid heading for `agent` against a snapshot of the population.

    Separation, alignment and cohesion are blended in that order, each one
    partially overriding the previous. Terrain avoidance runs last using the
    agent's (possibly stale) collision hit. An agent with no neighbour in range
    keeps its heading unchanged.
    """
    direction = Vector3(agent.direction)
    position = agent.position
    range_sq = config.flock_range * config.flock_range

    separation = Vector3()
    alignment = Vector3()
    cohesion = Vector3()
    count = 0

    for other in neighbors:
        if other.id == agent.id:
            continue
        offset = position - other.position
        dist_sq = offset.length_squared()
        if dist_sq > range_sq:
            continue
        count += 1
        if dist_sq > 0.0:
            distance = math.sqrt(dist_sq)
            push = 1.0 + config.minimum_separation_distance / distance
            separation = separation + (offset / distance) * push
        alignment = alignment + other.direction
        cohesion = cohesion + other.position

    if count == 0:
        return direction

    inv = 1.0 / count
    weights = agent.weights
    direction = blend_direction(direction, separation * inv, weights.separation)
    direction = blend_direction(direction, alignment * inv, weights.alignment)
    direction = blend_direction(direction, cohesion * inv - position, weights.cohesion)

    if agent.has_collision_avoidance:
        direction = avoid_terrain(agent, direction, config)
    return direction


def avoid_terrain(agent: Agent, direction: Vector3, config: FlockConfig) -> Vector3:
    hit = agent.collision_hit
    if hit is None or hit.distance >= config.avoidance_distance or hit.distance <= 0.0:
        return direction

    normal = hit.normal
    facing = direction.dot(normal)
    if abs(facing) > config.head_on_threshold:
        # head-on: slide sideways around the obstacle instead of bouncing back
        reflected = safe_normalize(agent.position.cross(normal))
    else:
        reflected = direction - normal * (2.0 * facing)

    strength = clamp_value(agent.weights.avoidance * config.avoidance_gain / hit.distance, 0.0, 1.0)
    return blend_direction(direction, reflected, strength)
