from __future__ import annotations

import math

from ...config import AppearanceConfig
from ..core.agent import Agent
from ..utils.math3d import clamp_value


def update_wings(agent: Agent, config: AppearanceConfig) -> None:
    """Ease the glide / flap-boost blends toward the agent's current vertical motion."""
    glide_target = 1.0 if agent.vertical_speed < -config.dive_speed_threshold else 0.0
    boost_target = 1.0 if agent.vertical_speed > config.climb_speed_threshold else 0.0
    keep = config.wing_smoothing
    agent.glide = clamp_value(keep * agent.glide + (1.0 - keep) * glide_target, 0.0, 1.0)
    agent.flap_boost = clamp_value(keep * agent.flap_boost + (1.0 - keep) * boost_target, 0.0, 1.0)


def wing_angle(agent: Agent, time: float, config: AppearanceConfig) -> float:
    phase = time + agent.wing_phase
    angle = math.cos(phase * config.flap_frequency) * config.flap_amplitude + config.flap_offset
    angle = angle * (1.0 - agent.glide) + agent.glide * config.glide_angle
    boosted = math.cos(phase * config.boost_frequency) * config.boost_amplitude
    return angle * (1.0 - agent.flap_boost) + agent.flap_boost * boosted


def texture_tile(agent: Agent, config: AppearanceConfig) -> tuple[int, int]:
    """Atlas cell for the agent's feathers; only unique agents leave the first tile."""
    if not agent.unique:
        return (0, 0)
    tiles = config.atlas_tiles
    index = min(int(agent.wing_phase * tiles * tiles), tiles * tiles - 1)
    return (index // tiles, index % tiles)
