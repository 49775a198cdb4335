from __future__ import annotations

import math

from pygame.math import Vector3

_EPSILON_SQ = 1e-18


def is_finite(value: float) -> bool:
    return not (math.isnan(value) or math.isinf(value))


def safe_normalize(vector: Vector3) -> Vector3:
    magnitude_sq = vector.length_squared()
    if magnitude_sq < _EPSILON_SQ or not is_finite(magnitude_sq):
        return Vector3()
    inv = 1.0 / math.sqrt(magnitude_sq)
    return Vector3(vector.x * inv, vector.y * inv, vector.z * inv)


def safe_acos(a: Vector3, b: Vector3) -> float:
    """Angle between two vectors, NaN when either one has no length."""
    a_hat = safe_normalize(a)
    b_hat = safe_normalize(b)
    if a_hat.length_squared() == 0.0 or b_hat.length_squared() == 0.0:
        return math.nan
    return math.acos(clamp_value(a_hat.dot(b_hat), -1.0, 1.0))


def rotate_about(vector: Vector3, axis: Vector3, angle: float) -> Vector3:
    if not is_finite(angle) or angle == 0.0:
        return Vector3(vector)
    # rotate_rad raises for axes shorter than pygame's epsilon
    unit_axis = safe_normalize(axis)
    if unit_axis.length_squared() == 0.0:
        return Vector3(vector)
    return vector.rotate_rad(angle, unit_axis)


def tangent_correction(velocity: Vector3, gravity: Vector3) -> tuple[Vector3, float]:
    """
    Axis and angle that rotate `velocity` onto the plane perpendicular to `gravity`.

    The angle is NaN when the correction is undefined (zero velocity, or velocity
    parallel to gravity); `rotate_about` treats that as a no-op.
    """
    from_dir = velocity.cross(gravity.cross(velocity))
    axis = from_dir.cross(gravity)
    angle = safe_acos(from_dir, gravity)
    # acos is bounded by pi, so a single subtraction resolves the sign
    if is_finite(angle) and angle > math.pi / 2:
        angle -= math.pi
    return axis, angle



def lerp(a: Vector3, b: Vector3, t: float) -> Vector3:
    return Vector3(a.x + (b.x - a.x) * t, a.y + (b.y - a.y) * t, a.z + (b.z - a.z) * t)


def blend_direction(direction: Vector3, contribution: Vector3, weight: float) -> Vector3:
    """normalize(normalize(contribution) * w + direction * (1 - w)), skipped for a zero contribution."""
    target = safe_normalize(contribution)
    if target.length_squared() == 0.0:
        return Vector3(direction)
    blended = safe_normalize(target * weight + direction * (1.0 - weight))
    if blended.length_squared() == 0.0:
        return Vector3(direction)
    return blended


def clamp_value(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(max_value, value))
