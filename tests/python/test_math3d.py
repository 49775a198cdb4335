from __future__ import annotations

import math

from pygame.math import Vector3
from pytest import approx

from skyflock.sim.utils.math3d import (
    blend_direction,
    rotate_about,
    safe_acos,
    safe_normalize,
    tangent_correction,
)


def test_safe_normalize_returns_zero_for_zero_vector():
    assert safe_normalize(Vector3()) == Vector3()
    assert safe_normalize(Vector3(0.0, 3.0, 4.0)).length() == approx(1.0)


def test_safe_acos_is_nan_for_degenerate_input():
    assert math.isnan(safe_acos(Vector3(), Vector3(1.0, 0.0, 0.0)))
    assert safe_acos(Vector3(1.0, 0.0, 0.0), Vector3(0.0, 2.0, 0.0)) == approx(math.pi / 2)
    # round-off beyond [-1, 1] is clamped rather than raising
    assert safe_acos(Vector3(1.0, 1e-9, 0.0), Vector3(1.0, 0.0, 0.0)) == approx(0.0, abs=1e-6)


def test_rotate_about_skips_degenerate_axis_and_nan_angle():
    vector = Vector3(1.0, 2.0, 3.0)
    assert rotate_about(vector, Vector3(), 1.0) == vector
    assert rotate_about(vector, Vector3(0.0, 0.0, 1.0), math.nan) == vector
    rotated = rotate_about(Vector3(1.0, 0.0, 0.0), Vector3(0.0, 0.0, 1.0), math.pi / 2)
    assert rotated.x == approx(0.0, abs=1e-9)
    assert rotated.y == approx(1.0)


def test_rotate_about_accepts_short_but_nonzero_axis():
    rotated = rotate_about(Vector3(1.0, 0.0, 0.0), Vector3(0.0, 0.0, 1e-4), 0.1)
    assert rotated.x == approx(math.cos(0.1))
    assert rotated.y == approx(math.sin(0.1))
    assert rotated.z == approx(0.0, abs=1e-12)
    # below float round-off the axis has no direction left
    assert rotate_about(Vector3(1.0, 0.0, 0.0), Vector3(0.0, 0.0, 1e-12), 0.1) == Vector3(1.0, 0.0, 0.0)


def test_rotate_about_does_not_mutate_input():
    vector = Vector3(1.0, 0.0, 0.0)
    rotate_about(vector, Vector3(0.0, 0.0, 1.0), 0.5)
    assert vector == Vector3(1.0, 0.0, 0.0)


def test_tangent_correction_flattens_velocity_onto_tangent_plane():
    gravity = Vector3(0.0, 0.0, -1.0)
    velocity = Vector3(3.0, 0.0, 1.5)
    axis, angle = tangent_correction(velocity, gravity)
    assert angle == approx(math.atan2(1.5, 3.0))
    corrected = rotate_about(velocity, axis, angle)
    assert corrected.dot(gravity) == approx(0.0, abs=1e-9)
    assert corrected.length() == approx(velocity.length())
    assert corrected.x > 0.0


def test_tangent_correction_handles_downward_velocity():
    gravity = Vector3(0.0, 0.0, -1.0)
    velocity = Vector3(0.0, 0.0, -2.0)
    axis, angle = tangent_correction(velocity, gravity)
    assert math.isnan(angle)
    corrected = rotate_about(velocity, axis, angle)
    assert all(math.isfinite(c) for c in corrected)
    assert corrected == velocity


def test_blend_direction_ignores_zero_contribution():
    direction = Vector3(1.0, 0.0, 0.0)
    assert blend_direction(direction, Vector3(), 0.5) == direction
    blended = blend_direction(direction, Vector3(0.0, 5.0, 0.0), 0.5)
    assert blended.length() == approx(1.0)
    assert blended.x == approx(blended.y)


def test_tangent_correction_near_level_flight():
    gravity = Vector3(0.0, 0.0, -1.0)
    velocity = Vector3(3.0, 0.0, 1e-4)
    axis, angle = tangent_correction(velocity, gravity)
    assert 0.0 < axis.length() < 1e-3
    corrected = rotate_about(velocity, axis, angle)
    assert corrected.dot(gravity) == approx(0.0, abs=1e-6)
    assert corrected.length() == approx(velocity.length())

    level = Vector3(3.0, 0.0, 0.0)
    axis, angle = tangent_correction(level, gravity)
    assert rotate_about(level, axis, angle) == level
