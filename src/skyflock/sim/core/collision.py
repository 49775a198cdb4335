from __future__ import annotations

import logging
import math
from typing import List, Tuple

from pygame.math import Vector3

from .agent import HitRecord
from .terrain import IDENTITY, Matrix4, TerrainMesh, transform_point

logger = logging.getLogger(__name__)

EPSILON = 1e-7

# v0, edge1, edge2, outward normal
_PreparedTriangle = Tuple[
    Tuple[float, float, float],
    Tuple[float, float, float],
    Tuple[float, float, float],
    Tuple[float, float, float],
]


class CollisionProbe:
    """
    Nearest ray hit against a static triangle mesh (Möller–Trumbore).

    The mesh is transformed into world space once at construction. Each query
    walks every triangle, so callers are expected to batch queries sparsely.
    """

    def __init__(self, mesh: TerrainMesh, transform: Matrix4 = IDENTITY) -> None:
        world_vertices = [transform_point(transform, vertex) for vertex in mesh.vertices]
        self._triangles: List[_PreparedTriangle] = []
        skipped = 0
        for i0, i1, i2 in mesh.triangles:
            v0 = world_vertices[i0]
            v1 = world_vertices[i1]
            v2 = world_vertices[i2]
            e1 = (v1[0] - v0[0], v1[1] - v0[1], v1[2] - v0[2])
            e2 = (v2[0] - v0[0], v2[1] - v0[1], v2[2] - v0[2])
            # outward normal = edge2 x edge1 (front faces wind clockwise)
            nx = e2[1] * e1[2] - e2[2] * e1[1]
            ny = e2[2] * e1[0] - e2[0] * e1[2]
            nz = e2[0] * e1[1] - e2[1] * e1[0]
            length = math.sqrt(nx * nx + ny * ny + nz * nz)
            if length < EPSILON:
                skipped += 1
                continue
            self._triangles.append((v0, e1, e2, (nx / length, ny / length, nz / length)))
        logger.info(
            "CollisionProbe ready (%d triangles, %d degenerate skipped)", len(self._triangles), skipped
        )

    @property
    def triangle_count(self) -> int:
        return len(self._triangles)

    def nearest_hit(self, origin: Vector3, direction: Vector3) -> HitRecord | None:
        ox, oy, oz = origin.x, origin.y, origin.z
        dx, dy, dz = direction.x, direction.y, direction.z
        closest = math.inf
        closest_normal: Tuple[float, float, float] | None = None

        for v0, e1, e2, normal in self._triangles:
            # h = direction x edge2
            hx = dy * e2[2] - dz * e2[1]
            hy = dz * e2[0] - dx * e2[2]
            hz = dx * e2[1] - dy * e2[0]
            a = e1[0] * hx + e1[1] * hy + e1[2] * hz
            if -EPSILON < a < EPSILON:
                # parallel to the triangle plane
                continue

            f = 1.0 / a
            sx = ox - v0[0]
            sy = oy - v0[1]
            sz = oz - v0[2]
            u = f * (sx * hx + sy * hy + sz * hz)
            if u < 0.0 or u > 1.0:
                continue

            # q = s x edge1
            qx = sy * e1[2] - sz * e1[1]
            qy = sz * e1[0] - sx * e1[2]
            qz = sx * e1[1] - sy * e1[0]
            v = f * (dx * qx + dy * qy + dz * qz)
            if v < 0.0 or u + v > 1.0:
                continue

            t = f * (e2[0] * qx + e2[1] * qy + e2[2] * qz)
            if t <= EPSILON:
                continue

            if normal[0] * dx + normal[1] * dy + normal[2] * dz > 0.0:
                # back face
                continue

            if t < closest:
                closest = t
                closest_normal = normal

        if closest_normal is None:
            return None
        return HitRecord(normal=Vector3(closest_normal), distance=closest)
