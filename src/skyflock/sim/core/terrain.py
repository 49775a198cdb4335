from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from ...config import TerrainConfig

Point = Tuple[float, float, float]
Triangle = Tuple[int, int, int]
Matrix4 = Tuple[Tuple[float, float, float, float], ...]

IDENTITY: Matrix4 = (
    (1.0, 0.0, 0.0, 0.0),
    (0.0, 1.0, 0.0, 0.0),
    (0.0, 0.0, 1.0, 0.0),
    (0.0, 0.0, 0.0, 1.0),
)


@dataclass(frozen=True)
class TerrainMesh:
    """Static triangle mesh; front faces wind clockwise seen from outside."""

    vertices: Tuple[Point, ...]
    triangles: Tuple[Triangle, ...]

    def __post_init__(self) -> None:
        count = len(self.vertices)
        for tri in self.triangles:
            if len(tri) != 3:
                raise ValueError(f"triangle {tri!r} does not have three indices")
            for index in tri:
                if not 0 <= index < count:
                    raise ValueError(f"triangle {tri!r} references vertex {index}, mesh has {count}")


def scale_translate(scale: float, offset: Sequence[float] = (0.0, 0.0, 0.0)) -> Matrix4:
    ox, oy, oz = offset
    return (
        (scale, 0.0, 0.0, ox),
        (0.0, scale, 0.0, oy),
        (0.0, 0.0, scale, oz),
        (0.0, 0.0, 0.0, 1.0),
    )


def transform_point(matrix: Matrix4, point: Sequence[float]) -> Point:
    x, y, z = point
    rx = matrix[0][0] * x + matrix[0][1] * y + matrix[0][2] * z + matrix[0][3]
    ry = matrix[1][0] * x + matrix[1][1] * y + matrix[1][2] * z + matrix[1][3]
    rz = matrix[2][0] * x + matrix[2][1] * y + matrix[2][2] * z + matrix[2][3]
    w = matrix[3][0] * x + matrix[3][1] * y + matrix[3][2] * z + matrix[3][3]
    if w != 1.0 and w != 0.0:
        return (rx / w, ry / w, rz / w)
    return (rx, ry, rz)


def _unit(point: Sequence[float]) -> Point:
    x, y, z = point
    length = math.sqrt(x * x + y * y + z * z)
    return (x / length, y / length, z / length)


def _faces_outward(vertices: List[Point], tri: Triangle) -> Triangle:
    a, b, c = (vertices[i] for i in tri)
    e1 = (b[0] - a[0], b[1] - a[1], b[2] - a[2])
    e2 = (c[0] - a[0], c[1] - a[1], c[2] - a[2])
    nx = e2[1] * e1[2] - e2[2] * e1[1]
    ny = e2[2] * e1[0] - e2[0] * e1[2]
    nz = e2[0] * e1[1] - e2[1] * e1[0]
    cx = a[0] + b[0] + c[0]
    cy = a[1] + b[1] + c[1]
    cz = a[2] + b[2] + c[2]
    if nx * cx + ny * cy + nz * cz < 0.0:
        return (tri[0], tri[2], tri[1])
    return tri


def icosphere(subdivisions: int = 2) -> TerrainMesh:
    t = (1.0 + math.sqrt(5.0)) / 2.0
    vertices: List[Point] = [
        _unit(p)
        for p in (
            (-1, t, 0), (1, t, 0), (-1, -t, 0), (1, -t, 0),
            (0, -1, t), (0, 1, t), (0, -1, -t), (0, 1, -t),
            (t, 0, -1), (t, 0, 1), (-t, 0, -1), (-t, 0, 1),
        )
    ]
    faces: List[Triangle] = [
        (0, 11, 5), (0, 5, 1), (0, 1, 7), (0, 7, 10), (0, 10, 11),
        (1, 5, 9), (5, 11, 4), (11, 10, 2), (10, 7, 6), (7, 1, 8),
        (3, 9, 4), (3, 4, 2), (3, 2, 6), (3, 6, 8), (3, 8, 9),
        (4, 9, 5), (2, 4, 11), (6, 2, 10), (8, 6, 7), (9, 8, 1),
    ]

    for _ in range(max(0, subdivisions)):
        midpoints: Dict[Tuple[int, int], int] = {}

        def midpoint(i: int, j: int) -> int:
            key = (i, j) if i < j else (j, i)
            index = midpoints.get(key)
            if index is None:
                a = vertices[i]
                b = vertices[j]
                vertices.append(_unit(((a[0] + b[0]) / 2, (a[1] + b[1]) / 2, (a[2] + b[2]) / 2)))
                index = len(vertices) - 1
                midpoints[key] = index
            return index

        refined: List[Triangle] = []
        for a, b, c in faces:
            ab = midpoint(a, b)
            bc = midpoint(b, c)
            ca = midpoint(c, a)
            refined.extend([(a, ab, ca), (b, bc, ab), (c, ca, bc), (ab, bc, ca)])
        faces = refined

    faces = [_faces_outward(vertices, tri) for tri in faces]
    return TerrainMesh(vertices=tuple(vertices), triangles=tuple(faces))


def planet_mesh(config: TerrainConfig) -> tuple[TerrainMesh, Matrix4]:
    """Unit icosphere plus the transform placing it at the configured radius and centre."""
    return icosphere(config.subdivisions), scale_translate(config.radius, config.center)
