from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING
import numpy as np

from .mesh import Polygon, Vertex
from .utils import normalize

if TYPE_CHECKING:  # pragma: no cover
    from .shading import Material


@dataclass(frozen=True, eq=False)
class Triangle:
    first: Vertex
    second: Vertex
    third: Vertex
    material: Optional["Material"] = None

    @property
    def vertices(self) -> Tuple[Vertex, Vertex, Vertex]:
        return (self.first, self.second, self.third)

    def normal(self) -> np.ndarray:
        return triangle_normal(self.first.position, self.second.position, self.third.position)


def triangle_normal(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> np.ndarray:
    return normalize(np.cross(np.subtract(b, a), np.subtract(c, a)))


def polygon_normal(points: Sequence[np.ndarray]) -> np.ndarray:
    """Newell's method; robust for slightly non-planar rings."""
    if len(points) < 3:
        return np.array([0.0, 1.0, 0.0])
    normal = np.zeros(3)
    for i, current in enumerate(points):
        nxt = points[(i + 1) % len(points)]
        normal[0] += (current[1] - nxt[1]) * (current[2] + nxt[2])
        normal[1] += (current[2] - nxt[2]) * (current[0] + nxt[0])
        normal[2] += (current[0] - nxt[0]) * (current[1] + nxt[1])
    if float(np.dot(normal, normal)) > 0.0:
        return normalize(normal)
    return triangle_normal(points[0], points[1], points[2])


def triangulate(polygon: Polygon) -> List[Triangle]:
    """Ear-clip ``polygon`` into triangles wound along the first vertex normal.

    A ring vertex is an ear when it is convex with respect to the reference
    normal and no other remaining vertex lies inside (or on) the candidate
    triangle. Containment is tested in 2-D after dropping the dominant axis of
    the reference normal, which for upward-facing polygons is the X/Z plane.
    When a full scan finds no ear the remainder is fanned from its centroid.
    """
    vertices = polygon.vertices
    material = polygon.material
    if len(vertices) < 3:
        return []
    if len(vertices) == 3:
        return [Triangle(vertices[0], vertices[1], vertices[2], material)]

    reference = vertices[0].normal
    axes = _projection_axes(reference)
    ring = list(vertices)
    result: List[Triangle] = []

    while len(ring) > 3:
        ear = _find_ear(ring, reference, axes)
        if ear is None:
            center = _centroid(ring)
            for i in range(len(ring)):
                nxt = ring[(i + 1) % len(ring)]
                result.append(_wound_triangle(center, ring[i], nxt, reference, material))
            return result

        n = len(ring)
        result.append(_wound_triangle(ring[(ear - 1) % n], ring[ear], ring[(ear + 1) % n], reference, material))
        del ring[ear]

    result.append(_wound_triangle(ring[0], ring[1], ring[2], reference, material))
    return result


def _find_ear(ring: List[Vertex], reference: np.ndarray, axes: Tuple[int, int]) -> Optional[int]:
    positions = [v.position for v in ring]
    n = len(positions)
    for curr in range(n):
        prev = (curr + n - 1) % n
        nxt = (curr + 1) % n
        a, b, c = positions[prev], positions[curr], positions[nxt]
        if not _is_convex(a, b, c, reference):
            continue
        blocked = False
        for i in range(n):
            if i in (prev, curr, nxt):
                continue
            if _point_in_triangle(positions[i], a, b, c, axes):
                blocked = True
                break
        if not blocked:
            return curr
    return None


def _is_convex(a: np.ndarray, b: np.ndarray, c: np.ndarray, reference: np.ndarray) -> bool:
    cross = np.cross(b - a, c - b)
    return float(np.dot(cross, reference)) > 0.0


def _projection_axes(normal: np.ndarray) -> Tuple[int, int]:
    dominant = int(np.argmax(np.abs(normal)))
    if dominant == 1:
        return (0, 2)
    if dominant == 2:
        return (0, 1)
    return (1, 2)


def _point_in_triangle(p: np.ndarray, a: np.ndarray, b: np.ndarray, c: np.ndarray, axes: Tuple[int, int]) -> bool:
    i, j = axes

    def sign(p1: np.ndarray, p2: np.ndarray, p3: np.ndarray) -> float:
        return (p1[i] - p3[i]) * (p2[j] - p3[j]) - (p2[i] - p3[i]) * (p1[j] - p3[j])

    d1 = sign(p, a, b)
    d2 = sign(p, b, c)
    d3 = sign(p, c, a)
    has_neg = d1 < 0 or d2 < 0 or d3 < 0
    has_pos = d1 > 0 or d2 > 0 or d3 > 0
    return not (has_neg and has_pos)


def _wound_triangle(a: Vertex, b: Vertex, c: Vertex, reference: np.ndarray, material) -> Triangle:
    normal = triangle_normal(a.position, b.position, c.position)
    if float(np.dot(normal, reference)) >= 0.0:
        return Triangle(a, b, c, material)
    return Triangle(a, c, b, material)


def _centroid(ring: List[Vertex]) -> Vertex:
    position = np.mean([v.position for v in ring], axis=0)
    uv = np.mean([v.uv for v in ring], axis=0)
    return Vertex(position, uv, ring[0].normal)
