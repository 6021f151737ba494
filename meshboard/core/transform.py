from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple
import math
import numpy as np

from .utils import normalize


def translation_matrix(x: float, y: float, z: float) -> np.ndarray:
    m = np.eye(4)
    m[:3, 3] = (x, y, z)
    return m


def scale_matrix(x: float, y: float, z: float) -> np.ndarray:
    return np.diag([float(x), float(y), float(z), 1.0])


def shear_matrix(xy: float = 0.0, xz: float = 0.0, yx: float = 0.0,
                 yz: float = 0.0, zx: float = 0.0, zy: float = 0.0) -> np.ndarray:
    """Shear with ``yx`` moving x by y, ``xy`` moving y by x, and so on."""
    return np.array([
        [1.0, yx, zx, 0.0],
        [xy, 1.0, zy, 0.0],
        [xz, yz, 1.0, 0.0],
        [0.0, 0.0, 0.0, 1.0],
    ])


def quaternion_conjugate(q: np.ndarray) -> np.ndarray:
    x, y, z, w = q
    return np.array([-x, -y, -z, w])


def rotation_matrix_from_quaternion(q: np.ndarray) -> np.ndarray:
    x, y, z, w = (float(c) for c in q)
    x2, y2, z2 = x + x, y + y, z + z
    xx, xy, xz = x * x2, x * y2, x * z2
    yy, yz, zz = y * y2, y * z2, z * z2
    wx, wy, wz = w * x2, w * y2, w * z2
    return np.array([
        [1.0 - (yy + zz), xy - wz, xz + wy, 0.0],
        [xy + wz, 1.0 - (xx + zz), yz - wx, 0.0],
        [xz - wy, yz + wx, 1.0 - (xx + yy), 0.0],
        [0.0, 0.0, 0.0, 1.0],
    ])


def look_along_quaternion(direction: np.ndarray, up: np.ndarray) -> np.ndarray:
    """Quaternion ``(x, y, z, w)`` of a view looking along ``direction``.

    Builds the orthonormal basis (left, up', dir) with ``dir = -direction``,
    ``left = up x dir`` and ``up' = dir x left``, then converts it with the
    trace-branching method so that the square root argument stays away from
    zero.
    """
    d = -normalize(direction)
    left = normalize(np.cross(up, d))
    upn = np.cross(d, left)

    tr = left[0] + upn[1] + d[2]
    if tr >= 0.0:
        t = math.sqrt(tr + 1.0)
        s = 0.5 / t
        return np.array([(d[1] - upn[2]) * s, (left[2] - d[0]) * s, (upn[0] - left[1]) * s, t * 0.5])
    if left[0] > upn[1] and left[0] > d[2]:
        t = math.sqrt(1.0 + left[0] - upn[1] - d[2])
        s = 0.5 / t
        return np.array([t * 0.5, (left[1] + upn[0]) * s, (d[0] + left[2]) * s, (d[1] - upn[2]) * s])
    if upn[1] > d[2]:
        t = math.sqrt(1.0 + upn[1] - left[0] - d[2])
        s = 0.5 / t
        return np.array([(left[1] + upn[0]) * s, t * 0.5, (upn[2] + d[1]) * s, (left[2] - d[0]) * s])
    t = math.sqrt(1.0 + d[2] - left[0] - upn[1])
    s = 0.5 / t
    return np.array([(d[0] + left[2]) * s, (upn[2] + d[1]) * s, t * 0.5, (upn[0] - left[1]) * s])


def _readonly(m: np.ndarray) -> np.ndarray:
    m.setflags(write=False)
    return m


# Maps the text display background onto the unit square.
UNIT_SQUARE = _readonly(translation_matrix(-0.1 + 0.5, -0.5 + 0.5, 0.0) @ scale_matrix(8.0, 4.0, 1.0))

_HALF = scale_matrix(0.5, 0.5, 0.5)

# Left, right and top quads that together cover the unit right triangle.
UNIT_PRIMITIVES: Tuple[np.ndarray, np.ndarray, np.ndarray] = (
    _readonly(_HALF @ UNIT_SQUARE),
    _readonly(_HALF @ translation_matrix(1.0, 0.0, 0.0) @ shear_matrix(yx=-1.0) @ UNIT_SQUARE),
    _readonly(_HALF @ translation_matrix(0.0, 1.0, 0.0) @ shear_matrix(xy=-1.0) @ UNIT_SQUARE),
)

PRIMITIVE_NAMES = ("left", "right", "top")


@dataclass(frozen=True, eq=False)
class TriangleTransform:
    transforms: Tuple[np.ndarray, np.ndarray, np.ndarray]
    transform: np.ndarray
    x_axis: np.ndarray
    y_axis: np.ndarray
    z_axis: np.ndarray
    rotation: np.ndarray
    width: float
    height: float
    shear: float

    @property
    def basis(self) -> np.ndarray:
        return np.column_stack([self.x_axis, self.y_axis, self.z_axis])

    @property
    def normal(self) -> np.ndarray:
        return self.z_axis


def solve_triangle_transform(p1: np.ndarray, p2: np.ndarray, p3: np.ndarray) -> TriangleTransform:
    """Affine map taking the unit right triangle (0,0), (1,0), (0,1) onto p1, p2, p3.

    The map is ``T(p1) @ R @ S(width, height, 1) @ Shear(yx=shear)`` where R
    rotates the world axes onto the triangle basis anchored on the p1->p2
    edge. The three returned transforms place the canonical left, right and
    top quads.
    """
    p1 = np.asarray(p1, dtype=np.float64)
    e2 = np.asarray(p2, dtype=np.float64) - p1
    e3 = np.asarray(p3, dtype=np.float64) - p1

    z_axis = normalize(np.cross(e2, e3))
    x_axis = normalize(e2)
    y_axis = normalize(np.cross(z_axis, x_axis))

    width = float(np.linalg.norm(e2))
    height = float(np.dot(e3, y_axis))
    shear = float(np.dot(e3, x_axis)) / width if width != 0.0 else 0.0

    rotation = quaternion_conjugate(look_along_quaternion(-z_axis, y_axis))

    transform = (
        translation_matrix(p1[0], p1[1], p1[2])
        @ rotation_matrix_from_quaternion(rotation)
        @ scale_matrix(width, height, 1.0)
        @ shear_matrix(yx=shear)
    )
    transforms = tuple(_readonly(transform @ unit) for unit in UNIT_PRIMITIVES)

    return TriangleTransform(
        transforms=transforms,  # type: ignore[arg-type]
        transform=_readonly(transform),
        x_axis=x_axis,
        y_axis=y_axis,
        z_axis=z_axis,
        rotation=rotation,
        width=width,
        height=height,
        shear=shear,
    )
