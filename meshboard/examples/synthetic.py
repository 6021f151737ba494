from __future__ import annotations

from pathlib import Path
from typing import List, Sequence, Tuple

import numpy as np

from ..core.mesh import FaceIndex, Mesh
from ..core.objfile import write_obj
from ..core.triangulate import polygon_normal

_QUAD_UVS = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])


def _polygon_mesh(vertices: np.ndarray, polygons: Sequence[Sequence[int]], uvs: np.ndarray | None = None) -> Mesh:
    """Mesh with one flat normal per polygon and, for quads, corner UVs."""
    normals: List[np.ndarray] = []
    faces: List[FaceIndex] = []
    for poly in polygons:
        normals.append(polygon_normal([vertices[i] for i in poly]))
        n_idx = tuple([len(normals) - 1] * len(poly))
        uv_idx: Tuple[int, ...] = ()
        if uvs is not None and len(poly) == 4:
            uv_idx = (0, 1, 2, 3)
        faces.append(FaceIndex(vertex=tuple(poly), uv=uv_idx, normal=n_idx))
    return Mesh(
        positions=vertices,
        uvs=uvs if uvs is not None else np.zeros((0, 2)),
        normals=np.asarray(normals),
        faces=faces,
    )


def _square(size: float) -> Mesh:
    vertices = np.array([
        [0.0, 0.0, 0.0],
        [size, 0.0, 0.0],
        [size, size, 0.0],
        [0.0, size, 0.0],
    ])
    return _polygon_mesh(vertices, [(0, 1, 2, 3)], _QUAD_UVS)


def _cube(size: float) -> Mesh:
    h = size / 2.0
    vertices = np.array([
        [-h, -h, -h],
        [h, -h, -h],
        [h, h, -h],
        [-h, h, -h],
        [-h, -h, h],
        [h, -h, h],
        [h, h, h],
        [-h, h, h],
    ])
    polygons = [
        (0, 3, 2, 1),  # bottom
        (4, 5, 6, 7),  # top
        (0, 1, 5, 4),  # front
        (1, 2, 6, 5),  # right
        (2, 3, 7, 6),  # back
        (3, 0, 4, 7),  # left
    ]
    return _polygon_mesh(vertices, polygons, _QUAD_UVS)


def _l_shape(size: float) -> Mesh:
    # Concave floor plan in the X/Z plane, facing +Y.
    s = size / 2.0
    vertices = np.array([
        [0.0, 0.0, 0.0],
        [0.0, 0.0, 2 * s],
        [s, 0.0, 2 * s],
        [s, 0.0, s],
        [2 * s, 0.0, s],
        [2 * s, 0.0, 0.0],
    ])
    return _polygon_mesh(vertices, [(0, 1, 2, 3, 4, 5)])


def _pyramid(size: float) -> Mesh:
    vertices = np.array([
        [0.0, 0.0, 0.0],
        [size, 0.0, 0.0],
        [size, 0.0, size],
        [0.0, 0.0, size],
        [size / 2.0, size, size / 2.0],
    ])
    polygons = [
        (0, 1, 2, 3),  # base, facing down
        (0, 4, 1),
        (1, 4, 2),
        (2, 4, 3),
        (3, 4, 0),
    ]
    return _polygon_mesh(vertices, polygons, _QUAD_UVS)


PRESETS = {
    "square": _square,
    "cube": _cube,
    "l-shape": _l_shape,
    "pyramid": _pyramid,
}


def build_mesh_preset(preset: str, size: float = 1.0) -> Mesh:
    preset = preset.lower()
    if preset not in PRESETS:
        raise ValueError(f"Unknown synthetic mesh preset '{preset}'.")
    if size <= 0.0:
        raise ValueError("size must be positive.")
    return PRESETS[preset](float(size))


def generate_mesh(preset: str, size: float, path: Path) -> Mesh:
    mesh = build_mesh_preset(preset, size)
    write_obj(path, mesh)
    return mesh
