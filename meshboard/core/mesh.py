from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING
import numpy as np

if TYPE_CHECKING:  # pragma: no cover
    from .shading import Material

_DEFAULT_NORMAL = (0.0, 0.0, 1.0)


def _frozen_array(values, size: int) -> np.ndarray:
    arr = np.array(values, dtype=np.float64).reshape(size)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class Vertex:
    """A polygon corner: position, texture coordinate and stored normal."""
    position: np.ndarray
    uv: np.ndarray = field(default_factory=lambda: np.zeros(2))
    normal: np.ndarray = field(default_factory=lambda: np.array(_DEFAULT_NORMAL))

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", _frozen_array(self.position, 3))
        object.__setattr__(self, "uv", _frozen_array(self.uv, 2))
        object.__setattr__(self, "normal", _frozen_array(self.normal, 3))


@dataclass(frozen=True, eq=False)
class Polygon:
    vertices: Tuple[Vertex, ...]
    material: Optional["Material"] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "vertices", tuple(self.vertices))

    def __len__(self) -> int:
        return len(self.vertices)


@dataclass(frozen=True)
class FaceIndex:
    """Per-face index groups into the mesh attribute arrays (0-based)."""
    vertex: Tuple[int, ...]
    uv: Tuple[int, ...] = ()
    normal: Tuple[int, ...] = ()
    material: Optional[str] = None


@dataclass
class Mesh:
    positions: np.ndarray                 # (N, 3)
    uvs: np.ndarray                       # (M, 2)
    normals: np.ndarray                   # (K, 3)
    faces: List[FaceIndex] = field(default_factory=list)
    materials: Dict[str, "Material"] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.positions = np.asarray(self.positions, dtype=np.float64).reshape(-1, 3)
        self.uvs = np.asarray(self.uvs, dtype=np.float64).reshape(-1, 2)
        self.normals = np.asarray(self.normals, dtype=np.float64).reshape(-1, 3)

    # -- geometry queries --
    def bounds(self) -> tuple[float, float, float, float, float, float]:
        if not self.faces or len(self.positions) == 0:
            return (0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
        mn = self.positions.min(axis=0)
        mx = self.positions.max(axis=0)
        return (float(mn[0]), float(mx[0]), float(mn[1]), float(mx[1]), float(mn[2]), float(mx[2]))

    def axis_lengths(self) -> tuple[float, float, float]:
        x0, x1, y0, y1, z0, z1 = self.bounds()
        return (x1 - x0, y1 - y0, z1 - z0)

    def max_axis_length(self) -> float:
        return max(self.axis_lengths())

    # -- pure transforms --
    def translated(self, x: float, y: float, z: float) -> "Mesh":
        return self._with_positions(self.positions + np.array([x, y, z], dtype=np.float64))

    def scaled(self, scale: float) -> "Mesh":
        return self._with_positions(self.positions * float(scale))

    def _with_positions(self, positions: np.ndarray) -> "Mesh":
        return Mesh(
            positions=positions,
            uvs=self.uvs.copy(),
            normals=self.normals.copy(),
            faces=list(self.faces),
            materials=dict(self.materials),
        )

    # -- polygon assembly --
    def polygons(self) -> List[Polygon]:
        return [self._polygon(face) for face in self.faces]

    def _polygon(self, face: FaceIndex) -> Polygon:
        vertices = []
        for i, vi in enumerate(face.vertex):
            position = _lookup(self.positions, vi, (0.0, 0.0, 0.0))
            uv = _lookup(self.uvs, face.uv[i] if i < len(face.uv) else None, (0.0, 0.0))
            normal = _lookup(self.normals, face.normal[i] if i < len(face.normal) else None, _DEFAULT_NORMAL)
            vertices.append(Vertex(position, uv, normal))
        material = self.materials.get(face.material) if face.material is not None else None
        return Polygon(tuple(vertices), material)


def _lookup(values: np.ndarray, index: Optional[int], default: Sequence[float]) -> Sequence[float]:
    if index is None or index < 0 or index >= len(values):
        return default
    return values[index]
