from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union
import numpy as np

from .mesh import Mesh, Polygon
from .shading import (
    Color, Material, ShaderPair, brightness_level, emission_scalar,
    resolve_shaders, shadow_shader,
)
from .transform import solve_triangle_transform
from .triangulate import Triangle, triangulate
from .utils import benchmark, get_logger

_log = get_logger()

ShaderResolver = Callable[[Optional[Material]], ShaderPair]

DEFAULT_SKY = 15
DEFAULT_BLOCK = 0


@dataclass(frozen=True)
class BillboardBrightness:
    sky: int = DEFAULT_SKY
    block: int = DEFAULT_BLOCK

    def __post_init__(self) -> None:
        for name in ("sky", "block"):
            value = getattr(self, name)
            if not 0 <= value <= 15:
                raise ValueError(f"Brightness '{name}' must be within 0..15, got {value}")

    @property
    def is_default(self) -> bool:
        return self.sky == DEFAULT_SKY and self.block == DEFAULT_BLOCK


@dataclass(frozen=True, eq=False)
class BillboardEntity:
    """One flat quad: background color, 4x4 transform and light level."""
    color: Color
    transform: np.ndarray
    brightness: BillboardBrightness = BillboardBrightness()

    def __post_init__(self) -> None:
        transform = np.array(self.transform, dtype=np.float64).reshape(4, 4)
        transform.setflags(write=False)
        object.__setattr__(self, "transform", transform)
        object.__setattr__(self, "color", tuple(float(c) for c in self.color))


@dataclass(frozen=True)
class ShadowSettings:
    light: Tuple[float, float, float] = (0.0, 1.0, 0.0)
    min_brightness: float = 0.5
    max_brightness: float = 1.0


class ShaderCache:
    """Per-run memo of shader pairs keyed by material identity."""

    def __init__(self, resolver: ShaderResolver = resolve_shaders, shadow: Optional[ShadowSettings] = None) -> None:
        self._resolver = resolver
        self._shadow = shadow
        self._pairs: Dict[int, Tuple[Optional[Material], ShaderPair]] = {}

    def __len__(self) -> int:
        return len(self._pairs)

    def get(self, material: Optional[Material]) -> ShaderPair:
        key = id(material)
        entry = self._pairs.get(key)
        if entry is not None and entry[0] is material:
            return entry[1]
        pair = self._resolver(material)
        if self._shadow is not None:
            pair = ShaderPair(
                shadow_shader(
                    pair.base,
                    pair.emissive,
                    light=np.asarray(self._shadow.light, dtype=np.float64),
                    min_brightness=self._shadow.min_brightness,
                    max_brightness=self._shadow.max_brightness,
                ),
                pair.emissive,
            )
        self._pairs[key] = (material, pair)
        return pair


def billboards_for_triangle(triangle: Triangle, shaders: ShaderPair) -> List[BillboardEntity]:
    solved = solve_triangle_transform(triangle.first.position, triangle.second.position, triangle.third.position)
    normal = solved.z_axis
    color = shaders.base(triangle, normal)
    emission = emission_scalar(shaders.emissive(triangle, normal))
    brightness = BillboardBrightness(sky=DEFAULT_SKY, block=brightness_level(emission))
    return [BillboardEntity(color=color, transform=t, brightness=brightness) for t in solved.transforms]


def mesh_to_billboards(
    source: Union[Mesh, Iterable[Polygon]],
    resolver: ShaderResolver = resolve_shaders,
    shadow: Optional[ShadowSettings] = None,
    material: Optional[Material] = None,
) -> List[BillboardEntity]:
    """Triangulate every polygon and emit left/right/top billboards per triangle.

    ``material`` overrides the per-polygon materials when given. Output order is
    polygon order, then triangle order, then the fixed primitive order.
    """
    polygons: Sequence[Polygon] = source.polygons() if isinstance(source, Mesh) else list(source)
    cache = ShaderCache(resolver, shadow)
    entities: List[BillboardEntity] = []
    n_triangles = 0
    with benchmark("mesh_to_billboards"):
        for polygon in polygons:
            shaders = cache.get(material if material is not None else polygon.material)
            for triangle in triangulate(polygon):
                entities.extend(billboards_for_triangle(triangle, shaders))
                n_triangles += 1
    _log.debug("Synthesized %d billboards from %d triangles (%d polygons, %d materials)",
               len(entities), n_triangles, len(polygons), len(cache))
    return entities
