from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Callable, NamedTuple, Optional, Tuple
import math
import numpy as np

from .triangulate import Triangle
from .utils import clamp01, round_half_up

Color = Tuple[float, float, float]
UVColorProvider = Callable[[float, float], Color]
TriangleShader = Callable[[Triangle, np.ndarray], Color]

BLACK: Color = (0.0, 0.0, 0.0)
WHITE: Color = (1.0, 1.0, 1.0)

# Weights (first, second, third) averaged to blur the triangle's texture
# footprint into a single color.
BARYCENTRIC_SAMPLES: Tuple[Tuple[float, float, float], ...] = (
    (0.333, 0.333, 0.334),

    (0.0, 0.0, 1.0),
    (1.0, 0.0, 0.0),
    (0.0, 1.0, 0.0),

    (0.25, 0.25, 0.5),
    (0.5, 0.25, 0.25),
    (0.25, 0.5, 0.25),

    (0.75, 0.125, 0.125),
    (0.125, 0.75, 0.125),
    (0.125, 0.125, 0.75),
)


@dataclass(frozen=True, eq=False)
class Texture:
    """Decoded bitmap, (H, W) or (H, W, C) uint8."""
    pixels: np.ndarray
    flip_v: bool = True

    def __post_init__(self) -> None:
        pixels = np.asarray(self.pixels)
        if pixels.ndim == 2:
            pixels = pixels[:, :, None]
        if pixels.ndim != 3 or pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise ValueError(f"Texture pixels must be a non-empty (H, W[, C]) array, got shape {pixels.shape}")
        pixels = pixels.astype(np.uint8, copy=False)
        pixels.setflags(write=False)
        object.__setattr__(self, "pixels", pixels)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


@dataclass(frozen=True, eq=False)
class Material:
    name: str = "default"
    color: Optional[Color] = None
    texture: Optional[Texture] = None
    emissive: Optional[Color] = None
    emissive_texture: Optional[Texture] = None
    emissive_intensity: float = 1.0


class MaterialKind(Enum):
    TEXTURED = "textured"
    FLAT_COLOR = "flat_color"
    UNKNOWN = "unknown"


def material_kind(material: Optional[Material]) -> MaterialKind:
    if material is None:
        return MaterialKind.UNKNOWN
    if material.texture is not None:
        return MaterialKind.TEXTURED
    if material.color is not None:
        return MaterialKind.FLAT_COLOR
    return MaterialKind.UNKNOWN


class ShaderPair(NamedTuple):
    base: TriangleShader
    emissive: TriangleShader


# -- pseudo-random fallback --

class Random:
    """mulberry32 generator; the seed may be any float and is wrapped to 32 bits per step."""

    def __init__(self, seed: float) -> None:
        self._seed = float(seed)

    def next_float(self) -> float:
        self._seed += 0x6D2B79F5
        t = _to_uint32(self._seed)
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & 0xFFFFFFFF
        return ((t ^ (t >> 14)) & 0xFFFFFFFF) / 4294967296.0

    def next_int(self, maximum: int) -> int:
        return int(math.floor(self.next_float() * maximum))


def _to_uint32(value: float) -> int:
    if not math.isfinite(value):
        return 0
    return int(value) & 0xFFFFFFFF


def _imul(a: int, b: int) -> int:
    return (a * b) & 0xFFFFFFFF


def _position_hash(position: np.ndarray) -> float:
    return float(position[0]) * 100 + float(position[1]) * 10 + float(position[2])


def random_color_shader(triangle: Triangle, normal: Optional[np.ndarray] = None) -> Color:
    seed = sum(_position_hash(v.position) for v in triangle.vertices)
    random = Random(seed)
    return (random.next_float(), random.next_float(), random.next_float())


# -- shader constructors --

def flat_color_shader(color: Color) -> TriangleShader:
    color = (float(color[0]), float(color[1]), float(color[2]))
    return lambda triangle, normal: color


def uv_sampler_shader(provider: UVColorProvider) -> TriangleShader:
    return lambda triangle, normal: sample_triangle(provider, triangle)


def texture_shader(texture: Texture, tint: Color = WHITE) -> TriangleShader:
    def provider(u: float, v: float) -> Color:
        r, g, b = sample_texture(texture, u, v)
        return (r * tint[0], g * tint[1], b * tint[2])
    return uv_sampler_shader(provider)


def sample_triangle(provider: UVColorProvider, triangle: Triangle) -> Color:
    first, second, third = (v.uv for v in triangle.vertices)
    red = green = blue = 0.0
    count = 0
    for ba, bb, bc in BARYCENTRIC_SAMPLES:
        u = first[0] * ba + second[0] * bb + third[0] * bc
        v = first[1] * ba + second[1] * bb + third[1] * bc
        r, g, b = provider(float(u), float(v))
        red += r * 255
        green += g * 255
        blue += b * 255
        count += 1
    return (red / count / 255, green / count / 255, blue / count / 255)


def sample_texture(texture: Texture, u: float, v: float) -> Color:
    vv = 1.0 - v if texture.flip_v else v
    px = round_half_up(clamp01(u) * (texture.width - 1))
    py = round_half_up(clamp01(vv) * (texture.height - 1))
    pixel = texture.pixels[py, px]
    if pixel.shape[0] < 3:
        value = float(pixel[0]) / 255
        return (value, value, value)
    return (float(pixel[0]) / 255, float(pixel[1]) / 255, float(pixel[2]) / 255)


def resolve_shaders(material: Optional[Material]) -> ShaderPair:
    """Pick the base and emissive shaders for ``material`` once."""
    kind = material_kind(material)
    if kind is MaterialKind.TEXTURED:
        base = texture_shader(material.texture)  # type: ignore[union-attr, arg-type]
    elif kind is MaterialKind.FLAT_COLOR:
        base = flat_color_shader(material.color)  # type: ignore[union-attr, arg-type]
    else:
        base = random_color_shader

    if material is None:
        return ShaderPair(base, flat_color_shader(BLACK))
    intensity = float(material.emissive_intensity)
    if material.emissive_texture is not None:
        tint = material.emissive if material.emissive is not None else WHITE
        emissive = texture_shader(material.emissive_texture, tuple(c * intensity for c in tint))  # type: ignore[arg-type]
    elif material.emissive is not None:
        emissive = flat_color_shader(tuple(c * intensity for c in material.emissive))  # type: ignore[arg-type]
    else:
        emissive = flat_color_shader(BLACK)
    return ShaderPair(base, emissive)


# -- emission and lighting --

def emission_scalar(color: Color) -> float:
    # Only blue is divided; kept as the established brightness curve.
    return color[0] + color[1] + color[2] / 3


def brightness_level(emission: float) -> int:
    return min(15, max(0, round_half_up(emission * 15)))


def shadow_shader(
    shader: TriangleShader,
    emissive: TriangleShader,
    *,
    light: np.ndarray,
    min_brightness: float,
    max_brightness: float,
) -> TriangleShader:
    light = np.asarray(light, dtype=np.float64)

    def shade(triangle: Triangle, normal: np.ndarray) -> Color:
        r, g, b = shader(triangle, normal)
        light_dot = float(np.dot(normal, light))
        brightness = (light_dot + 1) / 2 * (max_brightness - min_brightness) + min_brightness
        emission = emission_scalar(emissive(triangle, normal))
        final = min(1.0, brightness + emission)
        return (r * final, g * final, b * final)

    return shade
