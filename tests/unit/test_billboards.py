import numpy as np
import pytest

from meshboard.core.billboards import (
    BillboardBrightness,
    BillboardEntity,
    ShaderCache,
    ShadowSettings,
    billboards_for_triangle,
    mesh_to_billboards,
)
from meshboard.core.mesh import Polygon, Vertex
from meshboard.core.shading import Material, resolve_shaders
from meshboard.core.transform import solve_triangle_transform
from meshboard.core.triangulate import Triangle
from meshboard.examples.synthetic import build_mesh_preset


def unit_square(material=None) -> Polygon:
    points = [(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)]
    return Polygon(tuple(Vertex(p, (0, 0), (0, 0, 1)) for p in points), material)


def test_three_billboards_per_triangle() -> None:
    tri = Triangle(*(Vertex(p) for p in [(0, 0, 0), (2, 0, 0), (0, 1, 1)]))
    entities = billboards_for_triangle(tri, resolve_shaders(Material(color=(1.0, 0.0, 0.0))))
    assert len(entities) == 3
    expected = solve_triangle_transform((0, 0, 0), (2, 0, 0), (0, 1, 1)).transforms
    for entity, transform in zip(entities, expected):
        np.testing.assert_allclose(entity.transform, transform)
        assert entity.color == (1.0, 0.0, 0.0)
        assert entity.brightness.is_default


def test_unit_square_yields_six_entities() -> None:
    entities = mesh_to_billboards([unit_square(Material(color=(1.0, 1.0, 1.0)))])
    assert len(entities) == 6
    assert all(e.color == (1.0, 1.0, 1.0) for e in entities)


def test_emission_sets_block_light() -> None:
    material = Material(color=(1.0, 1.0, 1.0), emissive=(1.0, 0.0, 0.0))
    entities = mesh_to_billboards([unit_square(material)])
    assert {e.brightness.block for e in entities} == {15}
    assert {e.brightness.sky for e in entities} == {15}


def test_shader_cache_resolves_each_material_once() -> None:
    calls = []

    def resolver(material):
        calls.append(material)
        return resolve_shaders(material)

    red = Material(color=(1.0, 0.0, 0.0))
    blue = Material(color=(0.0, 0.0, 1.0))
    polygons = [unit_square(red), unit_square(blue), unit_square(red), unit_square(None), unit_square(None)]
    mesh_to_billboards(polygons, resolver=resolver)
    assert len(calls) == 3
    assert calls[0] is red and calls[1] is blue and calls[2] is None


def test_shader_cache_applies_shadow_pass() -> None:
    cache = ShaderCache(shadow=ShadowSettings(light=(0.0, 0.0, -1.0), min_brightness=0.2, max_brightness=1.0))
    pair = cache.get(Material(color=(1.0, 1.0, 1.0)))
    tri = Triangle(*(Vertex(p) for p in [(0, 0, 0), (1, 0, 0), (0, 1, 0)]))
    assert pair.base(tri, np.array([0.0, 0.0, 1.0])) == pytest.approx((0.2, 0.2, 0.2))
    assert len(cache) == 1


def test_material_override_replaces_polygon_materials() -> None:
    override = Material(color=(0.0, 1.0, 0.0))
    entities = mesh_to_billboards([unit_square(Material(color=(1.0, 0.0, 0.0)))], material=override)
    assert all(e.color == (0.0, 1.0, 0.0) for e in entities)


def test_output_is_deterministic_for_meshes() -> None:
    mesh = build_mesh_preset("cube", 2.0)
    first = mesh_to_billboards(mesh)
    second = mesh_to_billboards(mesh)
    assert len(first) == 6 * 2 * 3
    for a, b in zip(first, second):
        assert a.color == b.color
        np.testing.assert_array_equal(a.transform, b.transform)


def test_brightness_is_validated() -> None:
    with pytest.raises(ValueError):
        BillboardBrightness(sky=16)
    with pytest.raises(ValueError):
        BillboardBrightness(block=-1)
    assert not BillboardBrightness(block=3).is_default


def test_entity_transform_is_frozen_copy() -> None:
    source = np.eye(4)
    entity = BillboardEntity(color=(1, 0, 0), transform=source)
    source[0, 3] = 5.0
    assert entity.transform[0, 3] == 0.0
    assert not entity.transform.flags.writeable
    assert entity.color == (1.0, 0.0, 0.0)
