from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from meshboard.core.loader import load_mesh
from meshboard.core.objfile import load_obj, parse_mtl, parse_obj, write_obj
from meshboard.examples.synthetic import build_mesh_preset

QUAD_OBJ = """\
# quad
v 0 0 0
v 1 0 0
v 1 1 0
v 0 1 0
vt 0 0
vt 1 0
vt 1 1
vt 0 1
vn 0 0 1
f 1/1/1 2/2/1 3/3/1 4/4/1
"""


def test_parse_obj_keeps_ngon_faces() -> None:
    mesh = parse_obj(QUAD_OBJ)
    assert mesh.positions.shape == (4, 3)
    assert len(mesh.faces) == 1
    face = mesh.faces[0]
    assert face.vertex == (0, 1, 2, 3)
    assert face.uv == (0, 1, 2, 3)
    assert face.normal == (0, 0, 0, 0)
    (poly,) = mesh.polygons()
    np.testing.assert_array_equal(poly.vertices[2].uv, (1.0, 1.0))


def test_parse_obj_negative_and_partial_indices() -> None:
    content = "v 0 0 0\nv 1 0 0\nv 0 1 0\nvn 0 1 0\nf -3//-1 -2//-1 -1//-1\nf 1 2 3\n"
    mesh = parse_obj(content)
    assert mesh.faces[0].vertex == (0, 1, 2)
    assert mesh.faces[0].uv == ()
    assert mesh.faces[0].normal == (0, 0, 0)
    assert mesh.faces[1].normal == ()
    poly = mesh.polygons()[1]
    np.testing.assert_array_equal(poly.vertices[0].normal, (0.0, 0.0, 1.0))


def test_parse_obj_reports_malformed_index_line() -> None:
    with pytest.raises(ValueError, match="line 2"):
        parse_obj("v 0 0 0\nf 1 x 1\n")


def test_parse_mtl_colors_and_emission() -> None:
    materials = parse_mtl(
        "newmtl red\nKd 1 0 0\nKe 0 0 0\n\nnewmtl lamp\nKd 1 1 1\nKe 0.5 0.5 0\n"
    )
    assert set(materials) == {"red", "lamp"}
    assert materials["red"].color == (1.0, 0.0, 0.0)
    assert materials["red"].emissive is None
    assert materials["lamp"].emissive == (0.5, 0.5, 0.0)


def test_load_obj_resolves_material_library_and_texture(tmp_path: Path) -> None:
    pixels = np.zeros((2, 2, 3), dtype=np.uint8)
    pixels[1, 0] = (0, 255, 0)
    Image.fromarray(pixels).save(tmp_path / "grass.png")
    (tmp_path / "scene.mtl").write_text("newmtl grass\nKd 1 1 1\nmap_Kd grass.png\n", encoding="utf-8")
    (tmp_path / "scene.obj").write_text(
        "mtllib scene.mtl\n" + QUAD_OBJ.replace("f 1/1/1", "usemtl grass\nf 1/1/1"), encoding="utf-8"
    )

    mesh = load_mesh(tmp_path / "scene.obj")
    (poly,) = mesh.polygons()
    material = poly.material
    assert material is not None and material.name == "grass"
    assert material.texture is not None
    assert material.texture.pixels.shape == (2, 2, 4)
    assert tuple(material.texture.pixels[1, 0, :3]) == (0, 255, 0)


def test_missing_material_library_is_tolerated(tmp_path: Path) -> None:
    path = tmp_path / "lonely.obj"
    path.write_text("mtllib nowhere.mtl\nusemtl ghost\n" + QUAD_OBJ, encoding="utf-8")
    mesh = load_obj(path)
    assert mesh.materials == {}
    assert mesh.polygons()[0].material is None


def test_write_obj_round_trips_preset(tmp_path: Path) -> None:
    mesh = build_mesh_preset("pyramid", 2.0)
    path = tmp_path / "out" / "pyramid.obj"
    write_obj(path, mesh)
    loaded = load_obj(path)
    np.testing.assert_allclose(loaded.positions, mesh.positions)
    np.testing.assert_allclose(loaded.normals, mesh.normals)
    assert [f.vertex for f in loaded.faces] == [f.vertex for f in mesh.faces]
    assert [f.uv for f in loaded.faces] == [f.uv for f in mesh.faces]


def test_load_mesh_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_mesh(tmp_path / "absent.obj")


def test_parse_mtl_emissive_texture_keeps_black_ke(tmp_path: Path) -> None:
    Image.new("RGB", (1, 1), (255, 200, 0)).save(tmp_path / "glow.png")
    materials = parse_mtl("newmtl lamp\nKd 1 1 1\nKe 0 0 0\nmap_Ke -bm 1 glow.png\n", base_dir=tmp_path)
    lamp = materials["lamp"]
    assert lamp.texture is None
    assert lamp.emissive_texture is not None
    assert tuple(lamp.emissive_texture.pixels[0, 0]) == (255, 200, 0, 255)
    assert lamp.emissive == (0.0, 0.0, 0.0)


def test_missing_texture_file_is_skipped(tmp_path: Path) -> None:
    materials = parse_mtl("newmtl wall\nKd 0.5 0.5 0.5\nmap_Kd brick.png\nmap_Ke glow.png\n", base_dir=tmp_path)
    wall = materials["wall"]
    assert wall.texture is None
    assert wall.emissive_texture is None
    assert wall.color == (0.5, 0.5, 0.5)
