from __future__ import annotations
from pathlib import Path
from typing import Dict, Optional
import numpy as np

from .mesh import FaceIndex, Mesh
from .objfile import load_obj
from .shading import Material, Texture
from .utils import get_logger

_log = get_logger()

try:
    import trimesh  # type: ignore
    _HAVE_TRIMESH = True
except Exception:
    trimesh = None  # type: ignore
    _HAVE_TRIMESH = False


def load_mesh(path: str | Path) -> Mesh:
    """Load a polygon mesh.

    OBJ files go through the built-in reader so n-gon faces survive. Other
    formats need trimesh, which hands back triangles only.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Mesh file not found: {path}")
    suffix = path.suffix.lower()
    if suffix == ".obj":
        return load_obj(path)
    if _HAVE_TRIMESH:
        return _load_with_trimesh(path)
    raise RuntimeError(f"Install trimesh to read '{suffix}' meshes, or convert to OBJ.")


def _load_with_trimesh(path: Path) -> Mesh:
    tm = trimesh.load(str(path), force="mesh", process=False)
    vertices = np.asarray(tm.vertices, dtype=np.float64)
    faces = np.asarray(tm.faces, dtype=np.int64)
    if len(vertices) == 0 or len(faces) == 0:
        raise ValueError(f"Mesh has no triangle geometry: {path}")

    uvs = np.zeros((0, 2), dtype=np.float64)
    visual = getattr(tm, "visual", None)
    if visual is not None and getattr(visual, "uv", None) is not None and len(visual.uv) == len(vertices):
        uvs = np.asarray(visual.uv, dtype=np.float64)
    normals = np.asarray(tm.vertex_normals, dtype=np.float64)

    material = _material_from_visual(visual)
    materials: Dict[str, Material] = {}
    material_name: Optional[str] = None
    if material is not None:
        material_name = material.name
        materials[material_name] = material

    has_uv = len(uvs) > 0
    face_list = [
        FaceIndex(
            vertex=tuple(int(i) for i in f),
            uv=tuple(int(i) for i in f) if has_uv else (),
            normal=tuple(int(i) for i in f),
            material=material_name,
        )
        for f in faces
    ]
    _log.info("Loaded %s via trimesh: %d vertices, %d faces", path.name, len(vertices), len(face_list))
    return Mesh(positions=vertices, uvs=uvs, normals=normals, faces=face_list, materials=materials)


def _material_from_visual(visual) -> Optional[Material]:
    mat = getattr(visual, "material", None)
    if mat is None:
        return None
    name = str(getattr(mat, "name", None) or "material")
    img = getattr(mat, "baseColorTexture", None)
    if img is None:
        img = getattr(mat, "image", None)
    if img is not None:
        return Material(name=name, texture=Texture(np.asarray(img.convert("RGBA"), dtype=np.uint8)))
    color = getattr(mat, "baseColorFactor", None)
    if color is None:
        color = getattr(mat, "diffuse", None)
    if color is None:
        return None
    color = np.asarray(color)
    rgb = color[:3].astype(np.float64)
    # Integer colors are 0..255.
    if np.issubdtype(color.dtype, np.integer):
        rgb = rgb / 255.0
    return Material(name=name, color=(float(rgb[0]), float(rgb[1]), float(rgb[2])))
