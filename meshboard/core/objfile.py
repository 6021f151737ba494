"""Wavefront OBJ/MTL reading and writing.

Faces keep their full polygon index groups so that n-gons reach the
triangulator intact. Material libraries are resolved relative to the OBJ file
and their textures are decoded eagerly with Pillow.
"""
from __future__ import annotations
from pathlib import Path
from typing import Dict, List, Optional, Tuple
import numpy as np
from PIL import Image

from .mesh import FaceIndex, Mesh
from .shading import Material, Texture
from .utils import get_logger

_log = get_logger()


def load_texture(path: str | Path, flip_v: bool = True) -> Texture:
    with Image.open(path) as img:
        pixels = np.asarray(img.convert("RGBA"), dtype=np.uint8)
    return Texture(pixels=pixels, flip_v=flip_v)


def _resolve_index(token: str, count: int) -> Optional[int]:
    if token == "":
        return None
    idx = int(token)
    if idx < 0:
        return count + idx
    return idx - 1


def _floats(parts: List[str], n: int) -> Optional[Tuple[float, ...]]:
    if len(parts) < n:
        return None
    return tuple(float(p) for p in parts[:n])


def parse_obj(content: str, base_dir: Optional[Path] = None) -> Mesh:
    positions: List[Tuple[float, ...]] = []
    uvs: List[Tuple[float, ...]] = []
    normals: List[Tuple[float, ...]] = []
    faces: List[FaceIndex] = []
    materials: Dict[str, Material] = {}
    current_material: Optional[str] = None

    for lineno, raw in enumerate(content.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        tag, args = parts[0], parts[1:]

        if tag == "v":
            xyz = _floats(args, 3)
            if xyz is not None:
                positions.append(xyz)
        elif tag == "vt":
            uv = _floats(args, 2)
            if uv is not None:
                uvs.append(uv)
        elif tag == "vn":
            n = _floats(args, 3)
            if n is not None:
                normals.append(n)
        elif tag == "f":
            v_idx: List[int] = []
            t_idx: List[int] = []
            n_idx: List[int] = []
            for token in args:
                comps = token.split("/")
                try:
                    vi = _resolve_index(comps[0], len(positions))
                    ti = _resolve_index(comps[1], len(uvs)) if len(comps) > 1 else None
                    ni = _resolve_index(comps[2], len(normals)) if len(comps) > 2 else None
                except ValueError as exc:
                    raise ValueError(f"Malformed face index '{token}' on line {lineno}") from exc
                if vi is None or vi < 0:
                    continue
                v_idx.append(vi)
                if ti is not None and ti >= 0:
                    t_idx.append(ti)
                if ni is not None and ni >= 0:
                    n_idx.append(ni)
            if v_idx:
                faces.append(FaceIndex(tuple(v_idx), tuple(t_idx), tuple(n_idx), current_material))
        elif tag == "usemtl":
            current_material = " ".join(args) if args else None
        elif tag == "mtllib":
            if base_dir is None:
                _log.warning("Ignoring mtllib on line %d: no base directory to resolve it.", lineno)
                continue
            for name in args:
                mtl_path = base_dir / name
                if not mtl_path.exists():
                    _log.warning("Material library '%s' not found; faces fall back to generated colors.", mtl_path)
                    continue
                materials.update(load_mtl(mtl_path))

    return Mesh(
        positions=np.asarray(positions, dtype=np.float64).reshape(-1, 3),
        uvs=np.asarray(uvs, dtype=np.float64).reshape(-1, 2),
        normals=np.asarray(normals, dtype=np.float64).reshape(-1, 3),
        faces=faces,
        materials=materials,
    )


def load_obj(path: str | Path) -> Mesh:
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        content = f.read()
    mesh = parse_obj(content, base_dir=path.parent)
    _log.info("Loaded %s: %d vertices, %d faces, %d materials",
              path.name, len(mesh.positions), len(mesh.faces), len(mesh.materials))
    return mesh


def parse_mtl(content: str, base_dir: Optional[Path] = None) -> Dict[str, Material]:
    records: Dict[str, dict] = {}
    current: Optional[dict] = None
    for raw in content.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        tag, args = parts[0], parts[1:]
        if tag == "newmtl":
            name = " ".join(args) if args else "default"
            current = {"name": name}
            records[name] = current
        elif current is None:
            continue
        elif tag == "Kd":
            current["color"] = _floats(args, 3)
        elif tag == "Ke":
            current["emissive"] = _floats(args, 3)
        elif tag in ("map_Kd", "map_Ke") and args:
            if base_dir is None:
                continue
            # Texture options precede the file name.
            tex_path = base_dir / args[-1]
            if not tex_path.exists():
                _log.warning("Texture '%s' for material '%s' not found; skipping it.", tex_path, current["name"])
                continue
            key = "texture" if tag == "map_Kd" else "emissive_texture"
            current[key] = load_texture(tex_path)

    materials: Dict[str, Material] = {}
    for name, rec in records.items():
        emissive = rec.get("emissive")
        if emissive is not None and not any(emissive) and "emissive_texture" not in rec:
            emissive = None
        materials[name] = Material(
            name=name,
            color=rec.get("color"),
            texture=rec.get("texture"),
            emissive=emissive,
            emissive_texture=rec.get("emissive_texture"),
        )
    return materials


def load_mtl(path: str | Path) -> Dict[str, Material]:
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        return parse_mtl(f.read(), base_dir=path.parent)


def write_obj(path: str | Path, mesh: Mesh) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write("# meshboard\n")
        for x, y, z in mesh.positions:
            f.write(f"v {float(x)} {float(y)} {float(z)}\n")
        for u, v in mesh.uvs:
            f.write(f"vt {float(u)} {float(v)}\n")
        for x, y, z in mesh.normals:
            f.write(f"vn {float(x)} {float(y)} {float(z)}\n")
        for face in mesh.faces:
            tokens = []
            for i, vi in enumerate(face.vertex):
                ti = str(face.uv[i] + 1) if i < len(face.uv) else ""
                ni = str(face.normal[i] + 1) if i < len(face.normal) else ""
                if ni:
                    tokens.append(f"{vi + 1}/{ti}/{ni}")
                elif ti:
                    tokens.append(f"{vi + 1}/{ti}")
                else:
                    tokens.append(f"{vi + 1}")
            f.write("f " + " ".join(tokens) + "\n")
