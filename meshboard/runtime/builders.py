from __future__ import annotations

from typing import Optional

from ..config import ConversionConfig
from ..config.schema import (
    FlatMaterialConfig,
    MeshConfig,
    RandomMaterialConfig,
    ShadingConfig,
    TextureMaterialConfig,
)
from ..core.billboards import ShadowSettings
from ..core.exporter import CommandWriter, NpzWriter
from ..core.loader import load_mesh
from ..core.mesh import Mesh
from ..core.objfile import load_texture
from ..core.pipeline import PipelineConfig
from ..core.shading import Material


def build_mesh(mesh_cfg: MeshConfig) -> Mesh:
    mesh = load_mesh(mesh_cfg.path)
    if mesh_cfg.fit_size is not None:
        longest = mesh.max_axis_length()
        if longest > 0.0:
            mesh = mesh.scaled(mesh_cfg.fit_size / longest)
    if mesh_cfg.scale != 1.0:
        mesh = mesh.scaled(mesh_cfg.scale)
    if any(mesh_cfg.offset):
        mesh = mesh.translated(*mesh_cfg.offset)
    return mesh


def build_material(cfg: ConversionConfig) -> Optional[Material]:
    material_cfg = cfg.material
    if material_cfg is None:
        return None
    if isinstance(material_cfg, FlatMaterialConfig):
        return Material(
            name="flat",
            color=material_cfg.color,
            emissive=material_cfg.emissive,
            emissive_intensity=material_cfg.emissive_intensity,
        )
    if isinstance(material_cfg, TextureMaterialConfig):
        emissive_texture = None
        if material_cfg.emissive_path is not None:
            emissive_texture = load_texture(material_cfg.emissive_path, flip_v=material_cfg.flip_v)
        return Material(
            name=material_cfg.path.stem,
            texture=load_texture(material_cfg.path, flip_v=material_cfg.flip_v),
            emissive=material_cfg.emissive,
            emissive_texture=emissive_texture,
            emissive_intensity=material_cfg.emissive_intensity,
        )
    if isinstance(material_cfg, RandomMaterialConfig):
        return Material(name="random")
    raise ValueError(f"Unsupported material kind: {material_cfg.kind}")


def build_shadow(shading_cfg: Optional[ShadingConfig]) -> Optional[ShadowSettings]:
    if shading_cfg is None:
        return None
    return ShadowSettings(
        light=shading_cfg.light,
        min_brightness=shading_cfg.min_brightness,
        max_brightness=shading_cfg.max_brightness,
    )


def build_pipeline_config(cfg: ConversionConfig) -> PipelineConfig:
    return PipelineConfig(
        max_command_length=cfg.packer.max_command_length,
        shadow=build_shadow(cfg.shading),
        material=build_material(cfg),
    )


def build_writer(cfg: ConversionConfig):
    out_cfg = cfg.output
    if out_cfg.format in {"mcfunction", "txt"}:
        return CommandWriter(str(out_cfg.path))
    if out_cfg.format == "npz":
        return NpzWriter(str(out_cfg.path))
    raise ValueError(f"Unsupported output format: {out_cfg.format}")
