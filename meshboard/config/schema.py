from __future__ import annotations

from pathlib import Path
from typing import Annotated, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, model_validator

from ..core.commands import DEFAULT_MAX_COMMAND_LENGTH

Unit = Annotated[float, Field(ge=0.0, le=1.0)]
RGBConfig = tuple[Unit, Unit, Unit]


class MeshConfig(BaseModel):
    path: Path
    scale: float = 1.0
    fit_size: Optional[float] = Field(default=None, gt=0.0)
    offset: tuple[float, float, float] = (0.0, 0.0, 0.0)


class FlatMaterialConfig(BaseModel):
    kind: Literal["flat"]
    color: RGBConfig
    emissive: Optional[RGBConfig] = None
    emissive_intensity: float = Field(default=1.0, ge=0.0)


class TextureMaterialConfig(BaseModel):
    kind: Literal["texture"]
    path: Path
    flip_v: bool = True
    emissive: Optional[RGBConfig] = None
    emissive_path: Optional[Path] = None
    emissive_intensity: float = Field(default=1.0, ge=0.0)


class RandomMaterialConfig(BaseModel):
    kind: Literal["random"]


MaterialConfig = Annotated[
    Union[FlatMaterialConfig, TextureMaterialConfig, RandomMaterialConfig],
    Field(discriminator="kind"),
]


class ShadingConfig(BaseModel):
    light: tuple[float, float, float] = (0.0, 1.0, 0.0)
    min_brightness: float = Field(default=0.5, ge=0.0, le=1.0)
    max_brightness: float = Field(default=1.0, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_range(self) -> "ShadingConfig":
        if self.min_brightness > self.max_brightness:
            raise ValueError("min_brightness must not exceed max_brightness")
        return self


class PackerConfig(BaseModel):
    max_command_length: int = Field(default=DEFAULT_MAX_COMMAND_LENGTH, gt=0)


class OutputConfig(BaseModel):
    path: Path
    format: Optional[Literal["mcfunction", "txt", "npz"]] = None

    @model_validator(mode="after")
    def _infer_format(self) -> "OutputConfig":
        if self.format is None:
            ext = self.path.suffix.lower().lstrip(".")
            if ext not in {"mcfunction", "txt", "npz"}:
                raise ValueError(f"Cannot infer output format from extension '{self.path.suffix}'")
            self.format = ext  # type: ignore[assignment]
        return self


class ConversionConfig(BaseModel):
    mesh: MeshConfig
    material: Optional[MaterialConfig] = None
    shading: Optional[ShadingConfig] = None
    packer: PackerConfig = PackerConfig()
    output: OutputConfig


def _resolve(base: Path, path: Path) -> Path:
    return path if path.is_absolute() else (base / path).resolve()


def load_config(path: str | Path) -> ConversionConfig:
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ValueError("Configuration root must be a mapping.")
    cfg = ConversionConfig.model_validate(data)
    base = path.parent
    cfg.output.path = _resolve(base, cfg.output.path)
    cfg.mesh.path = _resolve(base, cfg.mesh.path)
    if isinstance(cfg.material, TextureMaterialConfig):
        cfg.material.path = _resolve(base, cfg.material.path)
        if cfg.material.emissive_path is not None:
            cfg.material.emissive_path = _resolve(base, cfg.material.emissive_path)
    return cfg
