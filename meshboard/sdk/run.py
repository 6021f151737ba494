from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

from ..config import ConversionConfig, load_config
from ..core.pipeline import Pipeline
from ..runtime.builders import (
    build_mesh,
    build_pipeline_config,
    build_writer,
)


@dataclass(frozen=True)
class ConversionResult:
    """Summary of a conversion driven by a configuration file."""

    stats: Dict[str, int]
    output_path: Path
    config: ConversionConfig


def convert_from_config(
    config: Union[str, Path, ConversionConfig],
    *,
    output: Optional[Path] = None,
    max_command_length: Optional[int] = None,
) -> ConversionResult:
    """Convert the mesh described by a configuration file or object.

    Parameters
    ----------
    config:
        Path to a YAML file or a pre-loaded :class:`~meshboard.config.schema.ConversionConfig`.
    output:
        Optional override for the output file. The extension drives the format
        (``.mcfunction``, ``.txt`` or ``.npz``).
    max_command_length:
        Optional override for the packer's command length limit.

    Returns
    -------
    ConversionResult
        Includes the run statistics (polygons, triangles, billboards,
        commands), the resolved output path, and the configuration used.
    """

    cfg = load_config(config) if not isinstance(config, ConversionConfig) else config.model_copy(deep=True)

    if max_command_length is not None:
        if max_command_length <= 0:
            raise ValueError("max_command_length must be positive")
        cfg.packer.max_command_length = max_command_length

    if output is not None:
        out_path = Path(output).resolve()
        ext = out_path.suffix.lower()
        if ext not in {".mcfunction", ".txt", ".npz"}:
            raise ValueError(f"Unsupported output extension '{ext}'")
        cfg.output.path = out_path
        cfg.output.format = ext.lstrip(".")  # type: ignore[assignment]
    else:
        cfg.output.path = Path(cfg.output.path).resolve()
    cfg.output.path.parent.mkdir(parents=True, exist_ok=True)

    mesh = build_mesh(cfg.mesh)
    pipeline = Pipeline(build_pipeline_config(cfg))
    writer = build_writer(cfg)
    stats = pipeline.run_to_writer(writer, mesh)

    return ConversionResult(stats=stats, output_path=Path(cfg.output.path), config=cfg)
