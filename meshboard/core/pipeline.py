from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union

from .billboards import BillboardEntity, ShaderResolver, ShadowSettings, mesh_to_billboards
from .commands import DEFAULT_MAX_COMMAND_LENGTH, Batch, pack_batches
from .mesh import Mesh, Polygon
from .shading import Material, resolve_shaders
from .utils import get_logger

_log = get_logger()

@dataclass
class PipelineConfig:
    max_command_length: int = DEFAULT_MAX_COMMAND_LENGTH
    shadow: Optional[ShadowSettings] = None
    material: Optional[Material] = None

class Pipeline:
    """High-level orchestrator.

    Turns a mesh into billboard entities, packs them into summon commands and
    streams each batch to a writer exposing ``write_batch`` and ``close``.
    """
    def __init__(self, cfg: Optional[PipelineConfig] = None, resolver: ShaderResolver = resolve_shaders) -> None:
        self.cfg = cfg or PipelineConfig()
        self.resolver = resolver

    def billboards(self, source: Union[Mesh, Iterable[Polygon]]) -> List[BillboardEntity]:
        return mesh_to_billboards(source, resolver=self.resolver, shadow=self.cfg.shadow, material=self.cfg.material)

    def batches(self, source: Union[Mesh, Iterable[Polygon]]) -> List[Batch]:
        return pack_batches(self.billboards(source), self.cfg.max_command_length)

    def run_to_writer(self, writer, source: Union[Mesh, Iterable[Polygon]]) -> Dict[str, Any]:
        """Run the whole conversion and return statistics. The writer is always closed."""
        polygons = source.polygons() if isinstance(source, Mesh) else list(source)
        try:
            entities = self.billboards(polygons)
            batches = pack_batches(entities, self.cfg.max_command_length)
            for batch in batches:
                writer.write_batch(batch)
        finally:
            writer.close()

        stats = {
            "polygons": len(polygons),
            "triangles": len(entities) // 3,
            "billboards": len(entities),
            "commands": len(batches),
        }
        _log.info("Pipeline finished: %d polygons → %d billboards → %d commands",
                  stats["polygons"], stats["billboards"], stats["commands"])
        return stats
