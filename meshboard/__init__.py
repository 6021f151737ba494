"""meshboard – Mesh→Text-Display Billboard Converter.

Turns polygon meshes into flat, colored ``text_display`` billboards packed into
summon commands:
- Mesh, Polygon & Vertex records plus OBJ/MTL codec (core.mesh, core.objfile)
- Ear-clipping triangulator (core.triangulate)
- Triangle → affine transform solver (core.transform)
- Material shaders, emission and shadow pass (core.shading)
- Billboard synthesizer (core.billboards)
- Greedy summon-command packer (core.commands)
- Command and NPZ writers (core.exporter)
- High-level Pipeline orchestrator (core.pipeline)

Non-OBJ formats are read through trimesh when it is installed.
"""

from .core.mesh import Vertex, Polygon, FaceIndex, Mesh
from .core.triangulate import Triangle, triangulate
from .core.transform import TriangleTransform, solve_triangle_transform
from .core.shading import Material, Texture, resolve_shaders
from .core.billboards import BillboardEntity, BillboardBrightness, ShadowSettings, mesh_to_billboards
from .core.commands import Batch, CommandTooLongError, pack_batches, summon_command, summon_commands
from .core.loader import load_mesh
from .core.objfile import load_obj, write_obj
from .core.exporter import CommandWriter, NpzWriter
from .core.pipeline import Pipeline, PipelineConfig
