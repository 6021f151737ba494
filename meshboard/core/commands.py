from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple
import math
import numpy as np

from .billboards import BillboardEntity
from .shading import Color
from .utils import benchmark, get_logger, round_half_up

_log = get_logger()

DEFAULT_MAX_COMMAND_LENGTH = 32500
ENTITY_TYPE = "minecraft:text_display"
CONTAINER_POSITION = "~ ~ ~"
FLOAT_DECIMALS = 7

# Column-major storage index for each row-major output slot.
_ROW_MAJOR_ORDER = (0, 4, 8, 12, 1, 5, 9, 13, 2, 6, 10, 14, 3, 7, 11, 15)


class CommandTooLongError(ValueError):
    """A single entity serializes to a command longer than the limit."""

    def __init__(self, index: int, length: int, max_command_length: int) -> None:
        super().__init__(
            f"Entity {index} alone needs a {length}-character command, "
            f"above the {max_command_length}-character limit"
        )
        self.index = index
        self.length = length
        self.max_command_length = max_command_length


@dataclass(frozen=True, eq=False)
class Batch:
    entities: Tuple[BillboardEntity, ...]
    command: str

    @property
    def container(self) -> BillboardEntity:
        return self.entities[0]

    @property
    def passengers(self) -> Tuple[BillboardEntity, ...]:
        return self.entities[1:]

    def __len__(self) -> int:
        return len(self.entities)


# -- serialization --

def format_float(value: float) -> str:
    scale = 10 ** FLOAT_DECIMALS
    rounded = math.floor(float(value) * scale + 0.5) / scale
    if rounded == 0.0:
        rounded = 0.0
    return np.format_float_positional(rounded, trim="-") + "f"


def color_to_signed_int(color: Color, alpha: float = 1.0) -> int:
    r, g, b = (min(255, max(0, round_half_up(c * 255))) for c in color)
    a = min(255, max(0, round_half_up(alpha * 255)))
    packed = (a << 24) | (r << 16) | (g << 8) | b
    return packed - (1 << 32) if packed >= (1 << 31) else packed


def matrix_elements(transform: np.ndarray) -> List[float]:
    """Row-major elements of ``transform`` read from its column-major storage."""
    storage = np.asarray(transform, dtype=np.float64).ravel(order="F")
    return [float(storage[i]) for i in _ROW_MAJOR_ORDER]


def entity_components(entity: BillboardEntity) -> Dict[str, str]:
    transformation = ",".join(format_float(v) for v in matrix_elements(entity.transform))
    components = {
        "id": f'"{ENTITY_TYPE}"',
        "text": "'\" \"'",
        "transformation": f"[{transformation}]",
        "background": str(color_to_signed_int(entity.color)),
    }
    if not entity.brightness.is_default:
        components["brightness"] = f"{{sky:{entity.brightness.sky},block:{entity.brightness.block}}}"
    return components


def components_to_string(components: Dict[str, str]) -> str:
    return "{" + ",".join(f"{key}:{value}" for key, value in components.items()) + "}"


def container_body(entity: BillboardEntity) -> str:
    components = entity_components(entity)
    del components["id"]
    return ",".join(f"{key}:{value}" for key, value in components.items())


def passenger_record(entity: BillboardEntity) -> str:
    return components_to_string(entity_components(entity))


def _assemble(body: str, passengers: Sequence[str]) -> str:
    if passengers:
        body = f"{body},Passengers:[{','.join(passengers)}]"
    return f"summon {ENTITY_TYPE} {CONTAINER_POSITION} {{{body}}}"


def summon_command(entities: Sequence[BillboardEntity]) -> str:
    """One command summoning the first entity with the rest riding it.

    The container record carries no ``id``: the summoned entity type supplies
    it. Every passenger record names its type explicitly.
    """
    if not entities:
        return ""
    return _assemble(container_body(entities[0]), [passenger_record(e) for e in entities[1:]])


# -- packing --

def pack_batches(
    entities: Sequence[BillboardEntity],
    max_command_length: int = DEFAULT_MAX_COMMAND_LENGTH,
) -> List[Batch]:
    """Greedily split ``entities`` into summon commands no longer than the limit.

    Each batch starts from an estimated size (``max_command_length // 100`` at
    first, then the size of the previous batch), grows while the command still
    fits and entities remain, then shrinks until it fits again.
    """
    if max_command_length <= 0:
        raise ValueError("max_command_length must be positive")

    # Serialized records, keyed by entity position.
    bodies: Dict[int, str] = {}
    records: Dict[int, str] = {}

    def command_for(start: int, end: int) -> str:
        if end <= start:
            return ""
        if start not in bodies:
            bodies[start] = container_body(entities[start])
        for i in range(start + 1, end):
            if i not in records:
                records[i] = passenger_record(entities[i])
        return _assemble(bodies[start], [records[i] for i in range(start + 1, end)])

    batches: List[Batch] = []
    total = len(entities)
    start = 0
    expected = max_command_length // 100

    with benchmark("pack_batches"):
        while start < total:
            end = min(start + expected, total)

            command = command_for(start, end)
            while len(command) <= max_command_length and end < total:
                end += 1
                command = command_for(start, end)

            while len(command) > max_command_length and end > start:
                end -= 1
                command = command_for(start, end)

            if end == start:
                raise CommandTooLongError(start, len(command_for(start, start + 1)), max_command_length)

            expected = end - start
            batches.append(Batch(entities=tuple(entities[start:end]), command=command))
            start = end

    _log.debug("Packed %d entities into %d commands (limit %d)", total, len(batches), max_command_length)
    return batches


def summon_commands(
    entities: Sequence[BillboardEntity],
    max_command_length: int = DEFAULT_MAX_COMMAND_LENGTH,
) -> List[str]:
    return [batch.command for batch in pack_batches(entities, max_command_length)]
