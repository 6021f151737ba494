import numpy as np
import pytest

from meshboard.core import commands
from meshboard.core.billboards import BillboardBrightness, BillboardEntity, mesh_to_billboards
from meshboard.core.commands import (
    CommandTooLongError,
    color_to_signed_int,
    format_float,
    matrix_elements,
    pack_batches,
    summon_command,
    summon_commands,
)
from meshboard.core.mesh import Polygon, Vertex
from meshboard.core.shading import Material
from meshboard.core.transform import translation_matrix
from meshboard.examples.synthetic import build_mesh_preset


def white_square_entities():
    points = [(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)]
    polygon = Polygon(tuple(Vertex(p) for p in points), Material(color=(1.0, 1.0, 1.0)))
    return mesh_to_billboards([polygon])


@pytest.mark.parametrize(
    "value, expected",
    [
        (1.0, "1f"),
        (0.5, "0.5f"),
        (-2.5, "-2.5f"),
        (0.12345678, "0.1234568f"),
        (1e-8, "0f"),
        (-1e-8, "0f"),
        (-0.0, "0f"),
        (12.0, "12f"),
    ],
)
def test_format_float(value, expected) -> None:
    assert format_float(value) == expected


def test_color_packs_to_signed_argb() -> None:
    assert color_to_signed_int((1.0, 1.0, 1.0)) == -1
    assert color_to_signed_int((1.0, 0.0, 0.0)) == -65536
    assert color_to_signed_int((0.0, 0.0, 0.0)) == -16777216
    assert color_to_signed_int((2.0, -1.0, 0.0)) == -65536
    assert color_to_signed_int((0.0, 0.0, 1.0), alpha=0.0) == 255


def test_matrix_elements_are_row_major() -> None:
    m = translation_matrix(1.0, 2.0, 3.0)
    elements = matrix_elements(m)
    assert len(elements) == 16
    assert (elements[3], elements[7], elements[11]) == (1.0, 2.0, 3.0)
    assert elements == [float(v) for v in m.ravel()]


def test_container_omits_id_and_passengers_carry_it() -> None:
    entities = white_square_entities()
    command = summon_command(entities)
    assert command.startswith("summon minecraft:text_display ~ ~ ~ {text:'\" \"',transformation:[")
    assert command.count('id:"minecraft:text_display"') == len(entities) - 1
    assert command.count("background:-1") == len(entities)
    assert ",Passengers:[{" in command
    assert "brightness" not in command


def test_single_entity_has_no_passengers() -> None:
    entity = BillboardEntity(color=(1.0, 0.0, 0.0), transform=np.eye(4))
    command = summon_command([entity])
    assert "Passengers" not in command
    assert command == (
        "summon minecraft:text_display ~ ~ ~ {text:'\" \"',"
        "transformation:[1f,0f,0f,0f,0f,1f,0f,0f,0f,0f,1f,0f,0f,0f,0f,1f],background:-65536}"
    )


def test_non_default_brightness_is_serialized() -> None:
    entity = BillboardEntity(color=(1.0, 1.0, 1.0), transform=np.eye(4), brightness=BillboardBrightness(15, 7))
    assert "brightness:{sky:15,block:7}" in summon_command([entity])


def test_empty_input() -> None:
    assert summon_command([]) == ""
    assert pack_batches([]) == []


def test_unit_square_packs_into_one_command() -> None:
    entities = white_square_entities()
    batches = pack_batches(entities, 1000)
    assert len(batches) == 1
    assert pack_batches(entities)[0].command == batches[0].command
    assert len(batches[0]) == 6
    assert len(batches[0].command) < 1000
    assert batches[0].container is entities[0]
    assert batches[0].passengers == tuple(entities[1:])


def test_packing_respects_limit_and_order() -> None:
    entities = mesh_to_billboards(build_mesh_preset("cube", 3.0))
    limit = 1500
    batches = pack_batches(entities, limit)
    assert len(batches) > 1
    assert all(len(b.command) <= limit for b in batches)
    flat = [e for b in batches for e in b.entities]
    assert len(flat) == len(entities)
    assert all(a is b for a, b in zip(flat, entities))

    # Every batch but the last is maximal.
    consumed = 0
    for batch in batches[:-1]:
        consumed += len(batch)
        grown = list(batch.entities) + [entities[consumed]]
        assert len(summon_command(grown)) > limit


def test_limit_fitting_one_entity_gives_one_per_command() -> None:
    entities = white_square_entities()
    limit = max(len(summon_command([e])) for e in entities)
    batches = pack_batches(entities, limit)
    assert len(batches) == len(entities)
    assert all(len(b.command) <= limit for b in batches)


def test_single_oversized_entity_raises() -> None:
    entities = white_square_entities()
    with pytest.raises(CommandTooLongError) as excinfo:
        pack_batches(entities, 50)
    assert excinfo.value.index == 0
    assert excinfo.value.length > 50
    assert excinfo.value.max_command_length == 50


def test_non_positive_limit_is_rejected() -> None:
    with pytest.raises(ValueError):
        pack_batches(white_square_entities(), 0)


def test_output_is_stable_across_runs() -> None:
    mesh = build_mesh_preset("l-shape", 2.0)
    first = summon_commands(mesh_to_billboards(mesh), 2000)
    second = summon_commands(mesh_to_billboards(mesh), 2000)
    assert first == second


def test_packed_commands_match_direct_serialization() -> None:
    entities = mesh_to_billboards(build_mesh_preset("cube", 3.0))
    for batch in pack_batches(entities, 1500):
        assert batch.command == summon_command(batch.entities)


def test_packing_serializes_each_entity_at_most_twice(monkeypatch) -> None:
    entities = mesh_to_billboards(build_mesh_preset("cube", 3.0))
    calls = []
    original = commands.entity_components

    def counting(entity):
        calls.append(entity)
        return original(entity)

    monkeypatch.setattr(commands, "entity_components", counting)
    pack_batches(entities, 1500)
    # At most once as a container and once as a passenger.
    assert len(calls) <= 2 * len(entities)


def test_oversized_entity_mid_sequence_reports_its_index() -> None:
    small = BillboardEntity(color=(1.0, 1.0, 1.0), transform=np.eye(4))
    big = BillboardEntity(color=(1.0, 1.0, 1.0), transform=np.full((4, 4), 0.1234567))
    limit = len(summon_command([small]))
    with pytest.raises(CommandTooLongError) as excinfo:
        pack_batches([small, small, big, small], limit)
    assert excinfo.value.index == 2
