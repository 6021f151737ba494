import pytest

from meshboard.core.commands import CommandTooLongError
from meshboard.core.pipeline import Pipeline, PipelineConfig
from meshboard.core.shading import Material
from meshboard.examples.synthetic import build_mesh_preset


class RecordingWriter:
    def __init__(self) -> None:
        self.batches = []
        self.closed = False

    def write_batch(self, batch) -> None:
        self.batches.append(batch)

    def close(self) -> None:
        self.closed = True


def test_pipeline_reports_stats() -> None:
    writer = RecordingWriter()
    pipeline = Pipeline(PipelineConfig(max_command_length=3000))
    stats = pipeline.run_to_writer(writer, build_mesh_preset("l-shape", 2.0))
    assert stats["polygons"] == 1
    assert stats["triangles"] == 4
    assert stats["billboards"] == 12
    assert stats["commands"] == len(writer.batches)
    assert writer.closed


def test_pipeline_closes_writer_on_failure() -> None:
    writer = RecordingWriter()
    pipeline = Pipeline(PipelineConfig(max_command_length=10))
    with pytest.raises(CommandTooLongError):
        pipeline.run_to_writer(writer, build_mesh_preset("square"))
    assert writer.closed
    assert writer.batches == []


def test_pipeline_material_override() -> None:
    pipeline = Pipeline(PipelineConfig(material=Material(color=(0.0, 0.0, 0.0))))
    entities = pipeline.billboards(build_mesh_preset("pyramid"))
    assert len(entities) == 6 * 3
    assert all(e.color == (0.0, 0.0, 0.0) for e in entities)
    assert len(pipeline.batches(build_mesh_preset("pyramid"))) == 1
