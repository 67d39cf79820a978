import os

import pytest

from export import ExportSequence, ExportState, export_filename

TIMESTAMP = 1700000000000


class FakeRasterWriter:
    def __init__(self, fail=False):
        self.paths = []
        self.fail = fail

    def __call__(self, path):
        self.paths.append(path)
        if self.fail:
            raise OSError("disk full")
        with open(path, "wb") as f:
            f.write(b"png")


@pytest.fixture
def export_setup(make_simulation, tmp_path):
    def _make(fail=False, **overrides):
        sim = make_simulation(**overrides)
        writer = FakeRasterWriter(fail=fail)
        sequence = ExportSequence(sim, writer, output_dir=str(tmp_path), clock=lambda: TIMESTAMP)
        return sim, writer, sequence
    return _make


def test_export_filename():
    assert export_filename(TIMESTAMP, "svg") == "flow-field-1700000000000.svg"


def test_sequence_runs_phases_in_order(export_setup, tmp_path):
    sim, writer, sequence = export_setup(particle_count=5)
    png_path = os.path.join(str(tmp_path), "flow-field-1700000000000.png")
    svg_path = os.path.join(str(tmp_path), "flow-field-1700000000000.svg")

    assert sequence.start()
    assert sim.exporting
    assert sequence.state is ExportState.CAPTURING_RASTER
    assert writer.paths == []

    assert sequence.advance() is ExportState.CAPTURING_VECTOR
    assert writer.paths == [png_path]
    assert not os.path.exists(svg_path)

    assert sequence.advance() is ExportState.DONE
    assert os.path.exists(svg_path)
    assert sim.exporting

    assert sequence.advance() is ExportState.IDLE
    assert not sim.exporting
    assert not sequence.active


def test_svg_file_matches_serialized_state(export_setup, tmp_path):
    sim, _, sequence = export_setup(particle_count=5)
    sequence.run_to_completion()

    with open(sequence.path_for("svg"), encoding="utf-8") as f:
        assert f.read() == sequence.last_svg
    assert sequence.last_svg.endswith("</svg>")


def test_simulation_is_frozen_while_exporting(export_setup):
    sim, _, sequence = export_setup(particle_count=5, turbulence=1.0)
    sequence.start()
    before = sim.particles.positions.copy()

    assert sim.step() is False
    assert (sim.particles.positions == before).all()
    assert sim.resize(50, 50) is False

    sequence.advance()
    sequence.advance()
    sequence.advance()
    assert sim.step() is True


def test_second_start_is_rejected(export_setup):
    _, _, sequence = export_setup()
    assert sequence.start(timestamp=1)
    assert not sequence.start(timestamp=2)
    assert sequence.timestamp == 1
    assert not sequence.run_to_completion()


def test_failed_raster_write_still_completes(export_setup):
    sim, writer, sequence = export_setup(fail=True)

    assert sequence.run_to_completion()

    assert len(writer.paths) == 1
    assert os.path.exists(sequence.path_for("svg"))
    assert not sim.exporting
    assert sequence.state is ExportState.IDLE


def test_explicit_timestamp_is_shared_by_both_files(export_setup):
    _, writer, sequence = export_setup()
    sequence.run_to_completion(timestamp=42)
    assert writer.paths[0].endswith("flow-field-42.png")
    assert sequence.path_for("svg").endswith("flow-field-42.svg")


def test_resize_during_export_takes_effect_after_it(export_setup):
    sim, _, sequence = export_setup(width=300, height=300)
    sequence.start()
    sim.resize(640, 480)
    sequence.advance()
    sequence.advance()
    assert (sim.width, sim.height) == (300.0, 300.0)

    sequence.advance()

    assert (sim.width, sim.height) == (640.0, 480.0)
