"""Tests for the modal fixed-cycle interpreter."""

import numpy as np
import pytest

from cyclecam.core import (
    CycleParameters,
    CycleType,
    FixedCycleParser,
    MotionKind,
    WorkPlane,
    generate_fixed_cycle_toolpaths,
    is_fixed_cycle,
    parse_file,
    parse_string,
    synthesize,
)
from cyclecam.core.kinematics import MachineConfig


@pytest.fixture
def parser():
    return FixedCycleParser()


def test_cycle_start_produces_drilling_motion(parser):
    result = parser.parse_line("G81 X10 Y20 Z-5 R2 F150")
    assert result.valid
    assert result.type is CycleType.DRILLING
    assert result.operation == "G81"
    assert result.source_text == "G81 X10 Y20 Z-5 R2 F150"
    assert [p.kind for p in result.points] == [MotionKind.RAPID, MotionKind.LINEAR, MotionKind.RAPID]
    assert [(p.x, p.y, p.z) for p in result.points] == [(10, 20, 2), (10, 20, -5), (10, 20, 2)]
    assert result.points[1].feed_rate == 150


def test_continuation_inherits_cycle_words(parser):
    parser.parse_line("G81 X0 Y0 Z-10 R2 F100")
    result = parser.parse_line("X20 Y0")
    assert result is not None
    assert result.type is CycleType.DRILLING
    assert result.params.x == 20
    assert result.params.y == 0
    assert result.params.z == -10
    assert result.params.r == 2
    assert result.params.f == 100


def test_continuation_overrides_only_given_words(parser):
    parser.parse_line("G83 X0 Y0 Z-10 R2 Q3 F100")
    result = parser.parse_line("X5 Z-12")
    assert result.params.z == -12
    assert result.params.q == 3
    assert result.params.x == 5


def test_continuation_with_motion_word(parser):
    parser.parse_line("G81 X0 Y0 Z-10 R2 F100")
    result = parser.parse_line("G0 X7 Y3")
    assert result is not None
    assert (result.params.x, result.params.y) == (7, 3)


def test_arc_word_does_not_continue_cycle(parser):
    parser.parse_line("G81 X0 Y0 Z-10 R2 F100")
    assert parser.parse_line("G2 X7 Y3 I1 J0") is None


def test_result_params_are_snapshots(parser):
    first = parser.parse_line("G81 X0 Y0 Z-10 R2 F100")
    parser.parse_line("X20 Z-4")
    assert first.params.x == 0
    assert first.params.z == -10


def test_cancel_ends_continuation(parser):
    parser.parse_line("G81 X0 Y0 Z-10 R2 F100")
    assert parser.parse_line("G80") is None
    assert parser.state.active_cycle is None
    assert parser.parse_line("X10 Y10") is None


def test_cancel_after_motion_code_on_same_line(parser):
    parser.parse_line("G81 X0 Y0 Z-10 R2 F100")
    assert parser.parse_line("G0 G80 X50 Y50") is None
    assert parser.state.active_cycle is None
    assert parser.state.active_cycle_params.present() == {}
    assert np.allclose(parser.state.last_position[:2], [50.0, 50.0])
    assert parser.parse_line("X10 Y10") is None


def test_cancel_and_new_cycle_on_same_line(parser):
    parser.parse_line("G81 X0 Y0 Z-10 R2 F100")
    result = parser.parse_line("G80 G83 X1 Y1 Z-9 Q3")
    assert result.type is CycleType.PECK_DRILLING
    assert result.params.f is None
    assert result.params.q == 3


def test_cycle_code_after_motion_code(parser):
    result = parser.parse_line("G0 G81 X1 Y2 Z-3 R1 F80")
    assert result is not None
    assert result.type is CycleType.DRILLING
    assert (result.params.x, result.params.y) == (1, 2)


def test_new_cycle_replaces_parameters(parser):
    parser.parse_line("G81 X0 Y0 Z-10 R2 F100")
    result = parser.parse_line("G82 X5 Y5 Z-3 P1")
    assert result.type is CycleType.DRILLING_DWELL
    assert result.params.z == -3
    assert result.params.p == 1
    assert result.params.r is None
    assert result.params.f is None


def test_incremental_position(parser):
    parser.parse_line("G0 X10")
    parser.parse_line("G91")
    parser.parse_line("G0 X5")
    assert parser.state.last_position[0] == pytest.approx(15.0)


def test_incremental_cycle_positions(parser):
    parser.parse_line("G0 X0 Y0")
    parser.parse_line("G91")
    first = parser.parse_line("G81 X10 Y0 Z-5 R1 F50")
    second = parser.parse_line("X10")
    assert first.params.x == pytest.approx(10.0)
    assert second.params.x == pytest.approx(20.0)
    # Depth words are taken as given
    assert second.params.z == -5


def test_distance_mode_switches_back(parser):
    parser.parse_line("G91")
    assert parser.state.incremental_mode
    parser.parse_line("G90")
    assert not parser.state.incremental_mode


def test_plane_selection(parser):
    parser.parse_line("G18")
    assert parser.state.work_plane is WorkPlane.ZX
    parser.parse_line("G19")
    assert parser.state.work_plane is WorkPlane.YZ
    parser.parse_line("G17")
    assert parser.state.work_plane is WorkPlane.XY


def test_default_reference_plane_from_last_z(parser):
    parser.parse_line("G0 Z20")
    result = parser.parse_line("G81 X0 Y0 Z-5 F100")
    assert result.params.r is None
    assert result.points[0].z == pytest.approx(25.0)
    assert result.points[-1].z == pytest.approx(25.0)


def test_default_reference_plane_without_motion(parser):
    result = parser.parse_line("G81 X0 Y0 Z-5 F100")
    assert result.points[0].z == pytest.approx(5.0)


def test_reference_clearance_from_machine_config():
    parser = FixedCycleParser(config=MachineConfig(reference_clearance=2.0))
    parser.parse_line("G0 Z10")
    result = parser.parse_line("G81 X0 Y0 Z-5 F100")
    assert result.points[0].z == pytest.approx(12.0)
    parser.reset()
    assert parser.state.default_reference_plane == 2.0


def test_bare_coordinates_without_cycle(parser):
    assert parser.parse_line("X10 Y10") is None
    assert np.allclose(parser.state.last_position, [0.0, 0.0, 0.0])


def test_modal_word_before_cycle_code(parser):
    result = parser.parse_line("G98 G81 X1 Y2 Z-3 R1 F80")
    assert result is not None
    assert result.type is CycleType.DRILLING


def test_distance_word_on_cycle_line(parser):
    parser.parse_line("G0 X10 Y0")
    result = parser.parse_line("G91 G81 X5 Y0 Z-3 R1 F80")
    assert parser.state.incremental_mode
    assert result.params.x == pytest.approx(15.0)


def test_unknown_canned_code_is_custom(parser):
    result = parser.parse_line("G73 X0 Y0 Z-5 R1 F100")
    assert result.type is CycleType.CUSTOM
    assert result.operation == "G73"
    assert result.fallback
    assert len(result.points) == 3


def test_boring_uses_generic_shape(parser):
    result = parser.parse_line("G85 X0 Y0 Z-5 R1 F100")
    assert result.type is CycleType.BORING
    assert result.fallback
    assert len(result.points) == 3


def test_dedicated_shapes_are_not_fallback(parser):
    assert not parser.parse_line("G84 X0 Y0 Z-5 R1 F100 S500").fallback


def test_result_without_active_cycle(parser):
    result = parser.generate_cycle_result("X1")
    assert not result.valid
    assert result.error == "No active fixed cycle"
    assert result.points == ()


def test_reset_restores_defaults(parser):
    parser.parse_line("G91")
    parser.parse_line("G18")
    parser.parse_line("G81 X1 Y1 Z-1 R1 F10")
    parser.reset()
    state = parser.state
    assert state.active_cycle is None
    assert state.work_plane is WorkPlane.XY
    assert not state.incremental_mode
    assert np.allclose(state.last_position, 0.0)
    assert state.to_dict()["cycle_params"] == {}


def test_parsers_do_not_share_state():
    first = FixedCycleParser()
    second = FixedCycleParser()
    first.parse_line("G81 X0 Y0 Z-10 R2 F100")
    assert second.parse_line("X20 Y0") is None


def test_parse_string_skips_blank_and_comment_lines():
    program = "\n".join([
        "; header",
        "G90 G17",
        "",
        "G0 Z10",
        "G81 X0 Y0 Z-5 R2 F100",
        "X10",
        "X20 (third hole)",
        "G80",
        "X30",
    ])
    results, state = parse_string(program)
    assert [r.params.x for r in results] == [0, 10, 20]
    assert state.active_cycle is None


def test_parse_file(tmp_path):
    path = tmp_path / "holes.nc"
    path.write_text("G83 X1 Y1 Z-12 R0 Q5 F90\nX2 Y2\n", encoding="utf-8")
    results = parse_file(path)
    assert len(results) == 2
    results, state = parse_file(path, return_state=True)
    assert state.active_cycle is CycleType.PECK_DRILLING


def test_generate_fixed_cycle_toolpaths():
    points = generate_fixed_cycle_toolpaths([
        "G81 X0 Y0 Z-5 R2 F100",
        "X10 Y0",
        "G80",
    ])
    assert len(points) == 6
    assert points[3].x == 10


def test_is_fixed_cycle():
    assert is_fixed_cycle("G81 X0 Y0 Z-1 R1 F10")
    assert is_fixed_cycle("G99 G83 X0 Y0 Z-10 R1 Q2 F10")
    assert not is_fixed_cycle("G0 X1")
    assert not is_fixed_cycle("G80")
    assert not is_fixed_cycle("X1 Y1")


def _round_trip_params(cycle_type):
    params = CycleParameters(x=12.5, y=-4.25, z=-8.0, r=3.0, f=200.0)
    if cycle_type is CycleType.PECK_DRILLING:
        params.q = 2.0
    if cycle_type in (CycleType.DRILLING_DWELL, CycleType.BORING_DWELL,
                      CycleType.BORING_WITH_RETRACT):
        params.p = 0.5
    if cycle_type.is_tapping:
        params.s = 800.0
    if cycle_type is CycleType.BACK_BORING:
        params.i = 1.5
        params.j = -0.5
        params.k = 2.0
    return params


@pytest.mark.parametrize("cycle_type", list(CycleType))
def test_synthesized_line_parses_back(cycle_type):
    params = _round_trip_params(cycle_type)
    result = FixedCycleParser().parse_line(synthesize(cycle_type, params))
    assert result is not None
    assert result.type is cycle_type
    for name, value in params.present().items():
        assert getattr(result.params, name) == pytest.approx(value)
