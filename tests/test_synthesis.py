"""Tests for the cycle line synthesizer and parameter tables."""

import pytest

from cyclecam.core.cycle_model import CycleParameters, CycleType, validate_parameters
from cyclecam.core.synthesis import (
    CYCLE_PARAMETER_FIELDS,
    cycle_operation_type,
    cycle_title,
    default_parameters,
    format_number,
    missing_required,
    synthesize,
)


def test_zero_q_is_omitted_and_dwell_is_written():
    params = CycleParameters(x=10, y=20, z=-5, r=2, q=0, p=0.5, f=150)
    assert synthesize(CycleType.DRILLING, params) == "G81 X10.000 Y20.000 Z-5.000 R2.000 P0.500 F150"


def test_peck_line():
    params = CycleParameters(x=0, y=0, z=-20, r=2, q=5, f=90)
    assert synthesize(CycleType.PECK_DRILLING, params) == "G83 X0.000 Y0.000 Z-20.000 R2.000 Q5.000 F90"


def test_spindle_speed_only_for_tapping():
    params = CycleParameters(x=0, y=0, z=-10, r=2, f=100, s=500)
    assert synthesize(CycleType.RIGHT_TAPPING, params) == "G84 X0.000 Y0.000 Z-10.000 R2.000 F100 S500"
    assert synthesize(CycleType.LEFT_TAPPING, params).startswith("G74 ")
    assert "S" not in synthesize(CycleType.DRILLING, params)


def test_back_boring_shift_words():
    params = CycleParameters(x=1, y=1, z=-5, r=1, f=60, i=0, j=1.5, k=2)
    line = synthesize(CycleType.BACK_BORING, params)
    assert line == "G87 X1.000 Y1.000 Z-5.000 R1.000 F60 J1.500 K2.000"


def test_shift_words_ignored_for_other_cycles():
    params = CycleParameters(z=-5, i=1, j=1, k=1)
    assert synthesize(CycleType.BORING, params) == "G85 Z-5.000"


def test_missing_words_are_left_out():
    assert synthesize(CycleType.DRILLING, CycleParameters(z=-1)) == "G81 Z-1.000"


def test_custom_cycle_written_as_g88():
    assert synthesize(CycleType.CUSTOM, CycleParameters(z=-1)) == "G88 Z-1.000"


def test_feed_is_rounded():
    assert synthesize(CycleType.DRILLING, CycleParameters(f=99.6)) == "G81 F100"


def test_format_number_has_no_negative_zero():
    assert format_number(-0.0001) == "0.000"
    assert format_number(-0.0) == "0.000"
    assert format_number(-1.25) == "-1.250"
    assert format_number(2.5, 0) == "2"


def test_default_parameters():
    params = default_parameters(CycleType.PECK_DRILLING)
    assert params.present() == {"x": 0.0, "y": 0.0, "z": -10.0, "r": 2.0, "q": 2.0, "p": 0.0, "f": 100.0}
    assert missing_required(CycleType.PECK_DRILLING, params) == []


def test_missing_required():
    params = CycleParameters(x=0, y=0, z=-3)
    assert missing_required(CycleType.RIGHT_TAPPING, params) == ["R", "F", "S"]


def test_every_cycle_has_fields_and_title():
    for cycle_type in CycleType:
        names = [f.name for f in CYCLE_PARAMETER_FIELDS[cycle_type]]
        assert names[:5] == ["x", "y", "z", "r", "f"]
        assert cycle_title(cycle_type)


@pytest.mark.parametrize("cycle_type, expected", [
    (CycleType.DRILLING, "drill"),
    (CycleType.PECK_DRILLING, "drill"),
    (CycleType.RIGHT_TAPPING, "thread_mill"),
    (CycleType.LEFT_TAPPING, "thread_mill"),
    (CycleType.BORING, "pocket"),
    (CycleType.BACK_BORING, "pocket"),
    (CycleType.CUSTOM, "drill"),
])
def test_operation_type(cycle_type, expected):
    assert cycle_operation_type(cycle_type) == expected


def test_validate_parameters_flags_unused_words():
    messages = validate_parameters(CycleType.DRILLING, CycleParameters(z=-1, q=1))
    assert len(messages) == 1
    assert messages[0].startswith("Q ")
    assert validate_parameters(CycleType.CUSTOM, CycleParameters(q=1, s=2, k=3)) == []
