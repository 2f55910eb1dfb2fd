"""
G-code synthesizer: writes the canonical line for a canned cycle, and the
per-cycle parameter field table used to build parameter sets.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .cycle_model import CycleParameters, CycleType

logger = logging.getLogger(__name__)


def format_number(value: float, decimals: int = 3) -> str:
    """Fixed-point formatting that never prints a negative zero."""
    text = f"{value:.{decimals}f}"
    if text.startswith("-") and float(text) == 0:
        text = text[1:]
    return text


def synthesize(cycle_type: CycleType, params: CycleParameters) -> str:
    """
    Build one G-code line for a cycle.

    Words follow the order X Y Z R Q P F, then S for tapping and I J K for
    back boring. Q and P are written only when greater than zero, I and J
    only when non-zero.
    """
    words = [cycle_type.operation]
    if cycle_type is CycleType.CUSTOM:
        logger.warning("Custom cycle written as %s", cycle_type.operation)

    if params.x is not None:
        words.append(f"X{format_number(params.x)}")
    if params.y is not None:
        words.append(f"Y{format_number(params.y)}")
    if params.z is not None:
        words.append(f"Z{format_number(params.z)}")
    if params.r is not None:
        words.append(f"R{format_number(params.r)}")

    if params.q is not None and params.q > 0:
        words.append(f"Q{format_number(params.q)}")
    if params.p is not None and params.p > 0:
        words.append(f"P{format_number(params.p)}")
    if params.f is not None:
        words.append(f"F{format_number(params.f, 0)}")

    if cycle_type.is_tapping and params.s is not None:
        words.append(f"S{format_number(params.s, 0)}")

    if cycle_type is CycleType.BACK_BORING:
        if params.i is not None and params.i != 0:
            words.append(f"I{format_number(params.i)}")
        if params.j is not None and params.j != 0:
            words.append(f"J{format_number(params.j)}")
        if params.k is not None:
            words.append(f"K{format_number(params.k)}")

    return " ".join(words)


# ============================================================================
# Parameter field table
# ============================================================================

@dataclass(frozen=True)
class ParameterField:
    """Describes one editable cycle word."""
    name: str
    label: str
    description: str
    default: float
    unit: Optional[str] = None
    required: bool = False
    min: Optional[float] = None
    step: Optional[float] = None


_COMMON_FIELDS = (
    ParameterField("x", "X", "X position", 0.0),
    ParameterField("y", "Y", "Y position", 0.0),
    ParameterField("z", "Z", "Final depth", -10.0, unit="mm", required=True),
    ParameterField("r", "R", "Reference plane", 2.0, unit="mm", required=True),
    ParameterField("f", "F", "Feed rate", 100.0, unit="mm/min", required=True),
)

_DWELL_REQUIRED = ParameterField("p", "P", "Dwell time", 0.5, unit="s", required=True, min=0.0, step=0.1)
_DWELL_OPTIONAL = ParameterField("p", "P", "Dwell time", 0.0, unit="s", min=0.0, step=0.1)
_SPINDLE = ParameterField("s", "S", "Spindle speed", 500.0, unit="rpm", required=True, min=1.0)

CYCLE_PARAMETER_FIELDS: dict[CycleType, tuple[ParameterField, ...]] = {
    CycleType.DRILLING: _COMMON_FIELDS,
    CycleType.DRILLING_DWELL: _COMMON_FIELDS + (_DWELL_REQUIRED,),
    CycleType.PECK_DRILLING: _COMMON_FIELDS + (
        ParameterField("q", "Q", "Peck increment", 2.0, unit="mm", required=True, min=0.1, step=0.1),
        _DWELL_OPTIONAL,
    ),
    CycleType.RIGHT_TAPPING: _COMMON_FIELDS + (_DWELL_OPTIONAL, _SPINDLE),
    CycleType.LEFT_TAPPING: _COMMON_FIELDS + (_DWELL_OPTIONAL, _SPINDLE),
    CycleType.BORING: _COMMON_FIELDS,
    CycleType.BORING_DWELL: _COMMON_FIELDS + (_DWELL_REQUIRED,),
    CycleType.BACK_BORING: _COMMON_FIELDS + (
        ParameterField("i", "I", "X shift", 0.0, unit="mm"),
        ParameterField("j", "J", "Y shift", 0.0, unit="mm"),
        ParameterField("k", "K", "Safety distance", 2.0, unit="mm", required=True),
    ),
    CycleType.BORING_WITH_RETRACT: _COMMON_FIELDS + (_DWELL_REQUIRED,),
    CycleType.CUSTOM: _COMMON_FIELDS,
}

_TITLES = {
    CycleType.DRILLING: "Drilling",
    CycleType.DRILLING_DWELL: "Drilling with Dwell",
    CycleType.PECK_DRILLING: "Peck Drilling",
    CycleType.RIGHT_TAPPING: "Right-hand Tapping",
    CycleType.LEFT_TAPPING: "Left-hand Tapping",
    CycleType.BORING: "Boring",
    CycleType.BORING_DWELL: "Boring with Dwell",
    CycleType.BACK_BORING: "Back Boring",
    CycleType.BORING_WITH_RETRACT: "Boring with Retract",
    CycleType.CUSTOM: "Custom Cycle",
}


def cycle_title(cycle_type: CycleType) -> str:
    return _TITLES[cycle_type]


def cycle_operation_type(cycle_type: CycleType) -> str:
    """Milling operation a cycle belongs to: drill, thread_mill or pocket."""
    if cycle_type.is_tapping:
        return "thread_mill"
    if cycle_type in (
        CycleType.BORING,
        CycleType.BORING_DWELL,
        CycleType.BACK_BORING,
        CycleType.BORING_WITH_RETRACT,
    ):
        return "pocket"
    return "drill"


def default_parameters(cycle_type: CycleType) -> CycleParameters:
    """Parameter set filled with the default of every field of the cycle."""
    params = CycleParameters()
    for parameter_field in CYCLE_PARAMETER_FIELDS[cycle_type]:
        setattr(params, parameter_field.name, parameter_field.default)
    return params


def missing_required(cycle_type: CycleType, params: CycleParameters) -> list[str]:
    """Labels of required fields that have no value."""
    return [
        parameter_field.label
        for parameter_field in CYCLE_PARAMETER_FIELDS[cycle_type]
        if parameter_field.required and getattr(params, parameter_field.name) is None
    ]
