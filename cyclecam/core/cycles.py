"""
Cycle point generator: expands a canned cycle into rapid, linear and
dwell primitives at one hole location.
"""

from __future__ import annotations

import logging
from typing import Optional

from .cycle_model import CycleParameters, CycleType, MotionKind, MotionPrimitive

logger = logging.getLogger(__name__)

# Retract height above the last Z when a cycle never gives R
REFERENCE_PLANE_CLEARANCE = 5.0

# Spindle reversal at the bottom of a tapping cycle (s)
TAP_REVERSAL_DWELL = 0.1

# Peck increment used when G83 has no Q word
DEFAULT_PECK_INCREMENT = 5.0

# Upper bound on intermediate pecks for one hole
MAX_PECK_ITERATIONS = 10_000

# Cycle types with a dedicated motion shape
_SPECIFIC_SHAPES = frozenset({
    CycleType.DRILLING,
    CycleType.DRILLING_DWELL,
    CycleType.PECK_DRILLING,
    CycleType.RIGHT_TAPPING,
    CycleType.LEFT_TAPPING,
})


def uses_fallback_shape(cycle_type: CycleType) -> bool:
    """True if the cycle is drawn with the generic drilling shape."""
    return cycle_type not in _SPECIFIC_SHAPES


def _rapid(x: float, y: float, z: float) -> MotionPrimitive:
    return MotionPrimitive(x, y, z, MotionKind.RAPID)


def _linear(x: float, y: float, z: float, feed: Optional[float]) -> MotionPrimitive:
    return MotionPrimitive(x, y, z, MotionKind.LINEAR, feed_rate=feed)


def _dwell(x: float, y: float, z: float, seconds: float) -> MotionPrimitive:
    return MotionPrimitive(x, y, z, MotionKind.DWELL, dwell_seconds=seconds)


def _drilling(x, y, z, r, params: CycleParameters) -> list[MotionPrimitive]:
    return [
        _rapid(x, y, r),
        _linear(x, y, z, params.f),
        _rapid(x, y, r),
    ]


def _drilling_dwell(x, y, z, r, params: CycleParameters) -> list[MotionPrimitive]:
    return [
        _rapid(x, y, r),
        _linear(x, y, z, params.f),
        _dwell(x, y, z, params.p or 0.0),
        _rapid(x, y, r),
    ]


def peck_depths(z: float, r: float, q: Optional[float]) -> list[float]:
    """
    Depths of the intermediate pecks between R and Z.

    Each depth is computed from R rather than accumulated so long holes do
    not drift. A missing Q uses DEFAULT_PECK_INCREMENT; Q <= 0 drills in a
    single pass. The list never holds more than MAX_PECK_ITERATIONS entries.
    """
    increment = DEFAULT_PECK_INCREMENT if q is None else q
    if increment <= 0:
        return []

    depths: list[float] = []
    step = 1
    depth = r - increment
    while depth > z:
        if step > MAX_PECK_ITERATIONS:
            logger.warning(
                "Peck drilling capped at %d pecks (Q=%.4f, R=%.3f, Z=%.3f)",
                MAX_PECK_ITERATIONS, increment, r, z,
            )
            break
        depths.append(depth)
        step += 1
        depth = r - step * increment
    return depths


def _peck_drilling(x, y, z, r, params: CycleParameters) -> list[MotionPrimitive]:
    points = [_rapid(x, y, r)]
    for depth in peck_depths(z, r, params.q):
        points.append(_linear(x, y, depth, params.f))
        points.append(_rapid(x, y, r))
        points.append(_rapid(x, y, depth))
    points.append(_linear(x, y, z, params.f))
    points.append(_rapid(x, y, r))
    return points


def _tapping(x, y, z, r, params: CycleParameters) -> list[MotionPrimitive]:
    # Retract at cutting feed
    return [
        _rapid(x, y, r),
        _linear(x, y, z, params.f),
        _dwell(x, y, z, TAP_REVERSAL_DWELL),
        _linear(x, y, r, params.f),
    ]


_GENERATORS = {
    CycleType.DRILLING: _drilling,
    CycleType.DRILLING_DWELL: _drilling_dwell,
    CycleType.PECK_DRILLING: _peck_drilling,
    CycleType.RIGHT_TAPPING: _tapping,
    CycleType.LEFT_TAPPING: _tapping,
}


def generate_cycle_points(
    cycle_type: CycleType,
    x: float,
    y: float,
    z: float,
    r: float,
    params: CycleParameters,
) -> list[MotionPrimitive]:
    """
    Expand one cycle at (x, y) into motion primitives.

    Boring variants, back boring and custom cycles use the drilling shape;
    back boring keeps I/J/K in its parameters only.
    Every call returns a new list.
    """
    generator = _GENERATORS.get(cycle_type, _drilling)
    return generator(x, y, z, r, params)
