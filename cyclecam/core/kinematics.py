"""
3-axis kinematics helpers for synthesized tool paths.

Features:
- Machine configuration (JSON based): travel per axis, feed ceilings and
  the clearance used for cycles that give no R word
- Motion primitives -> preview polyline points
- Arc sampling for full-circle contours
- Travel checking and motion time estimate
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

import numpy as np

from .cycle_model import MotionKind, MotionPrimitive
from .cycles import REFERENCE_PLANE_CLEARANCE


@dataclass
class AxisLimits:
    """Travel range of one axis, mm."""
    min: float = -9999.0
    max: float = 9999.0

    def violation(self, axis: str, value: float) -> Optional[str]:
        """Message describing how ``value`` leaves the range, None if inside."""
        if value < self.min:
            return f"{axis} limit exceeded: {value:.3f} < {self.min:.3f}"
        if value > self.max:
            return f"{axis} limit exceeded: {value:.3f} > {self.max:.3f}"
        return None


def _default_travel() -> dict[str, AxisLimits]:
    return {
        "X": AxisLimits(-500.0, 500.0),
        "Y": AxisLimits(-300.0, 300.0),
        "Z": AxisLimits(-200.0, 100.0),
    }


@dataclass
class MachineConfig:
    """Machine the cycles run on."""
    name: str = "Default 3-Axis Mill"
    travel: dict[str, AxisLimits] = field(default_factory=_default_travel)
    max_rapid_feed: float = 10000.0    # mm/min
    max_cutting_feed: float = 5000.0   # mm/min
    # Height of the default R plane above the Z at cycle start, mm
    reference_clearance: float = REFERENCE_PLANE_CLEARANCE

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MachineConfig":
        """Build from parsed JSON; missing keys and axes keep their defaults."""
        defaults = cls()
        travel = _default_travel()
        for axis, limits in data.get("travel", {}).items():
            travel[axis.upper()] = AxisLimits(**limits)
        return cls(
            name=data.get("name", defaults.name),
            travel=travel,
            max_rapid_feed=data.get("max_rapid_feed", defaults.max_rapid_feed),
            max_cutting_feed=data.get("max_cutting_feed", defaults.max_cutting_feed),
            reference_clearance=data.get("reference_clearance", defaults.reference_clearance),
        )

    @classmethod
    def from_json(cls, path: str | Path) -> "MachineConfig":
        """Load configuration from JSON file."""
        path = Path(path)
        if not path.exists():
            return cls()  # Return default
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def to_json(self, path: str | Path) -> None:
        """Save configuration to JSON file."""
        with open(Path(path), "w", encoding="utf-8") as f:
            json.dump(asdict(self), f, indent=2)

    def limit_errors(self, x: float, y: float, z: float) -> list[str]:
        """One message per axis whose travel the point leaves."""
        errors = []
        for axis, value in zip("XYZ", (x, y, z)):
            limits = self.travel.get(axis)
            if limits is None:
                continue
            message = limits.violation(axis, value)
            if message:
                errors.append(message)
        return errors


# ============================================================================
# Arc interpolation
# ============================================================================

def arc_points_xy(
    start: np.ndarray,
    end: np.ndarray,
    center: np.ndarray,
    clockwise: bool,
    num_samples: int = 32,
) -> np.ndarray:
    """
    Sample an arc in the XY plane (G17). start/end/center are (3,) arrays.
    Coincident start and end give a full circle.
    """
    sx, sy = start[0], start[1]
    ex, ey = end[0], end[1]
    cx, cy = center[0], center[1]
    start_angle = np.arctan2(sy - cy, sx - cx)
    end_angle = np.arctan2(ey - cy, ex - cx)
    radius = np.sqrt((sx - cx) ** 2 + (sy - cy) ** 2)
    if clockwise:
        if end_angle >= start_angle:
            end_angle -= 2 * np.pi
    else:
        if end_angle <= start_angle:
            end_angle += 2 * np.pi
    t = np.linspace(0, 1, num_samples, endpoint=True)
    angles = start_angle + t * (end_angle - start_angle)
    z = np.linspace(start[2], end[2], num_samples, endpoint=True)
    x = cx + radius * np.cos(angles)
    y = cy + radius * np.sin(angles)
    return np.column_stack((x, y, z))


# ============================================================================
# Primitive processing
# ============================================================================

def primitives_to_points(primitives: Iterable[MotionPrimitive]) -> np.ndarray:
    """
    Convert primitives to a single (N, 3) preview polyline. Dwells and
    repeated positions are dropped.
    """
    points = []
    for primitive in primitives:
        if primitive.kind is MotionKind.DWELL:
            continue
        position = primitive.position
        if points and np.allclose(points[-1], position):
            continue
        points.append(position)
    if not points:
        return np.zeros((0, 3), dtype=np.float64)
    return np.array(points, dtype=np.float64)


def check_primitive_limits(
    primitives: Iterable[MotionPrimitive],
    config: Optional[MachineConfig] = None,
) -> tuple[bool, list[str]]:
    """Check every primitive against the machine axis limits."""
    config = config or MachineConfig()
    errors: list[str] = []
    for primitive in primitives:
        errors.extend(config.limit_errors(primitive.x, primitive.y, primitive.z))
    return len(errors) == 0, errors


def motion_summary(
    primitives: Sequence[MotionPrimitive],
    config: Optional[MachineConfig] = None,
) -> dict[str, float]:
    """
    Distances and time estimate of a primitive sequence. Distance is
    measured from the first primitive; rapids run at max_rapid_feed and
    feed moves at their own feed, clamped to max_cutting_feed.
    """
    config = config or MachineConfig()
    rapid_distance = 0.0
    feed_distance = 0.0
    dwell_time = 0.0
    minutes = 0.0

    previous: Optional[np.ndarray] = None
    for primitive in primitives:
        position = primitive.position
        if primitive.kind is MotionKind.DWELL:
            dwell_time += primitive.dwell_seconds or 0.0
        elif previous is not None:
            distance = float(np.linalg.norm(position - previous))
            if primitive.kind is MotionKind.RAPID:
                rapid_distance += distance
                minutes += distance / config.max_rapid_feed
            else:
                feed_distance += distance
                feed = primitive.feed_rate or config.max_cutting_feed
                minutes += distance / min(feed, config.max_cutting_feed)
        previous = position

    return {
        "rapid_distance": rapid_distance,
        "feed_distance": feed_distance,
        "dwell_time": dwell_time,
        "estimated_time": minutes * 60.0 + dwell_time,  # seconds
    }
