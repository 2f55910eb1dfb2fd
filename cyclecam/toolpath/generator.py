"""
Generic contour toolpath generator.

Turns an element geometry and cutting settings into multi-level contour
G-code plus the equivalent motion primitives for preview.

Features:
- Circle, closed/open path, rectangle and bounding-box contours
- Inside/outside tool radius offset (shapely for polygons)
- Z stepping with the last step clamped to the target depth
- Climb/conventional traversal
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Sequence

import numpy as np
from shapely.geometry import JOIN_STYLE, LinearRing, MultiPolygon, Polygon
from shapely.geometry.polygon import orient

from ..core.cycle_model import MotionKind, MotionPrimitive
from ..core.kinematics import arc_points_xy
from ..core.synthesis import format_number
from .geometry import ElementGeometry, element_depth

logger = logging.getLogger(__name__)

# Height above the cutting level for approach and retract moves, mm
APPROACH_CLEARANCE = 5.0

# Samples per full circle in the preview points
ARC_SAMPLES = 64


class OffsetSide(Enum):
    INSIDE = "inside"
    OUTSIDE = "outside"
    NONE = "none"


class CutDirection(Enum):
    CLIMB = "climb"
    CONVENTIONAL = "conventional"


@dataclass
class ToolpathSettings:
    """Cutting parameters for a contour."""
    tool_diameter: float = 6.0   # mm
    depth: float = 5.0           # mm, requested cut depth
    stepdown: float = 1.0        # mm per Z level
    feedrate: float = 1000.0     # mm/min
    plungerate: float = 300.0    # mm/min
    offset: OffsetSide = OffsetSide.OUTSIDE
    direction: CutDirection = CutDirection.CLIMB

    def __post_init__(self) -> None:
        self.offset = OffsetSide(self.offset)
        self.direction = CutDirection(self.direction)

    @property
    def tool_radius(self) -> float:
        return self.tool_diameter / 2.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ToolpathSettings":
        known = {name for name in cls.__dataclass_fields__}
        return cls(**{key: value for key, value in data.items() if key in known})

    @classmethod
    def from_json(cls, path: str | Path) -> "ToolpathSettings":
        """Load settings from JSON file."""
        path = Path(path)
        if not path.exists():
            return cls()  # Return default
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def to_json(self, path: str | Path) -> None:
        """Save settings to JSON file."""
        data = asdict(self)
        data["offset"] = self.offset.value
        data["direction"] = self.direction.value
        with open(Path(path), "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)


@dataclass
class ToolpathResult:
    """G-code text and preview primitives of one contour."""
    gcode: str
    points: list[MotionPrimitive] = field(default_factory=list)
    valid: bool = True
    error: Optional[str] = None
    fallback: bool = False  # bounding box stood in for unknown geometry


def _failure(message: str) -> ToolpathResult:
    logger.warning(message)
    return ToolpathResult(gcode=f"; {message}\n", points=[], valid=False, error=message)


def z_levels(depth: float, stepdown: float) -> list[float]:
    """
    Cutting levels below the surface: -stepdown, -2*stepdown, ... with the
    last level clamped to -depth.
    """
    if depth <= 0:
        return []
    if stepdown <= 0 or stepdown >= depth:
        return [-depth]
    count = math.ceil(depth / stepdown - 1e-9)
    return [-min(n * stepdown, depth) for n in range(1, count + 1)]


def _fmt(value: float) -> str:
    return format_number(value)


def _num(value: float) -> str:
    """Short number for comments (2.0 -> 2)."""
    return f"{value:g}"


def _at(geometry: ElementGeometry) -> str:
    cx, cy, cz = geometry.center
    return f"({_num(cx)}, {_num(cy)}, {_num(cz)})"


class ContourWriter:
    """Accumulates G-code lines and matching motion primitives."""

    def __init__(self, settings: ToolpathSettings):
        self.settings = settings
        self.lines: list[str] = []
        self.points: list[MotionPrimitive] = []

    def comment(self, text: str) -> None:
        self.lines.append(f"; {text}")

    def level(self, z: float) -> None:
        self.lines.append("")
        self.comment(f"Z Level: {_fmt(z)}")

    def approach(self, x: float, y: float, z: float) -> None:
        clear = z + APPROACH_CLEARANCE
        self.lines.append(f"G0 X{_fmt(x)} Y{_fmt(y)} Z{_fmt(clear)} ; Move above start position")
        self.points.append(MotionPrimitive(x, y, clear, MotionKind.RAPID))

    def plunge(self, x: float, y: float, z: float) -> None:
        feed = self.settings.plungerate
        self.lines.append(f"G1 Z{_fmt(z)} F{format_number(feed, 0)} ; Plunge to cutting depth")
        self.points.append(MotionPrimitive(x, y, z, MotionKind.LINEAR, feed_rate=feed))

    def cut(self, x: float, y: float, z: float, note: str) -> None:
        feed = self.settings.feedrate
        self.lines.append(f"G1 X{_fmt(x)} Y{_fmt(y)} F{format_number(feed, 0)} ; {note}")
        self.points.append(MotionPrimitive(x, y, z, MotionKind.LINEAR, feed_rate=feed))

    def full_circle(self, cx: float, cy: float, z: float, radius: float, clockwise: bool) -> None:
        """Full circle starting and ending at (cx + radius, cy)."""
        feed = self.settings.feedrate
        sx = cx + radius
        code = "G2" if clockwise else "G3"
        sense = "Clockwise" if clockwise else "Counter-clockwise"
        self.lines.append(
            f"{code} X{_fmt(sx)} Y{_fmt(cy)} I{_fmt(-radius)} J{_fmt(0.0)} "
            f"F{format_number(feed, 0)} ; {sense} full circle"
        )
        start = np.array([sx, cy, z])
        samples = arc_points_xy(start, start, np.array([cx, cy, z]), clockwise, ARC_SAMPLES + 1)
        for x, y, sample_z in samples[1:]:
            self.points.append(
                MotionPrimitive(float(x), float(y), float(sample_z), MotionKind.LINEAR, feed_rate=feed)
            )

    def retract(self, x: float, y: float, z: float) -> None:
        clear = z + APPROACH_CLEARANCE
        self.lines.append(f"G0 Z{_fmt(clear)} ; Retract")
        self.points.append(MotionPrimitive(x, y, clear, MotionKind.RAPID))

    def result(self, fallback: bool = False) -> ToolpathResult:
        return ToolpathResult(
            gcode="\n".join(self.lines) + "\n",
            points=self.points,
            fallback=fallback,
        )


def _machining_depth(geometry: ElementGeometry, settings: ToolpathSettings) -> float:
    return min(settings.depth, element_depth(geometry))


# ============================================================================
# Offsets
# ============================================================================

def offset_radius(radius: float, settings: ToolpathSettings) -> float:
    if settings.offset is OffsetSide.INSIDE:
        return max(0.0, radius - settings.tool_radius)
    if settings.offset is OffsetSide.OUTSIDE:
        return radius + settings.tool_radius
    return radius


def offset_size(width: float, height: float, settings: ToolpathSettings) -> tuple[float, float]:
    if settings.offset is OffsetSide.INSIDE:
        return width - settings.tool_diameter, height - settings.tool_diameter
    if settings.offset is OffsetSide.OUTSIDE:
        return width + settings.tool_diameter, height + settings.tool_diameter
    return width, height


def is_closed_path(path: Sequence[tuple[float, float]], element_type: str = "") -> bool:
    """
    True for a path that bounds an area: it ends where it starts or the
    element is a polygon, and its points enclose a non-zero area.
    """
    if len(set(path)) < 3:
        return False
    if path[0] != path[-1] and "polygon" not in element_type:
        return False
    return Polygon(path).area > 0


def offset_polygon(
    points: Sequence[tuple[float, float]],
    distance: float,
) -> list[tuple[float, float]]:
    """
    Grow (distance > 0) or shrink (distance < 0) a closed polygon with mitre
    joins. Returns the closed ring, oriented like the input and starting at
    the vertex nearest the input's first point; empty if it collapses.
    """
    ccw = LinearRing(points).is_ccw
    polygon = Polygon(points)
    if not polygon.is_valid:
        polygon = polygon.buffer(0)

    grown = polygon.buffer(distance, join_style=JOIN_STYLE.mitre)
    if grown.is_empty:
        return []
    if isinstance(grown, MultiPolygon):
        logger.warning("Offset split the contour; keeping the largest part")
        grown = max(grown.geoms, key=lambda part: part.area)

    grown = orient(grown, 1.0 if ccw else -1.0)
    ring = [(float(x), float(y)) for x, y in grown.exterior.coords[:-1]]
    distances = np.hypot(*(np.array(ring) - np.array(points[0])).T)
    first = int(np.argmin(distances))
    ring = ring[first:] + ring[:first]
    ring.append(ring[0])
    return ring


# ============================================================================
# Emitters
# ============================================================================

def _circle_toolpath(geometry: ElementGeometry, settings: ToolpathSettings) -> ToolpathResult:
    radius = geometry.radius
    if not radius:
        return _failure("Error: No radius defined for circular element")

    effective_radius = offset_radius(radius, settings)
    if effective_radius <= 0:
        return _failure(
            f"Cannot generate toolpath: radius ({_num(radius)}mm) too small for tool "
            f"diameter ({_num(settings.tool_diameter)}mm) with inside offset"
        )

    writer = ContourWriter(settings)
    writer.comment(
        f"Generic circular contour: {geometry.element_type} at {_at(geometry)}, "
        f"radius {_num(radius)}mm"
    )
    cx, cy, cz = (float(v) for v in geometry.center)
    clockwise = settings.direction is CutDirection.CONVENTIONAL

    for level in z_levels(_machining_depth(geometry, settings), settings.stepdown):
        z = cz + level
        writer.level(z)
        writer.approach(cx + effective_radius, cy, z)
        writer.plunge(cx + effective_radius, cy, z)
        writer.full_circle(cx, cy, z, effective_radius, clockwise)
        writer.retract(cx + effective_radius, cy, z)

    return writer.result()


def _path_toolpath(geometry: ElementGeometry, settings: ToolpathSettings) -> ToolpathResult:
    path = list(geometry.path)
    if len(path) < 2:
        return _failure("Error: Path has too few points")

    if settings.offset is not OffsetSide.NONE:
        if is_closed_path(path, geometry.element_type):
            inside = settings.offset is OffsetSide.INSIDE
            offset_path = offset_polygon(path, -settings.tool_radius if inside else settings.tool_radius)
            if not offset_path:
                return _failure(
                    f"Cannot generate toolpath: path contour too small for tool "
                    f"diameter ({_num(settings.tool_diameter)}mm) with inside offset"
                )
            path = offset_path
        else:
            logger.warning("Open path with %s offset is cut without offset", settings.offset.value)

    if settings.direction is CutDirection.CONVENTIONAL:
        path = path[::-1]

    writer = ContourWriter(settings)
    writer.comment(f"Generic path contour: {geometry.element_type} at {_at(geometry)}")
    cz = float(geometry.center[2])

    for level in z_levels(_machining_depth(geometry, settings), settings.stepdown):
        z = cz + level
        writer.level(z)
        first_x, first_y = path[0]
        writer.approach(first_x, first_y, z)
        writer.plunge(first_x, first_y, z)
        for index, (x, y) in enumerate(path[1:], start=1):
            writer.cut(x, y, z, f"Path point {index}")
        last_x, last_y = path[-1]
        writer.retract(last_x, last_y, z)

    return writer.result()


def _rectangle_toolpath(
    geometry: ElementGeometry,
    settings: ToolpathSettings,
    width: float,
    height: float,
    fallback: bool = False,
) -> ToolpathResult:
    rect_width, rect_height = offset_size(width, height, settings)
    if rect_width <= 0 or rect_height <= 0:
        return _failure(
            f"Cannot generate toolpath: dimensions ({_num(width)}x{_num(height)}mm) too small "
            f"for tool diameter ({_num(settings.tool_diameter)}mm) with inside offset"
        )

    writer = ContourWriter(settings)
    writer.comment(
        f"Generic rectangular contour: {geometry.element_type} at {_at(geometry)}, "
        f"size {_num(width)}x{_num(height)}mm"
    )
    cx, cy, cz = (float(v) for v in geometry.center)
    half_width = rect_width / 2
    half_height = rect_height / 2
    corners = [
        (cx - half_width, cy - half_height),
        (cx + half_width, cy - half_height),
        (cx + half_width, cy + half_height),
        (cx - half_width, cy + half_height),
        (cx - half_width, cy - half_height),  # Close the loop
    ]
    if settings.direction is CutDirection.CONVENTIONAL:
        corners = corners[::-1]

    for level in z_levels(_machining_depth(geometry, settings), settings.stepdown):
        z = cz + level
        writer.level(z)
        writer.approach(corners[0][0], corners[0][1], z)
        writer.plunge(corners[0][0], corners[0][1], z)
        for index, (x, y) in enumerate(corners[1:], start=1):
            writer.cut(x, y, z, f"Corner {index}")
        writer.retract(corners[-1][0], corners[-1][1], z)

    return writer.result(fallback=fallback)


def _bounding_box_toolpath(geometry: ElementGeometry, settings: ToolpathSettings) -> ToolpathResult:
    box = geometry.bounding_box
    if box is None:
        return _failure("Error: No bounding box defined for element")
    if box.width <= 0 or box.height <= 0:
        return _failure("Error: Invalid bounding box dimensions")

    logger.warning(
        "No contour geometry for %s; machining its bounding box", geometry.element_type
    )
    return _rectangle_toolpath(geometry, settings, box.width, box.height, fallback=True)


# ============================================================================
# Entry points
# ============================================================================

def generate_toolpath(
    geometry: ElementGeometry,
    settings: Optional[ToolpathSettings] = None,
) -> ToolpathResult:
    """Generate the contour toolpath that fits the element geometry."""
    settings = settings or ToolpathSettings()
    element_type = geometry.element_type

    if geometry.radius is not None and (element_type == "circle" or "sphere" in element_type):
        return _circle_toolpath(geometry, settings)
    if geometry.path:
        return _path_toolpath(geometry, settings)
    if geometry.width and geometry.height:
        return _rectangle_toolpath(geometry, settings, geometry.width, geometry.height)
    return _bounding_box_toolpath(geometry, settings)


def generate_gcode(
    geometry: ElementGeometry,
    settings: Optional[ToolpathSettings] = None,
) -> str:
    """G-code text of generate_toolpath()."""
    return generate_toolpath(geometry, settings).gcode
