"""
Part geometry accepted by the contour toolpath generator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np
from numpy.typing import NDArray

# Depth used for flat (2D) elements, mm
DEFAULT_ELEMENT_DEPTH = 5.0

_HEIGHT_DEPTH_TYPES = ("cylinder", "cone", "prism", "pyramid", "capsule")


@dataclass
class BoundingBox:
    """Axis-Aligned Bounding Box."""
    min_x: float = 0.0
    min_y: float = 0.0
    min_z: float = 0.0
    max_x: float = 0.0
    max_y: float = 0.0
    max_z: float = 0.0

    @property
    def center(self) -> np.ndarray:
        """Box center point."""
        return np.array([
            (self.min_x + self.max_x) / 2,
            (self.min_y + self.max_y) / 2,
            (self.min_z + self.max_z) / 2,
        ])

    @property
    def size(self) -> np.ndarray:
        """Box dimensions."""
        return np.array([
            self.max_x - self.min_x,
            self.max_y - self.min_y,
            self.max_z - self.min_z,
        ])

    @property
    def width(self) -> float:
        return float(self.max_x - self.min_x)

    @property
    def height(self) -> float:
        return float(self.max_y - self.min_y)

    @classmethod
    def from_points(cls, points: NDArray) -> "BoundingBox":
        """Create AABB from an (N, 2) or (N, 3) point array."""
        points = np.asarray(points, dtype=np.float64)
        if len(points) == 0:
            return cls()
        has_z = points.shape[1] > 2
        return cls(
            min_x=float(points[:, 0].min()),
            min_y=float(points[:, 1].min()),
            min_z=float(points[:, 2].min()) if has_z else 0.0,
            max_x=float(points[:, 0].max()),
            max_y=float(points[:, 1].max()),
            max_z=float(points[:, 2].max()) if has_z else 0.0,
        )


@dataclass
class ElementGeometry:
    """
    Geometry of one drawing element.

    Only the fields that describe the element are set: ``radius`` for
    circles and spheres, ``path`` for polygons and polylines, ``width`` and
    ``height`` for rectangles and boxes. ``bounding_box`` is the last resort.
    """
    element_type: str
    center: NDArray = field(default_factory=lambda: np.zeros(3))
    radius: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    depth: Optional[float] = None
    path: Sequence[tuple[float, float]] = field(default_factory=list)
    bounding_box: Optional[BoundingBox] = None

    def __post_init__(self) -> None:
        center = np.zeros(3)
        given = np.asarray(self.center, dtype=np.float64).ravel()
        center[:len(given)] = given[:3]
        self.center = center
        self.path = [(float(x), float(y)) for x, y in self.path]


def element_depth(geometry: ElementGeometry) -> float:
    """Intrinsic depth of an element: how deep it can be machined."""
    if geometry.depth and geometry.depth > 0:
        return geometry.depth
    if geometry.radius and "sphere" in geometry.element_type:
        return geometry.radius * 2
    if geometry.height and geometry.element_type in _HEIGHT_DEPTH_TYPES:
        return geometry.height
    return DEFAULT_ELEMENT_DEPTH


def suggest_machining_parameters(geometry: ElementGeometry) -> dict:
    """Suggest depth, stepdown and operation type for an element."""
    max_dimension = max(
        geometry.width or 0.0,
        geometry.height or 0.0,
        geometry.depth or 0.0,
        geometry.radius * 2 if geometry.radius else 0.0,
    )

    if max_dimension > 100:
        stepdown = 2.0
    elif max_dimension > 50:
        stepdown = 1.0
    else:
        stepdown = 0.5

    element_type = geometry.element_type
    if "circle" in element_type or "sphere" in element_type:
        operation_type = "contour"
    elif any(name in element_type for name in ("rectangle", "cube", "polygon")):
        operation_type = "pocket"
    elif "line" in element_type:
        operation_type = "profile"
    else:
        operation_type = "contour"

    return {
        "depth": element_depth(geometry),
        "stepdown": stepdown,
        "operation_type": operation_type,
    }
