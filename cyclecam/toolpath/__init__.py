"""
Contour toolpaths for arbitrary part geometry.
"""

from .geometry import (
    BoundingBox,
    ElementGeometry,
    element_depth,
    suggest_machining_parameters,
)
from .generator import (
    CutDirection,
    OffsetSide,
    ToolpathResult,
    ToolpathSettings,
    generate_gcode,
    generate_toolpath,
    is_closed_path,
    offset_polygon,
    z_levels,
)

__all__ = [
    "BoundingBox",
    "ElementGeometry",
    "element_depth",
    "suggest_machining_parameters",
    "CutDirection",
    "OffsetSide",
    "ToolpathResult",
    "ToolpathSettings",
    "generate_gcode",
    "generate_toolpath",
    "is_closed_path",
    "offset_polygon",
    "z_levels",
]
