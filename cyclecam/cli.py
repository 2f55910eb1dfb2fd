"""
Command line front end: interpret programs, write cycle lines and
generate contour toolpaths.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from typing import Optional, Sequence

from cyclecam.core.cycle_model import CycleParameters, CycleType, validate_parameters
from cyclecam.core.kinematics import MachineConfig, check_primitive_limits, motion_summary
from cyclecam.core.parser import parse_file
from cyclecam.core.synthesis import default_parameters, missing_required, synthesize
from cyclecam.toolpath import (
    BoundingBox,
    ElementGeometry,
    ToolpathSettings,
    generate_toolpath,
)

logger = logging.getLogger(__name__)

_CYCLE_NAMES = {cycle_type.value: cycle_type for cycle_type in CycleType}
_CYCLE_NAMES.update({cycle_type.operation: cycle_type for cycle_type in CycleType})


def _cycle_type(value: str) -> CycleType:
    cycle_type = _CYCLE_NAMES.get(value) or _CYCLE_NAMES.get(value.upper())
    if cycle_type is None:
        raise argparse.ArgumentTypeError(f"unknown cycle '{value}'")
    return cycle_type


def _run_parse(args: argparse.Namespace) -> int:
    config = MachineConfig.from_json(args.config) if args.config else MachineConfig()
    results = parse_file(args.file, config=config)
    status = 0
    for result in results:
        flag = " (generic shape)" if result.fallback else ""
        print(f"{result.source_text}: {result.type.value}{flag}, {len(result.points)} moves")
        if not result.valid:
            print(f"  error: {result.error}")
            status = 1
        ok, errors = check_primitive_limits(result.points, config)
        for error in errors:
            print(f"  {error}")
        if not ok:
            status = 1
        if args.points:
            for point in result.points:
                print(f"  {point.kind.value:6s} X{point.x:.3f} Y{point.y:.3f} Z{point.z:.3f}")

    points = [point for result in results for point in result.points]
    summary = motion_summary(points, config)
    print(
        f"{len(results)} cycles, rapid {summary['rapid_distance']:.1f} mm, "
        f"feed {summary['feed_distance']:.1f} mm, ~{summary['estimated_time']:.1f} s"
    )
    return status


def _run_synthesize(args: argparse.Namespace) -> int:
    params = default_parameters(args.cycle) if args.defaults else CycleParameters()
    for name in ("x", "y", "z", "r", "q", "p", "f", "s", "i", "j", "k"):
        value = getattr(args, name)
        if value is not None:
            setattr(params, name, value)

    for message in validate_parameters(args.cycle, params):
        print(f"warning: {message}", file=sys.stderr)
    for label in missing_required(args.cycle, params):
        print(f"warning: {label} is required", file=sys.stderr)
    print(synthesize(args.cycle, params))
    return 0


def _run_contour(args: argparse.Namespace) -> int:
    settings = ToolpathSettings.from_json(args.settings) if args.settings else ToolpathSettings()
    overrides = {
        name: getattr(args, name)
        for name in ("tool_diameter", "depth", "stepdown", "feedrate", "plungerate", "offset", "direction")
        if getattr(args, name) is not None
    }
    settings = replace(settings, **overrides)

    geometry = ElementGeometry(
        element_type=args.shape,
        center=args.center,
        radius=args.radius,
        width=args.width,
        height=args.height,
        depth=args.element_depth,
        path=[tuple(point) for point in args.point or []],
    )
    if args.shape == "box" and args.width and args.height:
        # Only the extents are known: machine the bounding box
        half_w, half_h = args.width / 2, args.height / 2
        cx, cy = args.center[0], args.center[1]
        geometry.bounding_box = BoundingBox(cx - half_w, cy - half_h, 0.0, cx + half_w, cy + half_h, 0.0)
        geometry.width = geometry.height = None

    result = generate_toolpath(geometry, settings)
    sys.stdout.write(result.gcode)
    return 0 if result.valid else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cyclecam", description=__doc__)
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    parse_cmd = commands.add_parser("parse", help="interpret the canned cycles of a G-code file")
    parse_cmd.add_argument("file")
    parse_cmd.add_argument("--points", action="store_true", help="print every motion")
    parse_cmd.add_argument("--config", help="machine configuration JSON")
    parse_cmd.set_defaults(run=_run_parse)

    synth_cmd = commands.add_parser("synthesize", help="write one cycle line")
    synth_cmd.add_argument("cycle", type=_cycle_type, help="cycle name or G code (drilling, G83, ...)")
    synth_cmd.add_argument("--defaults", action="store_true", help="start from the cycle defaults")
    for name in ("x", "y", "z", "r", "q", "p", "f", "s", "i", "j", "k"):
        synth_cmd.add_argument(f"-{name}", type=float)
    synth_cmd.set_defaults(run=_run_synthesize)

    contour_cmd = commands.add_parser("contour", help="generate a contour toolpath")
    contour_cmd.add_argument("shape", help="circle, rectangle, polygon, box, ...")
    contour_cmd.add_argument("--center", type=float, nargs=3, default=[0.0, 0.0, 0.0])
    contour_cmd.add_argument("--radius", type=float)
    contour_cmd.add_argument("--width", type=float)
    contour_cmd.add_argument("--height", type=float)
    contour_cmd.add_argument("--element-depth", type=float)
    contour_cmd.add_argument("--point", type=float, nargs=2, action="append")
    contour_cmd.add_argument("--settings", help="toolpath settings JSON")
    contour_cmd.add_argument("--tool-diameter", type=float)
    contour_cmd.add_argument("--depth", type=float)
    contour_cmd.add_argument("--stepdown", type=float)
    contour_cmd.add_argument("--feedrate", type=float)
    contour_cmd.add_argument("--plungerate", type=float)
    contour_cmd.add_argument("--offset", choices=["inside", "outside", "none"])
    contour_cmd.add_argument("--direction", choices=["climb", "conventional"])
    contour_cmd.set_defaults(run=_run_contour)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.run(args)
