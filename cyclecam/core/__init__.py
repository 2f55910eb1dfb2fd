from cyclecam.core.cycle_model import (
    Command,
    CycleParameters,
    CycleResult,
    CycleType,
    MotionKind,
    MotionPrimitive,
    WorkPlane,
    validate_parameters,
)
from cyclecam.core.cycles import generate_cycle_points
from cyclecam.core.lexer import LexerError, tokenize_line
from cyclecam.core.parser import (
    FixedCycleParser,
    MachineState,
    generate_fixed_cycle_toolpaths,
    is_fixed_cycle,
    parse_file,
    parse_string,
)
from cyclecam.core.synthesis import synthesize
from cyclecam.core.kinematics import primitives_to_points

__all__ = [
    "Command",
    "CycleParameters",
    "CycleResult",
    "CycleType",
    "MotionKind",
    "MotionPrimitive",
    "WorkPlane",
    "validate_parameters",
    "generate_cycle_points",
    "LexerError",
    "tokenize_line",
    "FixedCycleParser",
    "MachineState",
    "generate_fixed_cycle_toolpaths",
    "is_fixed_cycle",
    "parse_file",
    "parse_string",
    "synthesize",
    "primitives_to_points",
]
