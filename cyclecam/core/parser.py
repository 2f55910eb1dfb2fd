"""
Fixed-cycle interpreter with modal state tracking.

Feeds tokenized lines through a state machine that follows plane
selection, absolute/incremental mode and the active canned cycle, and
expands every cycle start or continuation into motion primitives.

Features:
- G17/G18/G19 and G90/G91 modal state
- Canned cycle start, modal continuation and G80 cancel
- Field-by-field parameter inheritance across continuation lines
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional, Union

import numpy as np

from .cycle_model import (
    Command,
    CycleParameters,
    CycleResult,
    CycleType,
    MotionPrimitive,
    WorkPlane,
    validate_parameters,
)
from .cycles import REFERENCE_PLANE_CLEARANCE, generate_cycle_points, uses_fallback_shape
from .kinematics import MachineConfig
from .lexer import ModalGroup, get_modal_group, tokenize_line

logger = logging.getLogger(__name__)

CANCEL_CYCLE = "G80"
CONTINUATION_OPERATIONS = ("G0", "G1")
MOTION_OPERATIONS = ("G0", "G1", "G2", "G3")


class MachineState:
    """Modal machine state for one interpretation session."""

    def __init__(self, reference_clearance: float = REFERENCE_PLANE_CLEARANCE):
        self.reference_clearance = reference_clearance
        self.reset()

    def reset(self) -> None:
        """Restore every field to its power-on default."""
        self.last_position = np.zeros(3)
        self.work_plane = WorkPlane.XY
        self.incremental_mode = False  # G91 = True, G90 = False
        self.active_cycle: Optional[CycleType] = None
        self.active_cycle_params = CycleParameters()
        self.active_operation = ""
        # R used when the active cycle never gives one
        self.default_reference_plane = self.reference_clearance

    def cancel_cycle(self) -> None:
        self.active_cycle = None
        self.active_operation = ""
        self.active_cycle_params = CycleParameters()

    def resolve_position(self, command: Command, axes: str = "XYZ") -> np.ndarray:
        """
        New position after ``command``: incremental words add to the last
        position, absolute words replace it, missing axes keep their value.
        """
        position = self.last_position.copy()
        for index, axis in enumerate("XYZ"):
            if axis not in axes or axis not in command.parameters:
                continue
            value = command.parameters[axis]
            if self.incremental_mode:
                position[index] += value
            else:
                position[index] = value
        return position

    def to_dict(self) -> dict:
        """Export state to dictionary."""
        return {
            "position": self.last_position.copy(),
            "plane": self.work_plane.value,
            "incremental": self.incremental_mode,
            "cycle": self.active_cycle.value if self.active_cycle else None,
            "cycle_params": self.active_cycle_params.present(),
        }


def _is_cycle_start(operation: str) -> bool:
    return get_modal_group(operation) is ModalGroup.GROUP_10_CANNED and operation != CANCEL_CYCLE


def _line_operations(command: Command) -> list[str]:
    return [op for op in (command.operation, *command.extra_operations) if op]


def _dispatch_operation(command: Command) -> str:
    """
    Operation that drives the line, wherever it sits among the G words:
    a cycle start first (G0 G81 ...), then a motion code. Any other line
    (G80, G90 G17) is driven by its first code.
    """
    operations = _line_operations(command)
    for operation in operations:
        if _is_cycle_start(operation):
            return operation
    for operation in operations:
        if get_modal_group(operation) is ModalGroup.GROUP_01_MOTION:
            return operation
    return command.operation


class FixedCycleParser:
    """
    Recognizes canned cycles in a stream of commands.

    One instance per program: the parser owns its MachineState. Call
    reset() before reusing it for an unrelated program.
    """

    def __init__(
        self,
        state: Optional[MachineState] = None,
        config: Optional[MachineConfig] = None,
    ):
        self.config = config or MachineConfig()
        self.state = state or MachineState(self.config.reference_clearance)

    def reset(self) -> None:
        self.state.reset()

    def parse_line(self, line: str) -> Optional[CycleResult]:
        """Tokenize and interpret one line."""
        return self.parse_command(tokenize_line(line.strip()))

    def parse_command(self, command: Command) -> Optional[CycleResult]:
        """
        Update modal state from ``command``.
        Returns a CycleResult for a cycle start or continuation, else None.
        """
        state = self.state
        operation = _dispatch_operation(command)

        # G80 cancels before the rest of the line runs (G0 G80 X50 Y50)
        if CANCEL_CYCLE in _line_operations(command):
            state.cancel_cycle()

        # Modal words sharing the line with the driving operation
        for extra in _line_operations(command):
            if extra != operation:
                self._apply_modal(extra)

        if self._apply_modal(operation):
            return None

        if _is_cycle_start(operation):
            state.active_cycle = CycleType.from_operation(operation)
            state.active_operation = operation
            state.active_cycle_params = CycleParameters.from_words(command.parameters)
            state.default_reference_plane = state.last_position[2] + state.reference_clearance
            for message in validate_parameters(state.active_cycle, state.active_cycle_params):
                logger.warning(message)
            self._update_cycle_position(command)
            logger.debug("Cycle %s started: %s", operation, state.active_cycle.value)
            return self.generate_cycle_result(command.raw or operation)

        if state.active_cycle is not None and self._is_continuation(operation, command):
            self._update_cycle_position(command)
            # Position words were resolved above; the rest are inherited
            words = {k: v for k, v in command.parameters.items() if k not in ("X", "Y")}
            state.active_cycle_params.update_from_words(words)
            return self.generate_cycle_result(command.raw or operation)

        if operation in MOTION_OPERATIONS and state.active_cycle is None:
            state.last_position = state.resolve_position(command)

        return None

    def _apply_modal(self, operation: str) -> bool:
        """Apply a plane or distance-mode code. Returns True if it was one."""
        group = get_modal_group(operation)
        if group is ModalGroup.GROUP_02_PLANE:
            self.state.work_plane = WorkPlane.from_operation(operation)
            return True
        if group is ModalGroup.GROUP_03_DISTANCE:
            self.state.incremental_mode = operation == "G91"
            return True
        return False

    @staticmethod
    def _is_continuation(operation: str, command: Command) -> bool:
        if operation and operation not in CONTINUATION_OPERATIONS:
            return False
        return command.has_xy

    def _update_cycle_position(self, command: Command) -> None:
        position = self.state.resolve_position(command, axes="XY")
        self.state.last_position = position
        self.state.active_cycle_params.x = float(position[0])
        self.state.active_cycle_params.y = float(position[1])

    def generate_cycle_result(self, source_text: str = "") -> CycleResult:
        """Expand the active cycle at the current hole position."""
        state = self.state
        if state.active_cycle is None:
            return CycleResult(
                type=CycleType.CUSTOM,
                params=CycleParameters(),
                source_text=source_text,
                points=(),
                valid=False,
                error="No active fixed cycle",
            )

        params = state.active_cycle_params
        x = params.x if params.x is not None else float(state.last_position[0])
        y = params.y if params.y is not None else float(state.last_position[1])
        z = params.z if params.z is not None else 0.0
        r = params.r if params.r is not None else float(state.default_reference_plane)

        fallback = uses_fallback_shape(state.active_cycle)
        if fallback:
            logger.warning(
                "No dedicated motion for %s (%s); using drilling shape",
                state.active_operation, state.active_cycle.value,
            )

        points = generate_cycle_points(state.active_cycle, x, y, z, r, params)
        return CycleResult(
            type=state.active_cycle,
            params=params.copy(),
            source_text=source_text,
            points=tuple(points),
            valid=len(points) > 0,
            fallback=fallback,
            operation=state.active_operation,
        )


# ============================================================================
# Convenience functions
# ============================================================================

def _program_lines(lines: Iterable[str]) -> Iterable[str]:
    """Trimmed lines without blanks and ';' comment lines."""
    for raw_line in lines:
        line = raw_line.strip()
        if line and not line.startswith(";"):
            yield line


def parse_string(
    content: str,
    config: Optional[MachineConfig] = None,
) -> tuple[list[CycleResult], MachineState]:
    """
    Interpret a G-code program and return every cycle result together with
    the final machine state.
    """
    parser = FixedCycleParser(config=config)
    results: list[CycleResult] = []
    for line in _program_lines(content.splitlines()):
        result = parser.parse_line(line)
        if result is not None:
            results.append(result)
    return results, parser.state


def parse_file(
    path: Union[str, Path],
    return_state: bool = False,
    config: Optional[MachineConfig] = None,
) -> Union[list[CycleResult], tuple[list[CycleResult], MachineState]]:
    """
    Interpret a G-code file and return its cycle results.
    If return_state=True, also returns the final machine state.
    """
    path = Path(path)
    content = path.read_text(encoding="utf-8", errors="replace")
    results, state = parse_string(content, config)
    if return_state:
        return results, state
    return results


def generate_fixed_cycle_toolpaths(lines: Iterable[str]) -> list[MotionPrimitive]:
    """All primitives of the valid cycle results of a program, in order."""
    parser = FixedCycleParser()
    points: list[MotionPrimitive] = []
    for line in _program_lines(lines):
        result = parser.parse_line(line)
        if result is not None and result.valid:
            points.extend(result.points)
    return points


def is_fixed_cycle(line: str) -> bool:
    """True if ``line`` on its own starts a valid canned cycle."""
    result = FixedCycleParser().parse_line(line)
    return result is not None and result.valid
