"""
Data model shared by the tokenizer, the modal state tracker, the cycle
point generator and the G-code synthesizer.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

import numpy as np


# ============================================================================
# Parsed line
# ============================================================================

@dataclass(frozen=True)
class Command:
    """One tokenized line of G-code."""
    operation: str = ""  # "G81", "" when the line carries only words
    parameters: Mapping[str, float] = field(default_factory=dict)
    comment: Optional[str] = None
    extra_operations: tuple[str, ...] = ()
    malformed: tuple[str, ...] = ()
    raw: str = ""

    def __post_init__(self) -> None:
        # Read-only view so a Command cannot change after construction
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))

    def has(self, letter: str) -> bool:
        return letter in self.parameters

    def get(self, letter: str, default: Optional[float] = None) -> Optional[float]:
        return self.parameters.get(letter, default)

    @property
    def has_xy(self) -> bool:
        """True if the line carries an X or Y word."""
        return "X" in self.parameters or "Y" in self.parameters

    @property
    def is_empty(self) -> bool:
        """True if nothing readable was found on the line."""
        return not self.operation and not self.parameters and not self.extra_operations


# ============================================================================
# Modal enums
# ============================================================================

class WorkPlane(Enum):
    """Active work plane (G17/G18/G19)."""
    XY = "XY"
    ZX = "ZX"
    YZ = "YZ"

    @classmethod
    def from_operation(cls, operation: str) -> Optional[WorkPlane]:
        return _PLANE_BY_OPERATION.get(operation)

    @property
    def operation(self) -> str:
        return {WorkPlane.XY: "G17", WorkPlane.ZX: "G18", WorkPlane.YZ: "G19"}[self]


_PLANE_BY_OPERATION = {"G17": WorkPlane.XY, "G18": WorkPlane.ZX, "G19": WorkPlane.YZ}


class CycleType(Enum):
    """Fixed (canned) cycle types."""
    DRILLING = "drilling"                        # G81
    DRILLING_DWELL = "drilling_dwell"            # G82
    PECK_DRILLING = "peck_drilling"              # G83
    RIGHT_TAPPING = "right_tapping"              # G84
    LEFT_TAPPING = "left_tapping"                # G74
    BORING = "boring"                            # G85
    BORING_DWELL = "boring_dwell"                # G86
    BACK_BORING = "back_boring"                  # G87
    BORING_WITH_RETRACT = "boring_retract"       # G89
    CUSTOM = "custom"                            # any other canned code

    @classmethod
    def from_operation(cls, operation: str) -> CycleType:
        """Map a canned-cycle code to its type; unknown codes are CUSTOM."""
        return _TYPE_BY_OPERATION.get(operation, cls.CUSTOM)

    @property
    def operation(self) -> str:
        """Canonical G code emitted for this cycle type."""
        return CYCLE_OPERATIONS[self]

    @property
    def is_tapping(self) -> bool:
        return self in (CycleType.RIGHT_TAPPING, CycleType.LEFT_TAPPING)


CYCLE_OPERATIONS: dict[CycleType, str] = {
    CycleType.DRILLING: "G81",
    CycleType.DRILLING_DWELL: "G82",
    CycleType.PECK_DRILLING: "G83",
    CycleType.RIGHT_TAPPING: "G84",
    CycleType.LEFT_TAPPING: "G74",
    CycleType.BORING: "G85",
    CycleType.BORING_DWELL: "G86",
    CycleType.BACK_BORING: "G87",
    CycleType.BORING_WITH_RETRACT: "G89",
    CycleType.CUSTOM: "G88",
}

_TYPE_BY_OPERATION = {
    code: cycle_type
    for cycle_type, code in CYCLE_OPERATIONS.items()
    if cycle_type is not CycleType.CUSTOM
}


# ============================================================================
# Cycle parameters
# ============================================================================

@dataclass
class CycleParameters:
    """Sparse set of cycle words; None means the word was never given."""
    x: Optional[float] = None
    y: Optional[float] = None
    z: Optional[float] = None  # Final depth
    r: Optional[float] = None  # Reference plane
    q: Optional[float] = None  # Peck increment
    p: Optional[float] = None  # Dwell (s)
    f: Optional[float] = None  # Feed rate
    l: Optional[float] = None  # Repeat count
    s: Optional[float] = None  # Spindle speed (tapping)
    i: Optional[float] = None  # Lateral offset X (back boring)
    j: Optional[float] = None  # Lateral offset Y (back boring)
    k: Optional[float] = None  # Safety distance / depth offset

    @classmethod
    def from_words(cls, words: Mapping[str, float]) -> CycleParameters:
        """Build from the words of a command (keys are uppercase letters)."""
        params = cls()
        params.update_from_words(words)
        return params

    def update_from_words(self, words: Mapping[str, float]) -> None:
        """Overwrite only the fields present in ``words``."""
        for name in PARAMETER_FIELDS:
            letter = name.upper()
            if letter in words:
                setattr(self, name, float(words[letter]))

    def present(self) -> dict[str, float]:
        """Fields that have a value, in declaration order."""
        return {name: getattr(self, name) for name in PARAMETER_FIELDS
                if getattr(self, name) is not None}

    def copy(self) -> CycleParameters:
        return replace(self)

    def __contains__(self, name: str) -> bool:
        return getattr(self, name.lower(), None) is not None


PARAMETER_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(CycleParameters))

_DRILL_FIELDS = frozenset({"x", "y", "z", "r", "f", "l"})

# Fields each cycle type understands; CUSTOM accepts everything
SUPPORTED_FIELDS: dict[CycleType, frozenset[str]] = {
    CycleType.DRILLING: _DRILL_FIELDS,
    CycleType.DRILLING_DWELL: _DRILL_FIELDS | {"p"},
    CycleType.PECK_DRILLING: _DRILL_FIELDS | {"q", "p"},
    CycleType.RIGHT_TAPPING: _DRILL_FIELDS | {"p", "s"},
    CycleType.LEFT_TAPPING: _DRILL_FIELDS | {"p", "s"},
    CycleType.BORING: _DRILL_FIELDS,
    CycleType.BORING_DWELL: _DRILL_FIELDS | {"p"},
    CycleType.BACK_BORING: _DRILL_FIELDS | {"i", "j", "k"},
    CycleType.BORING_WITH_RETRACT: _DRILL_FIELDS | {"p"},
    CycleType.CUSTOM: frozenset(PARAMETER_FIELDS),
}


def validate_parameters(cycle_type: CycleType, params: CycleParameters) -> list[str]:
    """Return one message per field the cycle type does not support."""
    supported = SUPPORTED_FIELDS[cycle_type]
    return [
        f"{name.upper()} is not used by {cycle_type.operation} ({cycle_type.value})"
        for name in params.present()
        if name not in supported
    ]


# ============================================================================
# Motion output
# ============================================================================

class MotionKind(Enum):
    RAPID = "rapid"
    LINEAR = "linear"
    DWELL = "dwell"


@dataclass(frozen=True)
class MotionPrimitive:
    """One step of a tool path."""
    x: float
    y: float
    z: float
    kind: MotionKind
    feed_rate: Optional[float] = None
    dwell_seconds: Optional[float] = None

    @property
    def position(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)


@dataclass
class CycleResult:
    """Outcome of interpreting one cycle line."""
    type: CycleType
    params: CycleParameters
    source_text: str
    points: tuple[MotionPrimitive, ...] = ()
    valid: bool = True
    error: Optional[str] = None
    fallback: bool = False  # generic drilling shape stood in for this cycle
    operation: str = ""
