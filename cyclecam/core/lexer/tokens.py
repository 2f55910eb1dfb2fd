"""
Token definitions for single-line G-code commands.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Optional


class TokenType(Enum):
    """Token types produced when scanning one line."""

    # First G word of the line
    OPERATION = auto()

    # Any later G word (G90 G81 ...)
    EXTRA_OPERATION = auto()

    # Letter + signed decimal: X10, Z-2.5, F100
    WORD = auto()

    # Comments
    COMMENT = auto()       # (comment)
    COMMENT_SEMI = auto()  # ; comment

    # Text that is neither a word nor a comment
    MALFORMED = auto()

    EOF = auto()


@dataclass(frozen=True)
class Token:
    """Represents a single token of a G-code line."""
    type: TokenType
    value: Any
    column: int
    raw: str  # Original text

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, C{self.column})"


class ModalGroup(Enum):
    """Modal groups the cycle interpreter cares about."""
    GROUP_01_MOTION = 1        # G00, G01, G02, G03
    GROUP_02_PLANE = 2         # G17, G18, G19
    GROUP_03_DISTANCE = 3      # G90, G91
    GROUP_09_CANNED_RETURN = 9 # G98, G99
    GROUP_10_CANNED = 10       # G73-G89


G_CODE_MODAL_GROUPS: dict[int, ModalGroup] = {
    # Group 01 - Motion
    0: ModalGroup.GROUP_01_MOTION,
    1: ModalGroup.GROUP_01_MOTION,
    2: ModalGroup.GROUP_01_MOTION,
    3: ModalGroup.GROUP_01_MOTION,

    # Group 02 - Plane selection
    17: ModalGroup.GROUP_02_PLANE,
    18: ModalGroup.GROUP_02_PLANE,
    19: ModalGroup.GROUP_02_PLANE,

    # Group 03 - Distance mode
    90: ModalGroup.GROUP_03_DISTANCE,
    91: ModalGroup.GROUP_03_DISTANCE,

    # Group 09 - Canned return mode
    98: ModalGroup.GROUP_09_CANNED_RETURN,
    99: ModalGroup.GROUP_09_CANNED_RETURN,

    # Group 10 - Canned cycles
    73: ModalGroup.GROUP_10_CANNED,
    74: ModalGroup.GROUP_10_CANNED,
    76: ModalGroup.GROUP_10_CANNED,
    80: ModalGroup.GROUP_10_CANNED,
    81: ModalGroup.GROUP_10_CANNED,
    82: ModalGroup.GROUP_10_CANNED,
    83: ModalGroup.GROUP_10_CANNED,
    84: ModalGroup.GROUP_10_CANNED,
    85: ModalGroup.GROUP_10_CANNED,
    86: ModalGroup.GROUP_10_CANNED,
    87: ModalGroup.GROUP_10_CANNED,
    88: ModalGroup.GROUP_10_CANNED,
    89: ModalGroup.GROUP_10_CANNED,
}


def operation_number(operation: str) -> Optional[int]:
    """Integer part of an operation code ("G81" -> 81), None if not integral."""
    if not operation or not operation.startswith("G"):
        return None
    digits = operation[1:]
    if not digits.isdigit():
        return None
    return int(digits)


def get_modal_group(operation: str) -> Optional[ModalGroup]:
    """Get the modal group for an operation code such as "G17"."""
    number = operation_number(operation)
    if number is None:
        return None
    return G_CODE_MODAL_GROUPS.get(number)
