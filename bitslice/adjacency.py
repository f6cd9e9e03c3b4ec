"""Junction keys: neighbor bits, corners, and the quadrant-selection rule.

A junction key is an 8-bit mask of connected neighbors, laid out the way
BYOND numbers its directions::

    N=1  S=2  E=4  W=8  NE=16  SE=32  SW=64  NW=128
"""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple

from bitslice.errors import CompositionError

# ---------------------------------------------------------------------------
# Constants: 8-bit bitmask neighbor directions
# ---------------------------------------------------------------------------

N = 1
S = 2
E = 4
W = 8
NE = 16
SE = 32
SW = 64
NW = 128

CARDINALS = N | S | E | W

MAX_KEY = 0xFF

_BIT_NAMES = [
    ("N", N),
    ("S", S),
    ("E", E),
    ("W", W),
    ("NE", NE),
    ("SE", SE),
    ("SW", SW),
    ("NW", NW),
]


class Side(Enum):
    """One edge of a block; the value is its BYOND direction."""

    NORTH = N
    SOUTH = S
    EAST = E
    WEST = W

    @property
    def is_vertical(self) -> bool:
        return self in (Side.NORTH, Side.SOUTH)


# BYOND orders directions south first
DMI_SIDES = (Side.SOUTH, Side.NORTH, Side.EAST, Side.WEST)


class Corner(Enum):
    """One quadrant of a block; the value is its BYOND direction."""

    NORTHEAST = N | E
    SOUTHEAST = S | E
    SOUTHWEST = S | W
    NORTHWEST = N | W


class CornerKind(Enum):
    """The authored corner styles a junction is assembled from."""

    CONVEX = "convex"
    CONCAVE = "concave"
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    FLAT = "flat"


CARDINAL_KINDS = (
    CornerKind.CONVEX,
    CornerKind.CONCAVE,
    CornerKind.HORIZONTAL,
    CornerKind.VERTICAL,
)
DIAGONAL_KINDS = CARDINAL_KINDS + (CornerKind.FLAT,)


class CornerRule(NamedTuple):
    """Which sides and diagonal bit decide one quadrant."""

    horizontal: Side
    vertical: Side
    diagonal: int


CORNER_RULES: dict[Corner, CornerRule] = {
    Corner.NORTHEAST: CornerRule(Side.EAST, Side.NORTH, NE),
    Corner.SOUTHEAST: CornerRule(Side.EAST, Side.SOUTH, SE),
    Corner.SOUTHWEST: CornerRule(Side.WEST, Side.SOUTH, SW),
    Corner.NORTHWEST: CornerRule(Side.WEST, Side.NORTH, NW),
}

# ---------------------------------------------------------------------------
# Key spaces
# ---------------------------------------------------------------------------


def corner_kinds(smooth_diagonally: bool) -> tuple[CornerKind, ...]:
    return DIAGONAL_KINDS if smooth_diagonally else CARDINAL_KINDS


def key_space(smooth_diagonally: bool) -> range:
    """Every key the adjacency model can produce: 256 with diagonals, else 16."""
    return range(MAX_KEY + 1) if smooth_diagonally else range(CARDINALS + 1)


def has_orphaned_corner(key: int) -> bool:
    """True when a diagonal bit is set without both of its cardinals."""
    for corner, rule in CORNER_RULES.items():
        if key & rule.diagonal and (key & corner.value) != corner.value:
            return True
    return False


def emitted_keys(smooth_diagonally: bool) -> list[int]:
    """Keys that become icon states (16 cardinal, 47 diagonal)."""
    return [k for k in key_space(smooth_diagonally) if not has_orphaned_corner(k)]


def describe_key(key: int) -> str:
    """Human-readable description of a key."""
    names = [name for name, bit in _BIT_NAMES if key & bit]
    return "+".join(names) if names else "isolated"


# ---------------------------------------------------------------------------
# Quadrant selection
# ---------------------------------------------------------------------------


def corner_kind(key: int, corner: Corner) -> CornerKind:
    """Pick the corner style for one quadrant of a junction."""
    if not 0 <= key <= MAX_KEY:
        raise CompositionError(f"junction key {key} is outside 0..{MAX_KEY}")

    rule = CORNER_RULES[corner]
    has_vertical = bool(key & rule.vertical.value)
    has_horizontal = bool(key & rule.horizontal.value)

    if has_vertical and has_horizontal:
        if key & rule.diagonal:
            return CornerKind.FLAT
        return CornerKind.CONCAVE
    if has_vertical:
        return CornerKind.VERTICAL
    if has_horizontal:
        return CornerKind.HORIZONTAL
    return CornerKind.CONVEX


# ---------------------------------------------------------------------------
# Rotation
# ---------------------------------------------------------------------------

# Bit permutations, keyed by the direction the junction is viewed from.
# North is a half turn, east a quarter turn counter-clockwise, west a quarter
# turn clockwise. South is the authored orientation.
_ROTATIONS: dict[int, dict[int, int]] = {
    N: {N: S, S: N, E: W, W: E, NE: SW, SE: NW, SW: NE, NW: SE},
    E: {N: W, S: E, E: N, W: S, NE: NW, SE: NE, SW: SE, NW: SW},
    W: {N: E, S: W, E: S, W: N, NE: SE, SE: SW, SW: NW, NW: NE},
}


def rotate_key(key: int, direction: int) -> int:
    """Rotate every neighbor bit of *key* to match a cardinal view direction."""
    if direction == S:
        return key
    if direction not in _ROTATIONS:
        raise ValueError(f"can only rotate to a cardinal direction, got {direction}")
    table = _ROTATIONS[direction]
    rotated = 0
    for _, bit in _BIT_NAMES:
        if key & bit:
            rotated |= table[bit]
    return rotated
