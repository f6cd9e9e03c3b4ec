"""View directions and expansion of junction tables into directional sets."""

from __future__ import annotations

import logging
from enum import Enum

from PIL import Image

from bitslice import adjacency

logger = logging.getLogger(__name__)

# key -> one image per animation frame
JunctionTable = dict[int, list[Image.Image]]
# (left, top, right, bottom)
Box = tuple[int, int, int, int]


class Direction(Enum):
    """Icon direction; the value is its BYOND direction."""

    S = adjacency.S
    N = adjacency.N
    E = adjacency.E
    W = adjacency.W
    SE = adjacency.S | adjacency.E
    SW = adjacency.S | adjacency.W
    NE = adjacency.N | adjacency.E
    NW = adjacency.N | adjacency.W


STANDARD = Direction.S
DMI_CARDINALS = (Direction.S, Direction.N, Direction.E, Direction.W)
DMI_ALL = DMI_CARDINALS + (Direction.SE, Direction.SW, Direction.NE, Direction.NW)

# Image.rotate-style transposes that turn the authored (south) view into
# another cardinal view. Matches adjacency.rotate_key.
_TRANSPOSES = {
    Direction.N: Image.Transpose.ROTATE_180,
    Direction.E: Image.Transpose.ROTATE_90,
    Direction.W: Image.Transpose.ROTATE_270,
}


class DirectionStrategy(Enum):
    STANDARD = "Standard"
    CARDINALS = "Cardinals"
    ALL = "All"
    CARDINALS_ROTATED = "CardinalsRotated"

    @property
    def input_directions(self) -> tuple[Direction, ...]:
        """Directions authored in the source sheet, left to right."""
        if self is DirectionStrategy.CARDINALS:
            return DMI_CARDINALS
        if self is DirectionStrategy.ALL:
            return DMI_ALL
        return (STANDARD,)

    @property
    def output_directions(self) -> tuple[Direction, ...]:
        """Directions written to every icon state, in DMI order."""
        if self is DirectionStrategy.CARDINALS_ROTATED:
            return DMI_CARDINALS
        return self.input_directions


def _rotate_block(
    block: Image.Image, transpose: Image.Transpose, box: Box | None
) -> Image.Image:
    if box is None:
        return block.transpose(transpose)
    # only the icon turns, padding stays where it is
    out = Image.new(block.mode, block.size, (0, 0, 0, 0))
    out.paste(block.crop(box).transpose(transpose), box[:2])
    return out


def rotate_table(
    table: JunctionTable, direction: Direction, box: Box | None = None
) -> JunctionTable:
    """Rotate every block of a south-facing table to face *direction*.

    The rotated block for key ``k`` lands under the equally rotated key, so
    the result is again a complete table over the same key space. When *box*
    is given only that square region of each block is rotated in place.
    """
    if direction is STANDARD:
        return dict(table)
    transpose = _TRANSPOSES[direction]
    rotated: JunctionTable = {}
    for key, frames in table.items():
        new_key = adjacency.rotate_key(key, direction.value)
        rotated[new_key] = [_rotate_block(frame, transpose, box) for frame in frames]
    return rotated


def expand(
    tables: dict[Direction, JunctionTable],
    strategy: DirectionStrategy,
    box: Box | None = None,
) -> dict[Direction, JunctionTable]:
    """Turn the synthesized input tables into one table per output direction.

    ``tables`` holds one table per input direction. A strategy that expects
    several input directions but was given only the standard one reuses that
    table for every direction. *box* is the icon region rotated by
    ``CardinalsRotated``; the whole block when omitted.
    """
    expanded: dict[Direction, JunctionTable] = {}

    if strategy is DirectionStrategy.CARDINALS_ROTATED:
        base = tables[STANDARD]
        for direction in strategy.output_directions:
            logger.debug("Rotating junction table to face %s", direction.name)
            expanded[direction] = rotate_table(base, direction, box)
        return expanded

    for direction in strategy.output_directions:
        if direction in tables:
            expanded[direction] = tables[direction]
        else:
            logger.debug("Duplicating standard table for %s", direction.name)
            expanded[direction] = tables[STANDARD]
    return expanded
