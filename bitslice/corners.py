"""Cut corner regions out of the authored blocks of a source sheet."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import NamedTuple

from PIL import Image

from bitslice import adjacency
from bitslice.adjacency import CORNER_RULES, Corner, CornerKind, Side
from bitslice.config import SliceConfig
from bitslice.directions import Direction
from bitslice.errors import SourceBoundsError

logger = logging.getLogger(__name__)

# corner kind -> corner -> one region per animation frame
CornerTable = dict[CornerKind, dict[Corner, list[Image.Image]]]
# junction key -> one full block per animation frame
PrefabTable = dict[int, list[Image.Image]]


class SideSpan(NamedTuple):
    start: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.start


def side_span(config: SliceConfig, side: Side) -> SideSpan:
    """Pixel range a side's half of the block covers, split at ``cut_pos``."""
    if side is Side.NORTH:
        return SideSpan(0, config.cut_pos.y)
    if side is Side.SOUTH:
        return SideSpan(config.cut_pos.y, config.icon_size.y)
    if side is Side.EAST:
        return SideSpan(config.cut_pos.x, config.icon_size.x)
    return SideSpan(0, config.cut_pos.x)


def corner_box(config: SliceConfig, corner: Corner) -> tuple[int, int, int, int]:
    """(left, top, right, bottom) of a corner inside one block."""
    rule = CORNER_RULES[corner]
    h = side_span(config, rule.horizontal)
    v = side_span(config, rule.vertical)
    return h.start, v.start, h.end, v.end


# ---------------------------------------------------------------------------
# Source sheet
# ---------------------------------------------------------------------------


@dataclass
class SourceSheet:
    """A decoded source image addressed as blocks of ``icon_size``."""

    image: Image.Image
    config: SliceConfig
    input_sets: int
    frame_count: int

    @classmethod
    def from_image(cls, image: Image.Image, config: SliceConfig) -> SourceSheet:
        """Wrap *image*, checking its layout against *config* before any cutting."""
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        input_sets, frame_count = check_layout(image.size, config)
        return cls(image=image, config=config, input_sets=input_sets, frame_count=frame_count)

    def set_index(self, direction_index: int) -> int:
        # A single authored set is shared by every input direction
        return direction_index if self.input_sets > 1 else 0

    def block_origin(self, index: int, direction_index: int, frame: int) -> tuple[int, int]:
        ts = self.config.icon_size
        column = self.set_index(direction_index) * self.config.set_width + index
        return column * ts.x, frame * ts.y

    def block(self, index: int, direction_index: int, frame: int) -> Image.Image:
        x, y = self.block_origin(index, direction_index, frame)
        ts = self.config.icon_size
        return self.image.crop((x, y, x + ts.x, y + ts.y))


def check_layout(size: tuple[int, int], config: SliceConfig) -> tuple[int, int]:
    """Validate sheet dimensions; returns ``(input_sets, frame_count)``."""
    width, height = size
    ts = config.icon_size
    direction_count = len(config.directional_strategy.input_directions)

    if height < ts.y or height % ts.y != 0:
        raise SourceBoundsError(
            "icon_size.y",
            f"source height {height}px is not a positive multiple of {ts.y}px frames",
        )

    set_width = config.set_width
    for kind, index in config.positions.items():
        if index >= set_width:
            raise SourceBoundsError(
                f"positions.{kind.value}",
                f"block {index} is outside the input set of {set_width} blocks "
                f"({len(config.positions)} positions + {len(config.prefabs)} prefabs)",
            )
    for key, index in config.prefabs.items():
        if index >= set_width:
            raise SourceBoundsError(
                f"prefabs.{key}",
                f"block {index} is outside the input set of {set_width} blocks "
                f"({len(config.positions)} positions + {len(config.prefabs)} prefabs)",
            )

    set_px = set_width * ts.x
    if width == set_px:
        return 1, height // ts.y
    if direction_count > 1 and width == set_px * direction_count:
        return direction_count, height // ts.y

    expected = set_px * direction_count
    if abs(width - expected) == ts.x * direction_count:
        raise SourceBoundsError(
            "positions",
            f"source is {width}px wide, expected {expected}px: "
            f"{width // ts.x} blocks found, {expected // ts.x} expected "
            "(a position or prefab is missing or extra)",
        )
    if width % set_px == 0:
        raise SourceBoundsError(
            "directional_strategy",
            f"source is {width}px wide, expected {expected}px: "
            f"{width // set_px} direction sets found, {direction_count} expected",
        )
    raise SourceBoundsError(
        "icon_size.x",
        f"source is {width}px wide, expected {expected}px "
        f"({direction_count} x {set_width} blocks of {ts.x}px)",
    )


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def extract_corners(sheet: SourceSheet, direction_index: int = 0) -> CornerTable:
    """Cut every corner of every used corner kind, once per frame."""
    config = sheet.config
    table: CornerTable = {}
    for kind in adjacency.corner_kinds(config.smooth_diagonally):
        position = config.positions[kind]
        by_corner: dict[Corner, list[Image.Image]] = {}
        for corner in Corner:
            left, top, right, bottom = corner_box(config, corner)
            frames = []
            for frame in range(sheet.frame_count):
                x, y = sheet.block_origin(position, direction_index, frame)
                frames.append(sheet.image.crop((x + left, y + top, x + right, y + bottom)))
            by_corner[corner] = frames
        table[kind] = by_corner
        logger.debug(
            "Extracted %s corners from block %d (direction %d, %d frames)",
            kind.value,
            position,
            direction_index,
            sheet.frame_count,
        )
    return table


def extract_prefabs(sheet: SourceSheet, direction_index: int = 0) -> PrefabTable:
    """Copy every prefab block wholesale, once per frame."""
    prefabs: PrefabTable = {}
    for key, index in sheet.config.prefabs.items():
        prefabs[key] = [
            sheet.block(index, direction_index, frame) for frame in range(sheet.frame_count)
        ]
        logger.debug("Prefab for junction %d taken from block %d", key, index)
    return prefabs


def debug_corner_sheet(
    tables: dict[Direction, CornerTable],
    config: SliceConfig,
) -> Image.Image:
    """Reassemble the first frame of every extracted corner for inspection.

    Each corner kind gets its own block, one row of blocks per direction, so
    a correct cut reproduces the authored blocks exactly.
    """
    ts = config.icon_size
    kinds = adjacency.corner_kinds(config.smooth_diagonally)
    out = Image.new("RGBA", (len(kinds) * ts.x, len(tables) * ts.y), (0, 0, 0, 0))
    for row, table in enumerate(tables.values()):
        for col, kind in enumerate(kinds):
            for corner, frames in table[kind].items():
                region = frames[0]
                if not (region.width and region.height):
                    continue
                left, top, _, _ = corner_box(config, corner)
                out.paste(region, (col * ts.x + left, row * ts.y + top))
    return out
