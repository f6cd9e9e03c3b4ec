"""Directional visibility: what of each junction is seen from one side.

Each junction is cut once per side along the configured slice line. The half
facing away from that side is discarded and left fully transparent.
"""

from __future__ import annotations

from PIL import Image

from bitslice.adjacency import CORNER_RULES, Corner, Side
from bitslice.config import SliceConfig
from bitslice.corners import SideSpan, side_span


def side_cut(config: SliceConfig, side: Side) -> SideSpan:
    """Range kept when viewing from *side* (x for east/west, y for north/south)."""
    sp = config.slice_point
    if sp is None:
        raise ValueError("directional visibility needs a slice_point")
    if side is Side.NORTH:
        return SideSpan(0, sp.north)
    if side is Side.SOUTH:
        return SideSpan(sp.south, config.icon_size.y)
    if side is Side.EAST:
        return SideSpan(sp.east, config.icon_size.x)
    return SideSpan(0, sp.west)


def keep_region(block: Image.Image, box: tuple[int, int, int, int]) -> Image.Image:
    """Copy of *block* with everything outside *box* made transparent."""
    out = Image.new("RGBA", block.size, (0, 0, 0, 0))
    left, top, right, bottom = box
    if right > left and bottom > top:
        out.paste(block.crop(box), (left, top))
    return out


def visible_box(config: SliceConfig, side: Side) -> tuple[int, int, int, int]:
    ox, oy = config.output_icon_pos
    span = side_cut(config, side)
    if side.is_vertical:
        return ox, oy + span.start, ox + config.icon_size.x, oy + span.end
    return ox + span.start, oy, ox + span.end, oy + config.icon_size.y


def cut_visibility(block: Image.Image, config: SliceConfig, side: Side) -> Image.Image:
    """Keep only the part of *block* visible from *side*."""
    return keep_region(block, visible_box(config, side))


def inner_corner_box(config: SliceConfig, corner: Corner) -> tuple[int, int, int, int]:
    """Horizontal extent from the cut position, vertical extent from the slice line."""
    rule = CORNER_RULES[corner]
    h = side_span(config, rule.horizontal)
    v = side_cut(config, rule.vertical)
    ox, oy = config.output_icon_pos
    return ox + h.start, oy + v.start, ox + h.end, oy + v.end


def cut_inner_corner(block: Image.Image, config: SliceConfig, corner: Corner) -> Image.Image:
    return keep_region(block, inner_corner_box(config, corner))
