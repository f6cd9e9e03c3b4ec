"""Assemble junction blocks from extracted corners."""

from __future__ import annotations

import logging

from PIL import Image

from bitslice import adjacency
from bitslice.adjacency import Corner
from bitslice.config import SliceConfig
from bitslice.corners import CornerTable, PrefabTable, corner_box
from bitslice.directions import JunctionTable
from bitslice.errors import CompositionError

logger = logging.getLogger(__name__)


def _blank(config: SliceConfig) -> Image.Image:
    return Image.new("RGBA", config.output_icon_size, (0, 0, 0, 0))


def compose(
    key: int,
    corners: CornerTable,
    prefabs: PrefabTable,
    config: SliceConfig,
    frame: int = 0,
) -> Image.Image:
    """Build the block for one junction key and animation frame.

    A prefab for *key* is copied wholesale; otherwise each quadrant is
    pasted from the corner kind its two cardinal neighbors (and diagonal,
    when smoothing diagonally) select.
    """
    origin_x, origin_y = config.output_icon_pos
    result = _blank(config)

    if key in prefabs:
        result.paste(prefabs[key][frame], (origin_x, origin_y))
        return result

    for corner in Corner:
        kind = adjacency.corner_kind(key, corner)
        by_corner = corners.get(kind)
        if by_corner is None:
            raise CompositionError(
                f"junction {key} ({adjacency.describe_key(key)}) needs {kind.value} corners, "
                "which were not extracted"
            )
        region = by_corner[corner][frame]
        if not (region.width and region.height):
            continue
        left, top, _, _ = corner_box(config, corner)
        result.paste(region, (origin_x + left, origin_y + top))

    return result


def synthesize(
    corners: CornerTable,
    prefabs: PrefabTable,
    config: SliceConfig,
    frame_count: int,
) -> JunctionTable:
    """Build every key of the adjacency model, one block per frame."""
    table: JunctionTable = {}
    for key in adjacency.key_space(config.smooth_diagonally):
        table[key] = [
            compose(key, corners, prefabs, config, frame) for frame in range(frame_count)
        ]
    logger.debug(
        "Synthesized %d junctions (%d from prefabs)",
        len(table),
        sum(1 for key in table if key in prefabs),
    )
    return table
