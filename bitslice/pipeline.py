"""Turn one source sheet and its config into an ordered list of icon states."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from PIL import Image

from bitslice import adjacency
from bitslice.adjacency import CARDINALS, DMI_SIDES, Corner
from bitslice.animation import FrameGroup, bind_frames
from bitslice.config import Mode, SliceConfig
from bitslice.corners import CornerTable, SourceSheet, extract_corners, extract_prefabs
from bitslice.directions import Direction, JunctionTable, expand
from bitslice.junctions import synthesize
from bitslice.map_icon import generate_map_icon
from bitslice.visibility import cut_inner_corner, cut_visibility

logger = logging.getLogger(__name__)


@dataclass
class IconSheet:
    """Everything the container writer needs for one output file."""

    width: int
    height: int
    groups: list[FrameGroup] = field(default_factory=list)

    def names(self) -> list[str]:
        return [group.name for group in self.groups]

    def get(self, name: str) -> FrameGroup:
        for group in self.groups:
            if group.name == name:
                return group
        raise KeyError(name)


@dataclass
class Assembly:
    """Intermediate products, kept for debug output."""

    sheet: SourceSheet
    corners: dict[Direction, CornerTable]
    tables: dict[Direction, JunctionTable]


def state_name(config: SliceConfig, suffix: str) -> str:
    if config.output_name:
        return f"{config.output_name}-{suffix}"
    return suffix


def assemble(config: SliceConfig, image: Image.Image) -> Assembly:
    """Extract corners and synthesize junctions for every output direction."""
    sheet = SourceSheet.from_image(image, config)
    logger.info(
        "Source %dx%d: %d input set(s), %d frame(s)",
        image.width,
        image.height,
        sheet.input_sets,
        sheet.frame_count,
    )

    corners: dict[Direction, CornerTable] = {}
    tables: dict[Direction, JunctionTable] = {}
    for direction_index, direction in enumerate(config.directional_strategy.input_directions):
        corners[direction] = extract_corners(sheet, direction_index)
        prefabs = extract_prefabs(sheet, direction_index)
        tables[direction] = synthesize(corners[direction], prefabs, config, sheet.frame_count)

    return Assembly(
        sheet=sheet,
        corners=corners,
        tables=expand(tables, config.directional_strategy, config.icon_box),
    )


def _junction_groups(config: SliceConfig, tables: dict[Direction, JunctionTable]) -> list[FrameGroup]:
    groups = []
    for key in adjacency.emitted_keys(config.smooth_diagonally):
        per_direction = [table[key] for table in tables.values()]
        groups.append(bind_frames(state_name(config, str(key)), per_direction, config.animation))
    return groups


def _visibility_groups(
    config: SliceConfig, tables: dict[Direction, JunctionTable]
) -> list[FrameGroup]:
    groups = []
    for key in adjacency.emitted_keys(config.smooth_diagonally):
        for side in DMI_SIDES:
            per_direction = [
                [cut_visibility(frame, config, side) for frame in table[key]]
                for table in tables.values()
            ]
            name = state_name(config, f"{key}-{side.value}")
            groups.append(bind_frames(name, per_direction, config.animation))

    for corner in Corner:
        per_direction = [
            [cut_inner_corner(frame, config, corner) for frame in table[CARDINALS]]
            for table in tables.values()
        ]
        name = state_name(config, f"innercorner-{corner.value}")
        groups.append(bind_frames(name, per_direction, config.animation))
    return groups


def generate(config: SliceConfig, image: Image.Image) -> IconSheet:
    """Run the whole conversion for one source image."""
    return build_sheet(config, assemble(config, image))


def build_sheet(config: SliceConfig, assembly: Assembly) -> IconSheet:
    """Bind an assembly into the ordered icon states of the output sheet."""
    if config.mode is Mode.BITMASK_DIRECTIONAL_VIS:
        groups = _visibility_groups(config, assembly.tables)
    else:
        groups = _junction_groups(config, assembly.tables)

    if config.map_icon is not None:
        icon = generate_map_icon(config.output_icon_size, config.map_icon, assembly.sheet.image)
        groups.append(FrameGroup(name=config.map_icon.icon_state_name, dirs=1, frames=1, images=[icon]))

    logger.info("Generated %d icon states", len(groups))
    return IconSheet(
        width=config.output_icon_size.x,
        height=config.output_icon_size.y,
        groups=groups,
    )
