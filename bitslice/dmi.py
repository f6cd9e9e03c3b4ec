"""Write icon sheets as BYOND DMI files.

A DMI is a PNG holding every frame in a grid, plus a ``zTXt`` chunk named
``Description`` listing the icon states in the order their frames appear.
"""

from __future__ import annotations

import math
from pathlib import Path

from PIL import Image
from PIL.PngImagePlugin import PngInfo

from bitslice.pipeline import IconSheet

DMI_VERSION = "4.0"


def _format_delay(delay: float) -> str:
    return f"{delay:g}"


def describe(sheet: IconSheet) -> str:
    """Build the DMI description text for *sheet*."""
    lines = [
        "# BEGIN DMI",
        f"version = {DMI_VERSION}",
        f"\twidth = {sheet.width}",
        f"\theight = {sheet.height}",
    ]
    for group in sheet.groups:
        name = group.name.replace("\\", "\\\\").replace('"', '\\"')
        lines.append(f'state = "{name}"')
        lines.append(f"\tdirs = {group.dirs}")
        lines.append(f"\tframes = {group.frames}")
        if group.delays is not None and group.frames > 1:
            lines.append("\tdelay = " + ",".join(_format_delay(d) for d in group.delays))
        if group.rewind:
            lines.append("\trewind = 1")
    lines.append("# END DMI")
    return "\n".join(lines) + "\n"


def grid_size(frame_count: int) -> tuple[int, int]:
    """(columns, rows) of the near-square grid holding *frame_count* frames."""
    if frame_count <= 0:
        return 1, 1
    cols = math.ceil(math.sqrt(frame_count))
    rows = math.ceil(frame_count / cols)
    return cols, rows


def layout(sheet: IconSheet) -> Image.Image:
    """Arrange every frame of every state, row-major, into one image."""
    frames = [image for group in sheet.groups for image in group.images]
    cols, rows = grid_size(len(frames))
    out = Image.new("RGBA", (cols * sheet.width, rows * sheet.height), (0, 0, 0, 0))
    for i, frame in enumerate(frames):
        c, r = i % cols, i // cols
        out.paste(frame, (c * sheet.width, r * sheet.height))
    return out


def write_dmi(sheet: IconSheet, path: Path) -> None:
    info = PngInfo()
    info.add_text("Description", describe(sheet), zip=True)
    path.parent.mkdir(parents=True, exist_ok=True)
    layout(sheet).save(path, format="PNG", pnginfo=info)
