"""Generate the summary "map icon" shown in editors and inventories."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterator

from PIL import Image

from bitslice.config import RGBA, Border, MapIconSpec

logger = logging.getLogger(__name__)

GLYPH_WIDTH = 3
GLYPH_HEIGHT = 5
SPACING = 1
# outer border + inner border
TEXT_MARGIN = 2
DOT_PERIOD = 2

# 3x5 bitmap font, one string per row
FONT: dict[str, tuple[str, ...]] = {
    "A": (".#.", "#.#", "###", "#.#", "#.#"),
    "B": ("##.", "#.#", "##.", "#.#", "##."),
    "C": (".##", "#..", "#..", "#..", ".##"),
    "D": ("##.", "#.#", "#.#", "#.#", "##."),
    "E": ("###", "#..", "##.", "#..", "###"),
    "F": ("###", "#..", "##.", "#..", "#.."),
    "G": (".##", "#..", "#.#", "#.#", ".##"),
    "H": ("#.#", "#.#", "###", "#.#", "#.#"),
    "I": ("###", ".#.", ".#.", ".#.", "###"),
    "J": ("..#", "..#", "..#", "#.#", ".#."),
    "K": ("#.#", "#.#", "##.", "#.#", "#.#"),
    "L": ("#..", "#..", "#..", "#..", "###"),
    "M": ("#.#", "###", "###", "#.#", "#.#"),
    "N": ("##.", "#.#", "#.#", "#.#", "#.#"),
    "O": (".#.", "#.#", "#.#", "#.#", ".#."),
    "P": ("##.", "#.#", "##.", "#..", "#.."),
    "Q": (".#.", "#.#", "#.#", "##.", ".##"),
    "R": ("##.", "#.#", "##.", "#.#", "#.#"),
    "S": (".##", "#..", ".#.", "..#", "##."),
    "T": ("###", ".#.", ".#.", ".#.", ".#."),
    "U": ("#.#", "#.#", "#.#", "#.#", "###"),
    "V": ("#.#", "#.#", "#.#", "#.#", ".#."),
    "W": ("#.#", "#.#", "###", "###", "#.#"),
    "X": ("#.#", "#.#", ".#.", "#.#", "#.#"),
    "Y": ("#.#", "#.#", ".#.", ".#.", ".#."),
    "Z": ("###", "..#", ".#.", "#..", "###"),
    "0": ("###", "#.#", "#.#", "#.#", "###"),
    "1": (".#.", "##.", ".#.", ".#.", "###"),
    "2": ("##.", "..#", ".#.", "#..", "###"),
    "3": ("##.", "..#", ".#.", "..#", "##."),
    "4": ("#.#", "#.#", "###", "..#", "..#"),
    "5": ("###", "#..", "##.", "..#", "##."),
    "6": (".##", "#..", "###", "#.#", "###"),
    "7": ("###", "..#", ".#.", ".#.", ".#."),
    "8": ("###", "#.#", "###", "#.#", "###"),
    "9": ("###", "#.#", "###", "..#", "##."),
    "-": ("...", "...", "###", "...", "..."),
    "_": ("...", "...", "...", "...", "###"),
    "+": ("...", ".#.", "###", ".#.", "..."),
    ".": ("...", "...", "...", "...", ".#."),
    ":": ("...", ".#.", "...", ".#.", "..."),
    "!": (".#.", ".#.", ".#.", "...", ".#."),
    "?": ("##.", "..#", ".#.", "...", ".#."),
    "/": ("..#", "..#", ".#.", "#..", "#.."),
}


def glyph(char: str) -> tuple[str, ...]:
    """Bitmap rows for *char*; unknown characters render as ``?``."""
    return FONT.get(char.upper(), FONT["?"])


def text_size(lines: list[str]) -> tuple[int, int]:
    """Pixel size of a block of text lines."""
    width = max((line_width(line) for line in lines), default=0)
    height = len(lines) * (GLYPH_HEIGHT + SPACING) - SPACING
    return width, max(height, 0)


def line_width(line: str) -> int:
    if not line:
        return 0
    return len(line) * (GLYPH_WIDTH + SPACING) - SPACING


# ---------------------------------------------------------------------------
# Color derivation
# ---------------------------------------------------------------------------


def luminance(color: RGBA) -> float:
    r, g, b, _ = color
    return (0.2126 * r + 0.7152 * g + 0.0722 * b) / 255


def _visible_colors(image: Image.Image) -> list[tuple[int, RGBA]]:
    rgba = image.convert("RGBA")
    counted = rgba.getcolors(rgba.width * rgba.height) or []
    return [(count, color) for count, color in counted if color[3] > 0]


def average_color(image: Image.Image) -> RGBA | None:
    """Alpha-weighted mean of every non-transparent pixel, fully opaque."""
    counted = _visible_colors(image)
    total = sum(count * color[3] for count, color in counted)
    if total == 0:
        return None
    channels = [
        round(sum(count * color[3] * color[c] for count, color in counted) / total)
        for c in range(3)
    ]
    return channels[0], channels[1], channels[2], 255


def pick_contrasting_colors(colors: list[RGBA]) -> tuple[RGBA, RGBA]:
    """A dark and a light color: the 10th and 90th luminance percentiles."""
    ordered = sorted(colors, key=luminance)
    low = max(int(0.10 * len(ordered)) - 1, 0)
    high = max(int(0.90 * len(ordered)) - 1, 0)
    return ordered[low], ordered[high]


def derive_colors(spec: MapIconSpec, source: Image.Image) -> MapIconSpec:
    """Replace base, text and outer-border colors with ones sampled from *source*."""
    base = average_color(source)
    if base is None:
        logger.warning("Source sheet is fully transparent, keeping configured map icon colors")
        return spec

    dark, light = pick_contrasting_colors([color for _, color in _visible_colors(source)])
    if abs(luminance(dark) - luminance(base)) >= abs(luminance(light) - luminance(base)):
        contrast = dark
    else:
        contrast = light
    contrast = (contrast[0], contrast[1], contrast[2], 255)

    style = spec.outer_border.style if spec.outer_border else "solid"
    return replace(
        spec, base_color=base, text_color=contrast, outer_border=Border(style, contrast)
    )


# ---------------------------------------------------------------------------
# Drawing
# ---------------------------------------------------------------------------


def _perimeter(left: int, top: int, right: int, bottom: int) -> Iterator[tuple[int, int]]:
    """Clockwise walk around a rectangle outline, starting top-left."""
    if right < left or bottom < top:
        return
    if right == left or bottom == top:
        for y in range(top, bottom + 1):
            for x in range(left, right + 1):
                yield x, y
        return
    for x in range(left, right):
        yield x, top
    for y in range(top, bottom):
        yield right, y
    for x in range(right, left, -1):
        yield x, bottom
    for y in range(bottom, top, -1):
        yield left, y


def draw_border(img: Image.Image, border: Border, inset: int) -> None:
    px = img.load()
    w, h = img.size
    for i, (x, y) in enumerate(_perimeter(inset, inset, w - 1 - inset, h - 1 - inset)):
        if border.style == "dotted" and i % DOT_PERIOD:
            continue
        px[x, y] = border.color


def _origin(
    position: str, size: tuple[int, int], block: tuple[int, int]
) -> tuple[int, int]:
    w, h = size
    bw, bh = block
    if position == "center":
        return (w - bw) // 2, (h - bh) // 2
    x = TEXT_MARGIN if position.endswith("left") else w - TEXT_MARGIN - bw
    y = TEXT_MARGIN if position.startswith("top") else h - TEXT_MARGIN - bh
    return x, y


def draw_text(img: Image.Image, spec: MapIconSpec) -> None:
    """Rasterize ``spec.text``; each space starts a new line. Overflow is clipped."""
    if not spec.text:
        return
    px = img.load()
    w, h = img.size
    lines = spec.text.split(" ")
    block = text_size(lines)
    x0, y0 = _origin(spec.text_position, img.size, block)

    for row, line in enumerate(lines):
        lw = line_width(line)
        if spec.text_alignment == "left":
            lx = x0
        elif spec.text_alignment == "center":
            lx = x0 + (block[0] - lw) // 2
        else:
            lx = x0 + block[0] - lw
        ly = y0 + row * (GLYPH_HEIGHT + SPACING)

        for i, char in enumerate(line):
            gx = lx + i * (GLYPH_WIDTH + SPACING)
            for dy, bits in enumerate(glyph(char)):
                for dx, bit in enumerate(bits):
                    x, y = gx + dx, ly + dy
                    if bit == "#" and 0 <= x < w and 0 <= y < h:
                        px[x, y] = spec.text_color


def generate_map_icon(
    size: tuple[int, int],
    spec: MapIconSpec,
    source: Image.Image | None = None,
) -> Image.Image:
    """Render the map icon; *source* is sampled when ``spec.automatic`` is set."""
    if spec.automatic and source is not None:
        spec = derive_colors(spec, source)

    img = Image.new("RGBA", size, spec.base_color)
    if spec.outer_border is not None:
        draw_border(img, spec.outer_border, inset=0)
    if spec.inner_border is not None:
        draw_border(img, spec.inner_border, inset=1)
    draw_text(img, spec)
    return img
