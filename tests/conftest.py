"""Shared test fixtures: synthetic source sheets and configs."""

from __future__ import annotations

import copy
from typing import Any

import pytest
from PIL import Image

from bitslice.config import SliceConfig, merge_tables, parse_config

TILE = 32

BASE_CONFIG: dict[str, Any] = {
    "mode": "BitmaskSlice",
    "icon_size": {"x": TILE, "y": TILE},
    "cut_pos": {"x": 16, "y": 16},
    "positions": {"convex": 0, "concave": 1, "horizontal": 2, "vertical": 3},
}

BASE_TOML = """\
mode = "BitmaskSlice"

[icon_size]
x = 32
y = 32

[cut_pos]
x = 16
y = 16

[positions]
convex = 0
concave = 1
horizontal = 2
vertical = 3
"""


def block_red(block: int, frame: int = 0) -> int:
    """Red channel that identifies which block (and frame) a pixel came from."""
    return block * 6 + frame


def make_sheet(
    blocks: int,
    size: tuple[int, int] = (TILE, TILE),
    frames: int = 1,
) -> Image.Image:
    """A sheet whose pixels encode their block, frame and in-block position.

    red = block * 6 + frame, green = x * 7, blue = y * 5, fully opaque.
    """
    w, h = size
    img = Image.new("RGBA", (blocks * w, frames * h))
    px = img.load()
    for frame in range(frames):
        for block in range(blocks):
            ox, oy = block * w, frame * h
            for y in range(h):
                for x in range(w):
                    px[ox + x, oy + y] = (block_red(block, frame), x * 7 % 256, y * 5 % 256, 255)
    return img


def make_config(**overrides: Any) -> SliceConfig:
    """Parse the base config with nested *overrides* merged on top."""
    data = merge_tables(copy.deepcopy(BASE_CONFIG), overrides)
    return parse_config(data)


def quadrant_blocks(img: Image.Image) -> dict[str, int]:
    """Which source block fed each quadrant of a 32x32 junction."""
    probes = {"NW": (4, 4), "NE": (28, 4), "SW": (4, 28), "SE": (28, 28)}
    return {name: img.getpixel(xy)[0] // 6 for name, xy in probes.items()}


@pytest.fixture
def config() -> SliceConfig:
    return make_config()


@pytest.fixture
def sheet() -> Image.Image:
    return make_sheet(4)
