"""Conversion job configuration: TOML loading, template merging, validation.

A job is configured by a TOML document sitting next to its source image
(``wall.png.toml`` for ``wall.png``). The document may name a ``template``;
templates are looked up in the templates folder as ``<name>.toml`` and act as
a base layer that the document overwrites field by field.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, NamedTuple

from bitslice import adjacency
from bitslice.adjacency import CornerKind
from bitslice.directions import DirectionStrategy
from bitslice.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_DIR = "templates"

RGBA = tuple[int, int, int, int]

TEXT_POSITIONS = frozenset(
    ["top_left", "top_right", "bottom_left", "bottom_right", "center"]
)
TEXT_ALIGNMENTS = frozenset(["left", "center", "right"])
BORDER_STYLES = frozenset(["solid", "dotted"])

# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------


class Mode(Enum):
    BITMASK_SLICE = "BitmaskSlice"
    BITMASK_DIRECTIONAL_VIS = "BitmaskDirectionalVis"


class Point(NamedTuple):
    x: int
    y: int


class SlicePoint(NamedTuple):
    """Directional-visibility cut lines (west/east from the left, north/south from the top)."""

    west: int
    north: int
    south: int
    east: int


class Border(NamedTuple):
    style: str  # "solid" or "dotted"
    color: RGBA


@dataclass(frozen=True)
class Animation:
    delays: tuple[float, ...]
    rewind: bool = False


@dataclass(frozen=True)
class MapIconSpec:
    icon_state_name: str = "map_icon"
    automatic: bool = False
    base_color: RGBA = (255, 255, 255, 255)
    text: str | None = None
    text_color: RGBA = (0, 0, 0, 255)
    text_position: str = "bottom_right"
    text_alignment: str = "right"
    inner_border: Border | None = None
    outer_border: Border | None = None


@dataclass(frozen=True)
class SliceConfig:
    """Fully resolved, validated settings for one conversion job."""

    mode: Mode
    icon_size: Point
    cut_pos: Point
    positions: Mapping[CornerKind, int]
    output_icon_size: Point
    output_icon_pos: Point = Point(0, 0)
    directional_strategy: DirectionStrategy = DirectionStrategy.STANDARD
    smooth_diagonally: bool = False
    output_name: str | None = None
    prefabs: Mapping[int, int] = field(default_factory=lambda: MappingProxyType({}))
    animation: Animation | None = None
    map_icon: MapIconSpec | None = None
    slice_point: SlicePoint | None = None

    @property
    def set_width(self) -> int:
        """Blocks in one input set: every corner position plus every prefab."""
        return len(self.positions) + len(self.prefabs)

    @property
    def icon_box(self) -> tuple[int, int, int, int]:
        """Where one ``icon_size`` block sits on the output canvas."""
        x, y = self.output_icon_pos
        return x, y, x + self.icon_size.x, y + self.icon_size.y


# ---------------------------------------------------------------------------
# Colors
# ---------------------------------------------------------------------------


def parse_hex_color(value: Any, field_name: str) -> RGBA:
    """Parse ``#RGB``, ``#RRGGBB`` or ``#RRGGBBAA`` (the ``#`` is optional)."""
    if not isinstance(value, str):
        raise ConfigError(field_name, f"expected a hex color string, got {value!r}")
    h = value.strip().lstrip("#")
    if len(h) == 3:
        h = "".join(c * 2 for c in h)
    if len(h) == 6:
        h += "ff"
    if len(h) != 8:
        raise ConfigError(field_name, f"invalid hex color {value!r}")
    try:
        return (int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16), int(h[6:8], 16))
    except ValueError as exc:
        raise ConfigError(field_name, f"invalid hex color {value!r}") from exc


# ---------------------------------------------------------------------------
# Loading & template merging
# ---------------------------------------------------------------------------


def merge_tables(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Overlay *override* on *base*; nested tables merge key by key."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_tables(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(str(path), f"invalid TOML: {exc}") from exc


def _normalize(document: dict[str, Any]) -> dict[str, Any]:
    """Rename the ``direction_strategy`` alias so layers merge on one key."""
    if "direction_strategy" not in document:
        return document
    normalized = dict(document)
    alias = normalized.pop("direction_strategy")
    normalized.setdefault("directional_strategy", alias)
    return normalized


def resolve_templates(
    document: dict[str, Any],
    template_dir: Path,
    _seen: tuple[str, ...] = (),
) -> dict[str, Any]:
    """Apply the ``template`` chain of *document*, base layers first."""
    document = _normalize(document)
    name = document.get("template")
    if name is None:
        return document
    if not isinstance(name, str):
        raise ConfigError("template", f"expected a template name, got {name!r}")
    if name in _seen:
        chain = " -> ".join(_seen + (name,))
        raise ConfigError("template", f"template cycle: {chain}")

    template_path = template_dir / f"{name}.toml"
    if not template_path.is_file():
        raise ConfigError(
            "template", f"template {name!r} not found, expected {template_path}"
        )
    logger.debug("Resolving template %s from %s", name, template_path)

    base = resolve_templates(_read_toml(template_path), template_dir, _seen + (name,))
    own = {k: v for k, v in document.items() if k != "template"}
    return merge_tables(base, own)


def load_config(path: Path, template_dir: Path | None = None) -> SliceConfig:
    """Read, merge and validate the config document at *path*."""
    document = _read_toml(path)
    template_dir = template_dir or Path(DEFAULT_TEMPLATE_DIR)
    merged = resolve_templates(document, template_dir)
    return parse_config(merged)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _int(value: Any, field_name: str, minimum: int = 0) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(field_name, f"expected an integer, got {value!r}")
    if value < minimum:
        raise ConfigError(field_name, f"must be >= {minimum}, got {value}")
    return value


def _bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(field_name, f"expected true or false, got {value!r}")
    return value


def _table(data: dict[str, Any], name: str, required: bool = True) -> dict[str, Any] | None:
    value = data.get(name)
    if value is None:
        if required:
            raise ConfigError(name, "missing required table")
        return None
    if not isinstance(value, dict):
        raise ConfigError(name, f"expected a table, got {value!r}")
    return value


def _point(data: dict[str, Any], name: str, minimum: int = 0) -> Point | None:
    table = _table(data, name, required=False)
    if table is None:
        return None
    for axis in ("x", "y"):
        if axis not in table:
            raise ConfigError(f"{name}.{axis}", "missing required field")
    return Point(
        _int(table["x"], f"{name}.x", minimum), _int(table["y"], f"{name}.y", minimum)
    )


def _parse_positions(data: dict[str, Any], smooth_diagonally: bool) -> dict[CornerKind, int]:
    table = _table(data, "positions")
    known = {kind.value for kind in CornerKind}
    unknown = sorted(set(table) - known)
    if unknown:
        raise ConfigError("positions", f"unknown corner kinds {unknown}; valid: {sorted(known)}")

    positions: dict[CornerKind, int] = {}
    for kind in adjacency.corner_kinds(smooth_diagonally):
        if kind.value not in table:
            reason = "required when smooth_diagonally = true" if kind is CornerKind.FLAT else "missing required field"
            raise ConfigError(f"positions.{kind.value}", reason)
        positions[kind] = _int(table[kind.value], f"positions.{kind.value}")

    if not smooth_diagonally and CornerKind.FLAT.value in table:
        raise ConfigError("positions.flat", "only allowed when smooth_diagonally = true")
    return positions


def _parse_prefabs(data: dict[str, Any], smooth_diagonally: bool) -> dict[int, int]:
    table = _table(data, "prefabs", required=False)
    if table is None:
        return {}
    keys = adjacency.key_space(smooth_diagonally)
    prefabs: dict[int, int] = {}
    for raw_key, raw_index in table.items():
        try:
            key = int(raw_key)
        except ValueError as exc:
            raise ConfigError(f"prefabs.{raw_key}", "junction key must be an integer") from exc
        if key not in keys:
            raise ConfigError(
                f"prefabs.{raw_key}",
                f"junction key must be within {keys.start}..{keys.stop - 1}; keys the "
                "adjacency model cannot produce are rejected, not ignored "
                "(diagonal keys need smooth_diagonally = true)",
            )
        prefabs[key] = _int(raw_index, f"prefabs.{raw_key}")
    return prefabs


def _parse_animation(data: dict[str, Any]) -> Animation | None:
    table = _table(data, "animation", required=False)
    if table is None:
        return None
    delays = table.get("delays")
    if not isinstance(delays, list) or not delays:
        raise ConfigError("animation.delays", "must be a non-empty list of delays")
    parsed: list[float] = []
    for i, delay in enumerate(delays):
        if isinstance(delay, bool) or not isinstance(delay, (int, float)) or delay <= 0:
            raise ConfigError(f"animation.delays[{i}]", f"must be a positive number, got {delay!r}")
        parsed.append(float(delay))
    rewind = _bool(table.get("rewind", False), "animation.rewind")
    return Animation(delays=tuple(parsed), rewind=rewind)


def _parse_border(table: dict[str, Any], name: str) -> Border | None:
    value = table.get(name)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ConfigError(f"map_icon.{name}", "expected a table with style and color")
    style = value.get("style", "")
    if style == "":
        return None
    if style not in BORDER_STYLES:
        raise ConfigError(
            f"map_icon.{name}.style", f"must be one of {sorted(BORDER_STYLES)}, got {style!r}"
        )
    color = parse_hex_color(value.get("color", "#000000"), f"map_icon.{name}.color")
    return Border(style, color)


def _parse_map_icon(data: dict[str, Any]) -> MapIconSpec | None:
    table = _table(data, "map_icon", required=False)
    if table is None:
        return None

    name = table.get("icon_state_name", "map_icon")
    if not isinstance(name, str) or not name:
        raise ConfigError("map_icon.icon_state_name", "must be a non-empty string")

    text = table.get("text")
    if text is not None and not isinstance(text, str):
        raise ConfigError("map_icon.text", f"expected a string, got {text!r}")

    position = table.get("text_position", "bottom_right")
    if position not in TEXT_POSITIONS:
        raise ConfigError(
            "map_icon.text_position", f"must be one of {sorted(TEXT_POSITIONS)}, got {position!r}"
        )
    alignment = table.get("text_alignment", "right")
    if alignment not in TEXT_ALIGNMENTS:
        raise ConfigError(
            "map_icon.text_alignment",
            f"must be one of {sorted(TEXT_ALIGNMENTS)}, got {alignment!r}",
        )

    return MapIconSpec(
        icon_state_name=name,
        automatic=_bool(table.get("automatic", False), "map_icon.automatic"),
        base_color=parse_hex_color(table.get("base_color", "#FFFFFF"), "map_icon.base_color"),
        text=text or None,
        text_color=parse_hex_color(table.get("text_color", "#000000"), "map_icon.text_color"),
        text_position=position,
        text_alignment=alignment,
        inner_border=_parse_border(table, "inner_border"),
        outer_border=_parse_border(table, "outer_border"),
    )


def _parse_slice_point(data: dict[str, Any], icon_size: Point) -> SlicePoint:
    table = _table(data, "slice_point")
    values: dict[str, int] = {}
    for side, limit in (
        ("west", icon_size.x),
        ("north", icon_size.y),
        ("south", icon_size.y),
        ("east", icon_size.x),
    ):
        if side not in table:
            raise ConfigError(f"slice_point.{side}", "missing required field")
        value = _int(table[side], f"slice_point.{side}")
        if value > limit:
            raise ConfigError(f"slice_point.{side}", f"must be within 0..{limit}, got {value}")
        values[side] = value
    return SlicePoint(**values)


def _enum(enum_cls: type[Enum], value: Any, field_name: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError as exc:
        valid = [m.value for m in enum_cls]
        raise ConfigError(field_name, f"must be one of {valid}, got {value!r}") from exc


def parse_config(data: dict[str, Any]) -> SliceConfig:
    """Validate a merged config document into a :class:`SliceConfig`.

    Raises :class:`ConfigError` naming the first offending field.
    """
    mode = _enum(Mode, data.get("mode", Mode.BITMASK_SLICE.value), "mode")

    strategy_value = data.get(
        "directional_strategy", data.get("direction_strategy", DirectionStrategy.STANDARD.value)
    )
    strategy = _enum(DirectionStrategy, strategy_value, "directional_strategy")
    smooth = _bool(data.get("smooth_diagonally", False), "smooth_diagonally")

    icon_size = _point(data, "icon_size", minimum=1)
    if icon_size is None:
        raise ConfigError("icon_size", "missing required table")

    cut_pos = _point(data, "cut_pos")
    if cut_pos is None:
        raise ConfigError("cut_pos", "missing required table")
    if cut_pos.x > icon_size.x or cut_pos.y > icon_size.y:
        raise ConfigError(
            "cut_pos",
            f"({cut_pos.x}, {cut_pos.y}) must lie within icon_size "
            f"({icon_size.x}, {icon_size.y})",
        )

    output_icon_size = _point(data, "output_icon_size", minimum=1) or icon_size
    output_icon_pos = _point(data, "output_icon_pos") or Point(0, 0)

    if strategy is DirectionStrategy.CARDINALS_ROTATED:
        if icon_size.x != icon_size.y or output_icon_size.x != output_icon_size.y:
            raise ConfigError(
                "directional_strategy",
                "CardinalsRotated needs square icon_size and output_icon_size",
            )

    output_name = data.get("output_name")
    if output_name is not None and not isinstance(output_name, str):
        raise ConfigError("output_name", f"expected a string, got {output_name!r}")

    slice_point = None
    if mode is Mode.BITMASK_DIRECTIONAL_VIS:
        slice_point = _parse_slice_point(data, icon_size)

    return SliceConfig(
        mode=mode,
        icon_size=icon_size,
        cut_pos=cut_pos,
        positions=MappingProxyType(_parse_positions(data, smooth)),
        output_icon_size=output_icon_size,
        output_icon_pos=output_icon_pos,
        directional_strategy=strategy,
        smooth_diagonally=smooth,
        output_name=output_name or None,
        prefabs=MappingProxyType(_parse_prefabs(data, smooth)),
        animation=_parse_animation(data),
        map_icon=_parse_map_icon(data),
        slice_point=slice_point,
    )
