"""End-to-end tests: source sheet and config in, ordered icon states out."""

from __future__ import annotations

import pytest
from PIL import Image

from bitslice.errors import SourceBoundsError
from bitslice.pipeline import assemble, generate, state_name

from conftest import make_config, make_sheet, quadrant_blocks

SLICE = {"west": 4, "north": 16, "south": 20, "east": 28}


class TestBitmaskSlice:
    def test_cardinal_states(self, config, sheet):
        icons = generate(config, sheet)
        assert icons.names() == [str(k) for k in range(16)]
        assert (icons.width, icons.height) == (32, 32)
        group = icons.get("5")
        assert (group.dirs, group.frames) == (1, 1)
        assert group.delays is None

    def test_states_are_composed(self, config, sheet):
        icons = generate(config, sheet)
        assert set(quadrant_blocks(icons.get("0").images[0]).values()) == {0}
        assert set(quadrant_blocks(icons.get("15").images[0]).values()) == {1}

    def test_prefab_state(self):
        config = make_config(prefabs={"15": 4})
        sheet = make_sheet(5)
        icons = generate(config, sheet)
        assert icons.get("15").images[0].tobytes() == sheet.crop((128, 0, 160, 32)).tobytes()

    def test_diagonal_emits_47_states(self):
        config = make_config(smooth_diagonally=True, positions={"flat": 4})
        icons = generate(config, make_sheet(5))
        names = icons.names()
        assert len(names) == 47
        assert "255" in names
        assert "17" not in names
        # the full table is still synthesized
        assembly = assemble(config, make_sheet(5))
        assert len(next(iter(assembly.tables.values()))) == 256

    def test_output_name_prefix(self):
        config = make_config(output_name="wall")
        icons = generate(config, make_sheet(4))
        assert icons.names()[:2] == ["wall-0", "wall-1"]
        assert state_name(make_config(), "3") == "3"

    def test_map_icon_is_last(self):
        config = make_config(map_icon={"icon_state_name": "preview", "text": "W"})
        icons = generate(config, make_sheet(4))
        assert icons.names()[-1] == "preview"
        assert len(icons.groups) == 17
        assert icons.get("preview").images[0].size == (32, 32)

    def test_bad_sheet_is_rejected_before_cutting(self, config):
        with pytest.raises(SourceBoundsError):
            generate(config, make_sheet(3))


class TestDirections:
    def test_cardinals_from_one_set(self):
        config = make_config(directional_strategy="Cardinals")
        icons = generate(config, make_sheet(4))
        group = icons.get("0")
        assert group.dirs == 4
        assert len(group.images) == 4

    def test_cardinals_from_four_sets(self):
        config = make_config(directional_strategy="Cardinals")
        icons = generate(config, make_sheet(16))
        images = icons.get("0").images
        # S, N, E, W read from sets 0..3, convex corners at block 0, 4, 8, 12
        assert [img.getpixel((4, 4))[0] // 6 for img in images] == [0, 4, 8, 12]

    def test_rotated(self):
        config = make_config(directional_strategy="CardinalsRotated")
        sheet = make_sheet(4)
        south, north, east, west = generate(config, sheet).get("1").images
        standard = generate(make_config(), sheet)
        # joined to the north, seen from the north, is joined to the south turned around
        assert south.tobytes() == standard.get("1").images[0].tobytes()
        expected = standard.get("2").images[0].transpose(Image.Transpose.ROTATE_180)
        assert north.tobytes() == expected.tobytes()
        expected = standard.get("4").images[0].transpose(Image.Transpose.ROTATE_90)
        assert east.tobytes() == expected.tobytes()

    def test_all_directions(self):
        config = make_config(directional_strategy="All")
        icons = generate(config, make_sheet(4))
        assert icons.get("0").dirs == 8


class TestAnimation:
    def test_frames_and_delays(self):
        config = make_config(animation={"delays": [10, 20]})
        icons = generate(config, make_sheet(4, frames=3))
        group = icons.get("0")
        assert group.frames == 3
        assert group.delays == [10.0, 20.0, 10.0]
        assert [img.getpixel((4, 4))[0] for img in group.images] == [0, 1, 2]

    def test_duplicate_frames_merge(self):
        config = make_config(animation={"delays": [10, 20]})
        single = make_sheet(4)
        doubled = Image.new("RGBA", (128, 64))
        doubled.paste(single, (0, 0))
        doubled.paste(single, (0, 32))
        group = generate(config, doubled).get("0")
        assert group.frames == 1
        assert group.delays == [30.0]


class TestDirectionalVis:
    @pytest.fixture
    def vis_config(self):
        return make_config(mode="BitmaskDirectionalVis", slice_point=SLICE)

    def test_state_names(self, vis_config, sheet):
        icons = generate(vis_config, sheet)
        names = icons.names()
        assert len(names) == 16 * 4 + 4
        assert names[:4] == ["0-2", "0-1", "0-4", "0-8"]
        assert names[-4:] == [
            "innercorner-5",
            "innercorner-6",
            "innercorner-10",
            "innercorner-9",
        ]

    def test_cut_states(self, vis_config, sheet):
        icons = generate(vis_config, sheet)
        assert icons.get("3-8").images[0].getbbox() == (0, 0, 4, 32)
        assert icons.get("3-2").images[0].getbbox() == (0, 20, 32, 32)

    def test_inner_corners_come_from_fully_joined_block(self, vis_config, sheet):
        icons = generate(vis_config, sheet)
        img = icons.get("innercorner-5").images[0]
        assert img.getbbox() == (16, 0, 32, 16)
        assert img.getpixel((20, 4))[0] // 6 == 1


class TestRotatedPadding:
    @pytest.fixture
    def padded(self):
        return {
            "directional_strategy": "CardinalsRotated",
            "output_icon_size": {"x": 40, "y": 40},
            "output_icon_pos": {"x": 4, "y": 8},
        }

    def test_every_direction_keeps_the_offset(self, padded):
        icons = generate(make_config(**padded), make_sheet(4))
        for key in ("0", "1", "6"):
            assert [img.getbbox() for img in icons.get(key).images] == [(4, 8, 36, 40)] * 4

    def test_only_the_icon_is_turned(self, padded):
        south, north, east, west = generate(make_config(**padded), make_sheet(4)).get("0").images
        box = (4, 8, 36, 40)
        content = south.crop(box)
        assert north.crop(box).tobytes() == content.transpose(Image.Transpose.ROTATE_180).tobytes()
        assert east.crop(box).tobytes() == content.transpose(Image.Transpose.ROTATE_90).tobytes()
        assert west.crop(box).tobytes() == content.transpose(Image.Transpose.ROTATE_270).tobytes()

    def test_visibility_cut_lines_up(self, padded):
        config = make_config(mode="BitmaskDirectionalVis", slice_point=SLICE, **padded)
        icons = generate(config, make_sheet(4))
        assert [img.getbbox() for img in icons.get("0-8").images] == [(4, 8, 8, 40)] * 4
        assert [img.getbbox() for img in icons.get("5-2").images] == [(4, 28, 36, 40)] * 4
