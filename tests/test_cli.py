"""Tests for the command line front end."""

from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from bitslice.cli import Job, image_path_for, main, output_path_for, resolve_inputs

from conftest import BASE_TOML, make_sheet


def _write_job(directory: Path, name: str, toml: str = BASE_TOML, blocks: int = 4) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    make_sheet(blocks).save(directory / f"{name}.png")
    config_path = directory / f"{name}.png.toml"
    config_path.write_text(toml, encoding="utf-8")
    return config_path


class TestPaths:
    def test_image_path(self):
        assert image_path_for(Path("icons/wall.png.toml")) == Path("icons/wall.png")

    def test_output_next_to_input(self):
        job = Job(Path("icons/wall.png.toml"), Path())
        assert output_path_for(job, None, False) == Path("icons/wall.dmi")

    def test_output_mirrors_tree(self):
        job = Job(Path("icons/sub/wall.png.toml"), Path("sub"))
        assert output_path_for(job, Path("out"), False) == Path("out/sub/wall.dmi")
        assert output_path_for(job, Path("out"), True) == Path("out/wall.dmi")

    def test_resolve_directory(self, tmp_path: Path):
        _write_job(tmp_path / "a", "one")
        _write_job(tmp_path / "b" / "c", "two")
        jobs = resolve_inputs([tmp_path])
        assert [j.relative_dir for j in jobs] == [Path("a"), Path("b/c")]

    def test_missing_input_exits(self, tmp_path: Path, capsys):
        with pytest.raises(SystemExit) as exc:
            resolve_inputs([tmp_path / "nope"])
        assert exc.value.code == 1
        assert "nope" in capsys.readouterr().err


class TestMain:
    def test_single_file(self, tmp_path: Path, capsys):
        config_path = _write_job(tmp_path, "wall")
        assert main([str(config_path)]) == 0
        assert (tmp_path / "wall.dmi").is_file()
        out = capsys.readouterr().out
        assert "Found 1 files!" in out
        assert "Successfully processed 1 files!" in out

    def test_one_failure_does_not_stop_the_batch(self, tmp_path: Path, capsys):
        icons = tmp_path / "icons"
        _write_job(icons, "good")
        _write_job(icons, "bad", blocks=3)
        out_dir = tmp_path / "out"

        assert main([str(icons), "--output", str(out_dir)]) == 1

        assert (out_dir / "good.dmi").is_file()
        assert not (out_dir / "bad.dmi").exists()
        captured = capsys.readouterr()
        assert "bad.png.toml" in captured.err
        assert "positions" in captured.err
        assert "Failed to process 1 files!" in captured.out

    def test_missing_image(self, tmp_path: Path, capsys):
        config_path = tmp_path / "ghost.png.toml"
        config_path.write_text(BASE_TOML, encoding="utf-8")
        assert main([str(config_path)]) == 1
        assert "ghost.png not found" in capsys.readouterr().err

    def test_flatten(self, tmp_path: Path):
        icons = tmp_path / "icons"
        _write_job(icons / "walls", "brick")
        out_dir = tmp_path / "out"
        assert main([str(icons), "-o", str(out_dir), "--flatten"]) == 0
        assert (out_dir / "brick.dmi").is_file()
        assert not (out_dir / "walls").exists()

    def test_mirrored_tree(self, tmp_path: Path):
        icons = tmp_path / "icons"
        _write_job(icons / "walls", "brick")
        out_dir = tmp_path / "out"
        assert main([str(icons), "-o", str(out_dir), "-j", "2"]) == 0
        assert (out_dir / "walls" / "brick.dmi").is_file()

    def test_templates(self, tmp_path: Path):
        templates = tmp_path / "templates"
        templates.mkdir()
        (templates / "wall.toml").write_text(BASE_TOML, encoding="utf-8")
        config_path = _write_job(tmp_path / "icons", "brick", toml='template = "wall"\n')
        assert main([str(config_path), "-t", str(templates)]) == 0
        with Image.open(tmp_path / "icons" / "brick.dmi") as img:
            assert 'state = "15"' in img.info["Description"]

    def test_debug_writes_corner_sheet(self, tmp_path: Path):
        config_path = _write_job(tmp_path, "wall")
        assert main([str(config_path), "--debug"]) == 0
        assert (tmp_path / "wall_corners.png").is_file()


class TestArguments:
    @pytest.mark.parametrize("jobs", ["0", "-2", "many"])
    def test_jobs_must_be_positive(self, tmp_path: Path, capsys, jobs):
        config_path = _write_job(tmp_path, "wall")
        with pytest.raises(SystemExit) as exc:
            main([str(config_path), "--jobs", jobs])
        assert exc.value.code == 2
        assert "--jobs" in capsys.readouterr().err
