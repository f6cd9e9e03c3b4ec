"""Command line: convert ``*.png.toml`` configs into DMI icon sheets.

Usage:
    bitslice walls/wall.png.toml
    bitslice icons/ --output out/ --templates templates/
    bitslice icons/ --flatten --output out/ --jobs 8
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import NamedTuple

from PIL import Image

from bitslice import __version__
from bitslice.config import DEFAULT_TEMPLATE_DIR, load_config
from bitslice.corners import debug_corner_sheet
from bitslice.dmi import write_dmi
from bitslice.errors import BitsliceError
from bitslice.pipeline import assemble, build_sheet

logger = logging.getLogger(__name__)


class Job(NamedTuple):
    config_path: Path
    relative_dir: Path  # mirrored under --output unless --flatten


# ---------------------------------------------------------------------------
# Input discovery
# ---------------------------------------------------------------------------


def resolve_inputs(raw_paths: list[Path]) -> list[Job]:
    """Expand files and directories into config files to process."""
    jobs: list[Job] = []
    missing: list[str] = []
    for raw in raw_paths:
        if raw.is_dir():
            for found in sorted(raw.rglob("*.toml")):
                jobs.append(Job(found, found.parent.relative_to(raw)))
        elif raw.is_file():
            jobs.append(Job(raw, Path()))
        else:
            missing.append(str(raw))

    if missing:
        print(f"Error: input path(s) do not exist: {', '.join(missing)}", file=sys.stderr)
        sys.exit(1)
    return jobs


def image_path_for(config_path: Path) -> Path:
    """``wall.png.toml`` configures ``wall.png``."""
    return config_path.with_suffix("")


def output_path_for(
    job: Job, output_dir: Path | None, flatten: bool
) -> Path:
    image_path = image_path_for(job.config_path)
    name = image_path.with_suffix(".dmi").name
    if output_dir is None:
        return image_path.with_suffix(".dmi")
    if flatten:
        return output_dir / name
    return output_dir / job.relative_dir / name


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


def process_single(
    job: Job,
    template_dir: Path,
    output_dir: Path | None,
    flatten: bool,
    debug: bool,
) -> Path:
    """Full pipeline for one config file. Returns the written DMI path."""
    logger.info("Processing %s", job.config_path)
    config = load_config(job.config_path, template_dir)

    image_path = image_path_for(job.config_path)
    if not image_path.is_file():
        raise FileNotFoundError(
            f"source image {image_path.name} not found in {image_path.parent}"
        )

    with Image.open(image_path) as img:
        source = img.convert("RGBA")

    assembly = assemble(config, source)
    sheet = build_sheet(config, assembly)

    out = output_path_for(job, output_dir, flatten)
    write_dmi(sheet, out)
    logger.info("Saved %s (%d states)", out, len(sheet.groups))

    if debug:
        debug_path = out.with_name(f"{out.stem}_corners.png")
        debug_corner_sheet(assembly.corners, config).save(debug_path)
        logger.info("Saved corner debug sheet %s", debug_path)

    return out


def _run_job(job: Job, args: argparse.Namespace) -> str | None:
    """Process one job; returns an error message instead of raising."""
    try:
        process_single(job, args.templates, args.output, args.flatten, args.debug)
    except (BitsliceError, OSError) as exc:
        return f"{job.config_path}: {exc}"
    except Exception as exc:
        logger.debug("Traceback for %s", job.config_path, exc_info=True)
        return f"Unexpected error processing {job.config_path}: {exc}"
    return None


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="bitslice",
        description="Generate bitmask-smoothing icon sheets from corner source blocks.",
        epilog=(
            "Examples:\n"
            "  bitslice walls/wall.png.toml\n"
            "  bitslice icons/ --output out/ --templates templates/\n"
            "  bitslice icons/ --flatten --output out/ --jobs 8"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument(
        "input",
        type=Path,
        nargs="+",
        help="Config files (*.png.toml) or directories to search for them",
    )
    p.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output directory (default: next to each input image)",
    )
    p.add_argument(
        "-t",
        "--templates",
        type=Path,
        default=Path(DEFAULT_TEMPLATE_DIR),
        help=f"Templates folder (default: {DEFAULT_TEMPLATE_DIR})",
    )
    p.add_argument(
        "-f",
        "--flatten",
        action="store_true",
        help="Write outputs flat instead of mirroring the input tree",
    )
    p.add_argument(
        "-j",
        "--jobs",
        type=_positive_int,
        default=None,
        help="Files to process in parallel (default: CPU based)",
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Print paths and operations",
    )
    p.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Debug logging, and write a corner sheet next to each output",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p.parse_args(argv)


def configure_logging(verbose: bool, debug: bool) -> None:
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose, args.debug)

    start = time.perf_counter()
    jobs = resolve_inputs(args.input)
    print(f"Found {len(jobs)} files!")

    with ThreadPoolExecutor(max_workers=args.jobs) as pool:
        errors = list(pool.map(lambda job: _run_job(job, args), jobs))

    failed = [e for e in errors if e is not None]
    for message in failed:
        print(f"Error: {message}", file=sys.stderr)

    if failed:
        print(f"Failed to process {len(failed)} files!")
    print(f"Successfully processed {len(jobs) - len(failed)} files!")
    print(f"Took {time.perf_counter() - start:.2f}s")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
