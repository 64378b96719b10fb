"""Command-line entry point for the gallery builder."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .build import build_gallery
from .config import GalleryConfig, GalleryOrder
from .errors import BuildReport, GalleryError

logger = logging.getLogger("photogallery.cli")


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive number, got {value}")
    return number


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Build a static photo gallery from a directory of dated folders.",
    )
    parser.add_argument(
        "--page_title",
        required=True,
        help="The top-level page title",
    )
    parser.add_argument(
        "--footer",
        default=None,
        help="An HTML snippet for the page footer",
    )
    parser.add_argument(
        "--input",
        required=True,
        type=Path,
        help="The source directory",
    )
    parser.add_argument(
        "--output",
        required=True,
        type=Path,
        help="The output directory",
    )
    parser.add_argument(
        "--dry_run",
        action="store_true",
        help="If set, then don't write any files; print what would change",
    )
    parser.add_argument(
        "--oldest_first",
        action="store_true",
        help="Show the oldest image groups first",
    )
    parser.add_argument(
        "--groups_per_page",
        type=_positive_int,
        default=None,
        help="Split the overview into pages of this many image groups",
    )
    parser.add_argument(
        "--jobs",
        type=_positive_int,
        default=None,
        help="Number of thumbnail worker threads",
    )
    parser.add_argument(
        "--prune",
        action="store_true",
        help="Delete thumbnails whose source image no longer exists",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> GalleryConfig:
    return GalleryConfig(
        title=args.page_title,
        footer=args.footer,
        input_dir=args.input,
        output_dir=args.output,
        dry_run=args.dry_run,
        order=GalleryOrder.OLDEST_FIRST if args.oldest_first else GalleryOrder.MOST_RECENT_FIRST,
        groups_per_page=args.groups_per_page,
        workers=args.jobs,
        prune=args.prune,
    )


def print_operations(report: BuildReport) -> None:
    for action, path in sorted(report.operations, key=lambda op: op[1]):
        if action != "unchanged":
            print(f"{action:<9} {path}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    config = config_from_args(args)
    try:
        report = build_gallery(config)
    except GalleryError as exc:
        logger.error("Build aborted: %s", exc)
        return 1

    if config.dry_run or args.verbose:
        print_operations(report)
    print(report.summary())
    return 0


if __name__ == "__main__":
    sys.exit(main())
