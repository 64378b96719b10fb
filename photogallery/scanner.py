"""Reads the input directory into source directories and images.

This is a read-only operation. Layout problems that break navigation
(nested directories, missing dates, ambiguous output names) raise a
StructuralError before anything is written.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .config import IMAGE_EXTENSIONS, MARKDOWN_EXTENSIONS, GalleryOrder
from .errors import BuildReport, ImageReadError, StructuralError
from .models import SourceDirectory, SourceImage
from .utils import slugify, web_file_name

logger = logging.getLogger("photogallery")

DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?=$|[^0-9])")
TITLE_SEPARATORS = " _-.,"


def parse_directory_name(name: str) -> Tuple[dt.date, str]:
    """Split a directory name like ``2021-01-01 Fuji, Japan`` into date and title."""
    m = DATE_PATTERN.match(name)
    if not m:
        raise StructuralError("Directory name does not start with a YYYY-MM-DD date", name)
    try:
        date = dt.date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError as exc:
        raise StructuralError(f"Invalid date in directory name ({exc})", name) from exc
    title = name[m.end():].lstrip(TITLE_SEPARATORS).strip()
    return date, title or date.isoformat()


def _is_hidden(path: Path) -> bool:
    return path.name.startswith(".")


def scan_directory(path: Path, report: Optional[BuildReport] = None) -> SourceDirectory:
    """Read one dated directory (non-recursively)."""
    date, title = parse_directory_name(path.name)

    images: List[SourceImage] = []
    markdown_files: List[Path] = []
    for entry in sorted(path.iterdir(), key=lambda p: p.name):
        if entry.is_dir():
            raise StructuralError("Nested directories are not supported", entry)
        if _is_hidden(entry):
            continue
        suffix = entry.suffix.lower()
        if suffix in IMAGE_EXTENSIONS:
            try:
                stat = entry.stat()
            except OSError as exc:
                error = ImageReadError(f"Failed to read image ({exc})", entry)
                logger.warning("%s", error)
                if report is None:
                    raise error from exc
                report.error(error)
                continue
            images.append(
                SourceImage(
                    path=entry,
                    name=entry.stem,
                    slug=web_file_name(entry.name),
                    size=stat.st_size,
                    mtime_ns=stat.st_mtime_ns,
                )
            )
        elif suffix in MARKDOWN_EXTENSIONS:
            markdown_files.append(entry)
        else:
            logger.warning("Ignoring unsupported file %s", entry)
            if report is not None:
                report.warn(f'Ignored unsupported file: "{entry}"')

    if len(markdown_files) > 1:
        raise StructuralError(
            "More than one markdown file: "
            + ", ".join(p.name for p in markdown_files),
            path,
        )

    slugs: Dict[str, SourceImage] = {}
    names: Dict[str, SourceImage] = {}
    for image in images:
        other = slugs.get(image.slug)
        if other is not None:
            raise StructuralError(
                f'Images "{other.file_name}" and "{image.file_name}" map to the same output name',
                path,
            )
        other = names.get(image.name)
        if other is not None:
            raise StructuralError(
                f'Images "{other.file_name}" and "{image.file_name}" share the display name "{image.name}"',
                path,
            )
        slugs[image.slug] = image
        names[image.name] = image

    if not images:
        logger.warning("Directory has no images: %s", path)
        if report is not None:
            report.warn(f'Directory has no images: "{path}"')

    return SourceDirectory(
        path=path,
        date=date,
        title=title,
        slug=slugify(path.name),
        images=tuple(images),
        markdown_file=markdown_files[0] if markdown_files else None,
    )


def sort_directories(
    directories: List[SourceDirectory],
    order: GalleryOrder = GalleryOrder.MOST_RECENT_FIRST,
) -> List[SourceDirectory]:
    """Order by date, ties broken by directory name ascending."""
    by_name = sorted(directories, key=lambda d: d.name)
    # sort() is stable even with reverse=True, so ties keep name order.
    return sorted(
        by_name,
        key=lambda d: d.date,
        reverse=order is GalleryOrder.MOST_RECENT_FIRST,
    )


def scan_input(
    root: Path,
    order: GalleryOrder = GalleryOrder.MOST_RECENT_FIRST,
    report: Optional[BuildReport] = None,
) -> List[SourceDirectory]:
    """Scan the input root and return its dated directories in gallery order."""
    if not root.is_dir():
        raise StructuralError("Input directory does not exist", root)

    directories: List[SourceDirectory] = []
    for entry in root.iterdir():
        if _is_hidden(entry):
            continue
        if not entry.is_dir():
            logger.warning("Ignoring file in input root %s", entry)
            if report is not None:
                report.warn(f'Ignored file in input root: "{entry}"')
            continue
        directories.append(scan_directory(entry, report))

    slugs: Dict[str, SourceDirectory] = {}
    for d in directories:
        other = slugs.get(d.slug)
        if other is not None:
            raise StructuralError(
                f'Directories "{other.name}" and "{d.name}" map to the same output name',
                root,
            )
        slugs[d.slug] = d

    directories = sort_directories(directories, order)
    logger.info(
        "  Found %d directories with %d images",
        len(directories),
        sum(len(d.images) for d in directories),
    )
    return directories
