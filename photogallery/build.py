"""High-level orchestration of a gallery build."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import List, Optional

from .config import FINGERPRINT_FILE, THUMBNAIL_DIR, GalleryConfig
from .errors import BuildReport
from .output import OutputFile, ensure_output_root, prune_files, write_files
from .pages import build_pages, thumbnail_jobs, usable_images
from .render import render_page, static_assets
from .scanner import scan_input
from .thumbnails import (
    FingerprintCache,
    find_stale_thumbnails,
    generate_thumbnails,
    thumbnail_path,
)

logger = logging.getLogger("photogallery")


def build_gallery(config: GalleryConfig, report: Optional[BuildReport] = None) -> BuildReport:
    """Build (or, in dry-run mode, plan) the whole gallery.

    Raises GalleryError for problems that make the whole build meaningless:
    a malformed input tree or an unusable output root. Everything else is
    collected in the returned report.
    """
    if report is None:
        report = BuildReport(dry_run=config.dry_run)
    start = time.perf_counter()

    logger.info("Step 1: Scanning %s...", config.input_dir)
    directories = scan_input(config.input_dir, config.order, report)
    ensure_output_root(config.output_dir, config.dry_run)

    logger.info("Step 2: Processing thumbnails...")
    cache = FingerprintCache.load(config.fingerprint_path)
    images = {image.path: image for d in directories for image in d.images}
    jobs = thumbnail_jobs(directories)
    thumbnails = generate_thumbnails(
        jobs,
        images,
        config.output_dir,
        cache,
        report,
        dry_run=config.dry_run,
        workers=config.workers,
    )

    logger.info("Step 3: Building pages...")
    pages = build_pages(directories, thumbnails, config, report)

    logger.info("Step 4: Writing %s...", config.output_dir)
    files: List[OutputFile] = [
        OutputFile.text(page.output_path, render_page(page)) for page in pages
    ]
    for directory in directories:
        for image in usable_images(directory, thumbnails):
            files.append(OutputFile.copy(Path(directory.slug) / image.slug, image.path))
    for path, content in static_assets().items():
        files.append(OutputFile.text(path, content))
    files.append(OutputFile.text(Path(THUMBNAIL_DIR) / FINGERPRINT_FILE, cache.dumps()))
    write_files(files, config.output_dir, report, dry_run=config.dry_run)

    expected = {thumbnail_path(images[path], size) for path, size in jobs}
    stale = find_stale_thumbnails(config.output_dir, expected)
    if stale and config.prune:
        prune_files(stale, config.output_dir, report, dry_run=config.dry_run)
    else:
        for path in stale:
            report.warn(f'Stale thumbnail (use --prune to delete): "{path.as_posix()}"')

    logger.info("Finished in %.2fs", time.perf_counter() - start)
    return report
