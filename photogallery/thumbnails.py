"""Thumbnail generation with a fingerprint cache.

A thumbnail is a pure function of the source bytes and the target size:
as long as both are unchanged, an existing thumbnail is reused and never
re-encoded. Fingerprint records live in ``thumbnails/fingerprints.json``
in the output tree.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple

from PIL import Image, ImageOps

from .config import (
    FINGERPRINT_FILE,
    THUMBNAIL_DIR,
    THUMBNAIL_FORMAT,
    THUMBNAIL_QUALITY,
    THUMBNAIL_SUFFIX,
    ThumbnailSize,
)
from .errors import BuildReport, GalleryError, ImageReadError, ThumbnailWriteError
from .models import SourceImage, Thumbnail
from .output import atomic_target
from .utils import sha256_file, slugify

logger = logging.getLogger("photogallery")

FINGERPRINT_VERSION = 1
PENDING = "pending"
RECORD_KEYS = (
    "size",
    "mtime_ns",
    "sha256",
    "target",
    "width",
    "height",
    "source_width",
    "source_height",
    "generated_at",
)

ThumbnailKey = Tuple[Path, ThumbnailSize]


def thumbnail_path(image: SourceImage, size: ThumbnailSize) -> Path:
    """Return the thumbnail location relative to the output root.

    The name is derived from the directory and file name, so it is unique
    within its group even for ``a.jpg`` next to ``a.png``.
    """
    return (
        Path(THUMBNAIL_DIR)
        / size.label
        / slugify(image.path.parent.name)
        / (slugify(image.slug) + THUMBNAIL_SUFFIX)
    )


class FingerprintCache:
    """Fingerprint records for the thumbnails of one output tree.

    Records from the previous build are read-only; each build starts a
    fresh record set so entries for vanished sources do not accumulate.
    Workers only ever record their own key.
    """

    def __init__(self, records: Optional[Dict[str, dict]] = None) -> None:
        self._previous: Dict[str, dict] = dict(records or {})
        self._current: Dict[str, dict] = {}
        self._lock = threading.Lock()

    @classmethod
    def load(cls, path: Path) -> "FingerprintCache":
        if not path.is_file():
            return cls()
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable fingerprint records %s: %s", path, exc)
            return cls()
        if not isinstance(data, dict) or data.get("version") != FINGERPRINT_VERSION:
            logger.warning("Ignoring fingerprint records with unknown format: %s", path)
            return cls()
        return cls(data.get("thumbnails", {}))

    def lookup(self, key: str) -> Optional[dict]:
        return self._previous.get(key)

    def record(self, key: str, record: dict) -> None:
        with self._lock:
            self._current[key] = record

    def __len__(self) -> int:
        return len(self._current)

    def dumps(self) -> str:
        """Serialize the records of the current build deterministically."""
        with self._lock:
            data = {"version": FINGERPRINT_VERSION, "thumbnails": dict(self._current)}
        return json.dumps(data, indent=2, sort_keys=True) + "\n"


def _is_complete(record: dict) -> bool:
    return isinstance(record, dict) and all(key in record for key in RECORD_KEYS)


def _is_current(record: dict, image: SourceImage, size: ThumbnailSize) -> bool:
    return (
        tuple(record.get("target", ())) == size.box
        and record.get("size") == image.size
        and record.get("mtime_ns") == image.mtime_ns
    )


def _render(source: Path, box: Tuple[int, int]) -> Tuple[Image.Image, Tuple[int, int]]:
    """Decode the source and downscale it to fit into ``box``."""
    try:
        with Image.open(source) as img:
            img.load()
            img = ImageOps.exif_transpose(img)
            source_dimensions = img.size
            img = img.convert("RGB")
            img.thumbnail(box, Image.LANCZOS)
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as exc:
        raise ImageReadError(f"Failed to read image ({exc})", source) from exc
    return img, source_dimensions


def _source_digest(image: SourceImage) -> str:
    try:
        return sha256_file(image.path)
    except OSError as exc:
        raise ImageReadError(f"Failed to read image ({exc})", image.path) from exc


def _now() -> str:
    return dt.datetime.now(dt.timezone.utc).replace(microsecond=0).isoformat()


def ensure_thumbnail(
    image: SourceImage,
    size: ThumbnailSize,
    output_dir: Path,
    cache: FingerprintCache,
    dry_run: bool = False,
) -> Thumbnail:
    """Make sure an up-to-date thumbnail of ``image`` exists in ``output_dir``.

    In dry-run mode the image is still decoded and resized (so corrupt
    sources and final dimensions are known) but nothing is written.
    Raises ImageReadError or ThumbnailWriteError.
    """
    relative = thumbnail_path(image, size)
    destination = output_dir / relative
    key = relative.as_posix()
    previous = cache.lookup(key)
    exists = destination.is_file()

    sha256 = None
    if previous is not None and not _is_complete(previous):
        logger.debug("Ignoring incomplete fingerprint record: %s", key)
        previous = None
    if previous is not None and exists and tuple(previous["target"]) == size.box:
        if _is_current(previous, image, size):
            cache.record(key, previous)
            logger.debug("Thumbnail up to date: %s", key)
            return _from_record(image, size, relative, previous)
        sha256 = _source_digest(image)
        if sha256 == previous.get("sha256"):
            # Same bytes, only the timestamp moved: refresh the record.
            record = dict(previous, size=image.size, mtime_ns=image.mtime_ns)
            cache.record(key, record)
            logger.debug("Thumbnail up to date (content unchanged): %s", key)
            return _from_record(image, size, relative, record)

    if sha256 is None:
        sha256 = _source_digest(image)

    thumb, source_dimensions = _render(image.path, size.box)
    if dry_run:
        generated_at = PENDING
    else:
        try:
            with atomic_target(destination) as tmp:
                thumb.save(tmp, THUMBNAIL_FORMAT, quality=THUMBNAIL_QUALITY)
        except OSError as exc:
            raise ThumbnailWriteError(f"Failed to write thumbnail ({exc})", destination) from exc
        generated_at = _now()
        logger.debug("Generated thumbnail %s", key)

    record = {
        "source": f"{image.path.parent.name}/{image.file_name}",
        "size": image.size,
        "mtime_ns": image.mtime_ns,
        "sha256": sha256,
        "target": list(size.box),
        "width": thumb.width,
        "height": thumb.height,
        "source_width": source_dimensions[0],
        "source_height": source_dimensions[1],
        "generated_at": generated_at,
    }
    cache.record(key, record)
    return Thumbnail(
        source=image,
        size=size,
        relative_path=relative,
        dimensions=thumb.size,
        source_dimensions=source_dimensions,
        generated_at=generated_at,
        action="update" if exists else "create",
    )


def _from_record(
    image: SourceImage, size: ThumbnailSize, relative: Path, record: dict
) -> Thumbnail:
    return Thumbnail(
        source=image,
        size=size,
        relative_path=relative,
        dimensions=(record["width"], record["height"]),
        source_dimensions=(record["source_width"], record["source_height"]),
        generated_at=record["generated_at"],
    )


def generate_thumbnails(
    jobs: Iterable[ThumbnailKey],
    images: Dict[Path, SourceImage],
    output_dir: Path,
    cache: FingerprintCache,
    report: BuildReport,
    dry_run: bool = False,
    workers: Optional[int] = None,
) -> Dict[ThumbnailKey, Thumbnail]:
    """Run ``ensure_thumbnail`` for all jobs on a bounded thread pool.

    Results are keyed by (source path, size); callers rebuild ordering from
    the scan, never from completion order. Failed jobs are missing from
    the result and recorded in ``report``.
    """
    pending = list(jobs)
    results: Dict[ThumbnailKey, Thumbnail] = {}
    if not pending:
        return results

    total = len(pending)
    done = 0
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {
            executor.submit(
                ensure_thumbnail, images[path], size, output_dir, cache, dry_run
            ): (path, size)
            for path, size in pending
        }
        for future in as_completed(futures):
            key = futures[future]
            done += 1
            try:
                thumbnail = future.result()
            except GalleryError as exc:
                logger.warning("  [%d/%d] %s", done, total, exc)
                report.error(exc)
                report.thumbnails["failed"] += 1
                continue
            results[key] = thumbnail
            report.thumbnails["generated" if thumbnail.regenerated else "skipped"] += 1
            report.operation(thumbnail.action, thumbnail.relative_path.as_posix())
            if done % 100 == 0 or done == total:
                logger.info("  [%d/%d] thumbnails processed", done, total)
    return results


def find_stale_thumbnails(output_dir: Path, expected: Set[Path]) -> List[Path]:
    """List files under the thumbnail directory that this build does not produce.

    Paths are relative to the output root and sorted.
    """
    root = output_dir / THUMBNAIL_DIR
    if not root.is_dir():
        return []
    stale = []
    for path in root.rglob("*"):
        if not path.is_file():
            continue
        relative = path.relative_to(output_dir)
        if relative == Path(THUMBNAIL_DIR) / FINGERPRINT_FILE:
            continue
        if relative not in expected:
            stale.append(relative)
    return sorted(stale)
