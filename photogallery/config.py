"""Configuration objects and constants for the gallery build."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
MARKDOWN_EXTENSIONS = {".md"}

# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

THUMBNAIL_DIR = "thumbnails"
FINGERPRINT_FILE = "fingerprints.json"
ASSETS_DIR = "assets"
THUMBNAIL_FORMAT = "JPEG"
THUMBNAIL_SUFFIX = ".jpg"
THUMBNAIL_QUALITY = 80


class RunMode(enum.Enum):
    """Normal or dry-run (read-only) mode."""

    NORMAL = "normal"
    DRY_RUN = "dry_run"


class GalleryOrder(enum.Enum):
    """Order of image groups on the overview page."""

    MOST_RECENT_FIRST = "most_recent_first"
    OLDEST_FIRST = "oldest_first"


class ThumbnailSize(enum.Enum):
    """Thumbnail types and their bounding boxes.

    The overview uses small thumbnails, description pages use large ones.
    """

    SMALL = ("small", (600, 400))
    LARGE = ("large", (2000, 2000))

    @property
    def label(self) -> str:
        return self.value[0]

    @property
    def box(self) -> Tuple[int, int]:
        return self.value[1]


@dataclass
class GalleryConfig:
    """Resolved settings for one gallery build."""

    title: str
    input_dir: Path
    output_dir: Path
    footer: Optional[str] = None
    dry_run: bool = False
    order: GalleryOrder = GalleryOrder.MOST_RECENT_FIRST
    groups_per_page: Optional[int] = None
    workers: Optional[int] = None
    prune: bool = False

    @property
    def run_mode(self) -> RunMode:
        return RunMode.DRY_RUN if self.dry_run else RunMode.NORMAL

    @property
    def thumbnail_root(self) -> Path:
        return self.output_dir / THUMBNAIL_DIR

    @property
    def fingerprint_path(self) -> Path:
        return self.thumbnail_root / FINGERPRINT_FILE
