"""Data models used throughout the gallery build pipeline."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .config import ThumbnailSize


@dataclass(frozen=True)
class SourceImage:
    """One image file in a dated source directory."""

    path: Path
    # Display name: the file name without extension.
    name: str
    # Slugified file name used for the copied original.
    slug: str
    size: int
    mtime_ns: int

    @property
    def file_name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class SourceDirectory:
    """One dated folder of the input tree."""

    path: Path
    date: dt.date
    title: str
    slug: str
    images: Tuple[SourceImage, ...]
    markdown_file: Optional[Path] = None

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class Thumbnail:
    """A generated (or reused) thumbnail for one source image."""

    source: SourceImage
    size: ThumbnailSize
    # Relative to the output root.
    relative_path: Path
    # Pixel dimensions of the thumbnail and of the source image.
    dimensions: Tuple[int, int]
    source_dimensions: Tuple[int, int]
    generated_at: str
    # "create", "update" or "unchanged" relative to the existing output tree.
    action: str = "unchanged"

    @property
    def regenerated(self) -> bool:
        return self.action != "unchanged"


@dataclass(frozen=True)
class PlainTitle:
    text: str


@dataclass(frozen=True)
class LinkedTitle:
    """A group title linking to the group's description page."""

    text: str
    url: str


GroupTitle = Union[PlainTitle, LinkedTitle]


@dataclass(frozen=True)
class ImageEntry:
    """A single image as shown on a page."""

    name: str
    source_name: str
    url: str
    thumbnail_url: str
    anchor: str
    width: int
    height: int


@dataclass
class ImageGroup:
    """Images of one source directory as shown together on a page."""

    title: GroupTitle
    date: dt.date
    slug: str
    images: List[ImageEntry] = field(default_factory=list)


@dataclass
class Page:
    """One output HTML document."""

    title: str
    footer: Optional[str]
    groups: List[ImageGroup]
    # Relative to the output root.
    output_path: Path
    # Prefix that leads from the page back to the output root ("" or "../").
    root: str = ""
    description_html: Optional[str] = None
    prev_url: Optional[str] = None
    next_url: Optional[str] = None
    # Where a description page leads back to on the overview.
    parent_url: Optional[str] = None

    @property
    def is_overview(self) -> bool:
        return self.description_html is None
