"""Assembles scanned directories and thumbnails into pages.

Group and image order always follow the scan; thumbnail results are
looked up by source identity, so the order in which workers finished has
no influence on the pages.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .config import GalleryConfig, ThumbnailSize
from .description import render_description
from .errors import BuildReport, MarkdownError
from .models import (
    GroupTitle,
    ImageEntry,
    ImageGroup,
    LinkedTitle,
    Page,
    PlainTitle,
    SourceDirectory,
    SourceImage,
    Thumbnail,
)
from .thumbnails import ThumbnailKey
from .utils import slugify, url_join

logger = logging.getLogger("photogallery")

OVERVIEW_PAGE = "index.html"
DESCRIPTION_PAGE = "index.html"


def required_sizes(directory: SourceDirectory) -> List[ThumbnailSize]:
    """Large thumbnails are only needed for directories with a description page."""
    if directory.markdown_file is not None:
        return [ThumbnailSize.SMALL, ThumbnailSize.LARGE]
    return [ThumbnailSize.SMALL]


def thumbnail_jobs(directories: Sequence[SourceDirectory]) -> List[ThumbnailKey]:
    return [
        (image.path, size)
        for directory in directories
        for image in directory.images
        for size in required_sizes(directory)
    ]


def usable_images(
    directory: SourceDirectory, thumbnails: Dict[ThumbnailKey, Thumbnail]
) -> List[SourceImage]:
    """Images of ``directory`` whose thumbnails all exist, in scan order."""
    sizes = required_sizes(directory)
    return [
        image
        for image in directory.images
        if all((image.path, size) in thumbnails for size in sizes)
    ]


def overview_page_path(index: int) -> str:
    return OVERVIEW_PAGE if index == 0 else f"page-{index + 1}.html"


def description_url(directory: SourceDirectory) -> str:
    return url_join(directory.slug, DESCRIPTION_PAGE)


def image_entry(directory: SourceDirectory, image: SourceImage, thumbnail: Thumbnail) -> ImageEntry:
    width, height = thumbnail.dimensions
    return ImageEntry(
        name=image.name,
        source_name=image.file_name,
        url=url_join(directory.slug, image.slug),
        thumbnail_url=thumbnail.relative_path.as_posix(),
        anchor=f"{directory.slug}--{slugify(image.slug)}",
        width=width,
        height=height,
    )


def _entries(
    directory: SourceDirectory,
    images: Sequence[SourceImage],
    thumbnails: Dict[ThumbnailKey, Thumbnail],
    size: ThumbnailSize,
) -> List[ImageEntry]:
    return [image_entry(directory, image, thumbnails[(image.path, size)]) for image in images]


def _paginate(groups: List[ImageGroup], per_page: Optional[int]) -> List[List[ImageGroup]]:
    if not per_page or per_page <= 0:
        return [groups]
    chunks = [groups[i : i + per_page] for i in range(0, len(groups), per_page)]
    return chunks or [[]]


def build_pages(
    directories: Sequence[SourceDirectory],
    thumbnails: Dict[ThumbnailKey, Thumbnail],
    config: GalleryConfig,
    report: BuildReport,
) -> List[Page]:
    """Build the overview page(s) followed by one page per described directory."""
    groups: List[ImageGroup] = []
    descriptions: List[Page] = []

    for directory in directories:
        images = usable_images(directory, thumbnails)
        title: GroupTitle = PlainTitle(directory.title)

        if directory.markdown_file is not None:
            entries = _entries(directory, images, thumbnails, ThumbnailSize.LARGE)
            try:
                html, unreferenced = render_description(
                    directory.markdown_file,
                    entries,
                    {image.name for image in directory.images},
                )
            except MarkdownError as exc:
                logger.warning("%s", exc)
                report.error(exc)
            else:
                for name in unreferenced:
                    report.warn(f'Image "{name}" is not referenced in "{directory.markdown_file}"')
                title = LinkedTitle(directory.title, description_url(directory))
                descriptions.append(
                    Page(
                        title=directory.title,
                        footer=config.footer,
                        groups=[ImageGroup(title, directory.date, directory.slug, entries)],
                        output_path=Path(directory.slug) / DESCRIPTION_PAGE,
                        root="../",
                        description_html=html,
                    )
                )

        groups.append(
            ImageGroup(
                title=title,
                date=directory.date,
                slug=directory.slug,
                images=_entries(directory, images, thumbnails, ThumbnailSize.SMALL),
            )
        )

    chunks = _paginate(groups, config.groups_per_page)
    overview: List[Page] = []
    location: Dict[str, str] = {}
    for index, chunk in enumerate(chunks):
        path = overview_page_path(index)
        for group in chunk:
            location[group.slug] = f"{path}#{group.slug}"
        overview.append(
            Page(
                title=config.title,
                footer=config.footer,
                groups=chunk,
                output_path=Path(path),
                prev_url=overview_page_path(index - 1) if index > 0 else None,
                next_url=overview_page_path(index + 1) if index + 1 < len(chunks) else None,
            )
        )

    for page in descriptions:
        page.parent_url = location[page.groups[0].slug]

    logger.info(
        "  Built %d overview page(s) and %d description page(s)",
        len(overview),
        len(descriptions),
    )
    return overview + descriptions
