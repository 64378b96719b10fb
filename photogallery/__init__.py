"""Photogallery: build a static photo gallery from a tree of dated folders."""

from .build import build_gallery
from .config import GalleryConfig, GalleryOrder, RunMode
from .errors import BuildReport, GalleryError

__all__ = [
    "BuildReport",
    "GalleryConfig",
    "GalleryError",
    "GalleryOrder",
    "RunMode",
    "build_gallery",
]
