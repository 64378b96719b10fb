"""Error taxonomy and the per-build report."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set, Tuple, Union


class GalleryError(Exception):
    """Base class for all gallery build errors."""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = Path(path) if path is not None else None

    def __str__(self) -> str:
        if self.path is None:
            return self.message
        return f'{self.message}: "{self.path}"'


class StructuralError(GalleryError):
    """The input tree does not have the expected layout. Aborts the build."""


class ImageReadError(GalleryError):
    """A source image could not be read or decoded. Drops that image."""


class MarkdownError(GalleryError):
    """A description file is unreadable or references unknown images."""


class OutputWriteError(GalleryError):
    """A file in the output tree could not be written."""


class ThumbnailWriteError(OutputWriteError):
    """A generated thumbnail could not be saved. Drops that image."""


@dataclass
class BuildReport:
    """Collects per-item problems and counters across one build.

    Per-item errors never abort the build; they are gathered here and
    reported once at the end.
    """

    dry_run: bool = False
    errors: List[GalleryError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    thumbnails: Counter = field(default_factory=Counter)
    files: Counter = field(default_factory=Counter)
    # (action, path relative to the output root), in the order performed.
    operations: List[Tuple[str, str]] = field(default_factory=list)

    def error(self, exc: GalleryError) -> None:
        self.errors.append(exc)

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def operation(self, action: str, path: str) -> None:
        """Count one output operation: create, update, unchanged, delete or failed."""
        self.files[action] += 1
        self.operations.append((action, path))

    def changed_paths(self) -> Set[str]:
        """Paths that were (or in a dry run would be) created or updated."""
        return {path for action, path in self.operations if action in ("create", "update")}

    @property
    def ok(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        verb = "would be " if self.dry_run else ""
        lines = [
            "Thumbnails: {} {}generated, {} skipped, {} failed".format(
                self.thumbnails["generated"],
                verb,
                self.thumbnails["skipped"],
                self.thumbnails["failed"],
            ),
            "Files: {} {}created, {} {}updated, {} unchanged, {} {}deleted, {} failed".format(
                self.files["create"],
                verb,
                self.files["update"],
                verb,
                self.files["unchanged"],
                self.files["delete"],
                verb,
                self.files["failed"],
            ),
        ]
        if self.warnings:
            lines.append(f"{len(self.warnings)} warning(s):")
            lines.extend(f"  {w}" for w in self.warnings)
        if self.errors:
            lines.append(f"{len(self.errors)} error(s):")
            lines.extend(f"  {e}" for e in self.errors)
        return "\n".join(lines)
