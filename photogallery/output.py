"""Writes (or, in dry-run mode, plans) the output tree.

Every file is written to a temporary name in its target directory and
then renamed into place, so an interrupted build leaves at most one
stray temporary file and never a truncated page or image.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

from .errors import BuildReport, OutputWriteError
from .utils import sha256_bytes, sha256_file

logger = logging.getLogger("photogallery")

FILE_MODE = 0o644


@contextmanager
def atomic_target(path: Path) -> Iterator[Path]:
    """Yield a temporary path next to ``path``; move it into place on success."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    os.close(fd)
    tmp_path = Path(tmp)
    try:
        yield tmp_path
        os.chmod(tmp_path, FILE_MODE)
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


@dataclass
class OutputFile:
    """One file of the output tree: either rendered content or a copied source."""

    relative_path: Path
    content: Optional[bytes] = None
    source: Optional[Path] = None

    def __post_init__(self) -> None:
        if (self.content is None) == (self.source is None):
            raise ValueError("OutputFile needs exactly one of content or source")

    @classmethod
    def text(cls, relative_path: Path, text: str) -> "OutputFile":
        return cls(relative_path, content=text.encode("utf-8"))

    @classmethod
    def copy(cls, relative_path: Path, source: Path) -> "OutputFile":
        return cls(relative_path, source=source)

    def size(self) -> int:
        if self.content is not None:
            return len(self.content)
        return self.source.stat().st_size

    def digest(self) -> str:
        if self.content is not None:
            return sha256_bytes(self.content)
        return sha256_file(self.source)

    def write(self, target: Path) -> None:
        with atomic_target(target) as tmp:
            if self.content is not None:
                tmp.write_bytes(self.content)
            else:
                shutil.copy2(self.source, tmp)


def plan_action(item: OutputFile, target: Path) -> str:
    """Return "create", "update" or "unchanged" for writing ``item`` to ``target``."""
    if not target.exists():
        return "create"
    if not target.is_file():
        return "update"
    if target.stat().st_size != item.size():
        return "update"
    return "unchanged" if sha256_file(target) == item.digest() else "update"


def ensure_output_root(output_dir: Path, dry_run: bool = False) -> None:
    """Fail early if the output root cannot be used at all."""
    if output_dir.exists() and not output_dir.is_dir():
        raise OutputWriteError("Output path exists and is not a directory", output_dir)
    if dry_run:
        return
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise OutputWriteError(f"Failed to create output directory ({exc})", output_dir) from exc
    if not os.access(output_dir, os.W_OK | os.X_OK):
        raise OutputWriteError("Output directory is not writable", output_dir)


def write_files(
    files: Iterable[OutputFile],
    output_dir: Path,
    report: BuildReport,
    dry_run: bool = False,
) -> None:
    """Write all files that are missing or differ; report every operation.

    A failed file is reported and skipped; files written before it stay
    intact.
    """
    for item in files:
        target = output_dir / item.relative_path
        name = item.relative_path.as_posix()
        try:
            action = plan_action(item, target)
            if action != "unchanged" and not dry_run:
                item.write(target)
        except OSError as exc:
            logger.warning("Failed to write %s: %s", target, exc)
            report.error(OutputWriteError(f"Failed to write file ({exc})", target))
            report.operation("failed", name)
            continue
        if action != "unchanged":
            logger.debug("%s %s", action, name)
        report.operation(action, name)


def prune_files(
    stale: List[Path],
    output_dir: Path,
    report: BuildReport,
    dry_run: bool = False,
) -> None:
    """Delete stale files (paths relative to the output root)."""
    for relative in stale:
        target = output_dir / relative
        if not dry_run:
            try:
                target.unlink()
            except OSError as exc:
                report.error(OutputWriteError(f"Failed to delete file ({exc})", target))
                report.operation("failed", relative.as_posix())
                continue
            logger.info("  Deleted stale file %s", relative.as_posix())
        report.operation("delete", relative.as_posix())
