import os
from pathlib import Path

import pytest
from PIL import Image

from photogallery.config import GalleryConfig


def make_image(path: Path, size=(120, 80), color=(200, 40, 40)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color).save(path)
    return path


def touch(path: Path, mtime: int) -> None:
    os.utime(path, ns=(mtime, mtime))


def snapshot(root: Path) -> dict:
    """All files below root with their contents."""
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


@pytest.fixture
def input_dir(tmp_path):
    path = tmp_path / "input"
    path.mkdir()
    return path


@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / "output"


@pytest.fixture
def scenario(input_dir):
    """Two dated directories: 2024-01-01/a.jpg and 2023-05-05/b.jpg, c.jpg."""
    make_image(input_dir / "2024-01-01" / "a.jpg", color=(10, 10, 200))
    make_image(input_dir / "2023-05-05" / "b.jpg", color=(10, 200, 10))
    make_image(input_dir / "2023-05-05" / "c.jpg", color=(200, 10, 10))
    return input_dir


@pytest.fixture
def make_config(input_dir, output_dir):
    def factory(**kwargs):
        kwargs.setdefault("title", "Photos")
        kwargs.setdefault("input_dir", input_dir)
        kwargs.setdefault("output_dir", output_dir)
        kwargs.setdefault("workers", 2)
        return GalleryConfig(**kwargs)

    return factory
