"""Utility helpers for slugs, URLs and file hashing."""

from __future__ import annotations

import hashlib
import re
from pathlib import Path

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
HASH_CHUNK_SIZE = 1024 * 1024


def slugify(value: str, fallback: str = "item") -> str:
    """Generate a filesystem- and URL-friendly slug using ASCII characters only."""
    normalized = value.encode("ascii", "ignore").decode("ascii")
    normalized = normalized.lower()
    normalized = SLUG_PATTERN.sub("-", normalized).strip("-")
    return normalized or fallback


def web_file_name(file_name: str) -> str:
    """Slugify a file name, keeping its (lowercased) extension intact."""
    path = Path(file_name)
    if path.suffix:
        return slugify(path.stem) + path.suffix.lower()
    return slugify(file_name)


def url_join(*parts: str) -> str:
    """Join relative URL components with slashes."""
    return "/".join(p.strip("/") for p in parts if p)


def sha256_file(path: Path) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()
