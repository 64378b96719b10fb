"""Markdown description pages with image references.

A description file may place the images of its directory between the
text. To reference a file named ``My image.jpg``, write a paragraph::

    Some text.

    !image My image

    Some more text.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Sequence, Set, Tuple

import markdown
from markdown.extensions import Extension
from markdown.preprocessors import Preprocessor
from markupsafe import Markup

from .errors import MarkdownError
from .models import ImageEntry

IMAGE_TAG_PREFIX = "!image "
FENCE_MARKERS = ("```", "~~~")

CARD_HTML = Markup(
    '<figure class="card" id="{anchor}">'
    '<a href="{root}{url}" data-lightbox="{anchor}" title="{name}">'
    '<img src="{root}{thumbnail}" width="{width}" height="{height}" alt="{name}" loading="lazy">'
    "</a></figure>"
)


def image_card(entry: ImageEntry, root: str = "") -> Markup:
    return CARD_HTML.format(
        anchor=entry.anchor,
        root=root,
        url=entry.url,
        thumbnail=entry.thumbnail_url,
        name=entry.name,
        width=entry.width,
        height=entry.height,
    )


class ImageReferenceProcessor(Preprocessor):
    """Replaces ``!image <name>`` paragraphs with image cards.

    A reference must be a paragraph of its own and outside fenced code.
    """

    def __init__(self, md, images: Dict[str, ImageEntry], known: Set[str], root: str):
        super().__init__(md)
        self.images = images
        self.known = known
        self.root = root
        self.seen: List[str] = []
        self.unknown: List[str] = []

    def run(self, lines: List[str]) -> List[str]:
        out = []
        fence = None
        for index, line in enumerate(lines):
            marker = line.lstrip()[:3]
            if marker in FENCE_MARKERS:
                if fence is None:
                    fence = marker
                elif marker == fence:
                    fence = None
            if fence is not None or not self._is_reference(lines, index):
                out.append(line)
                continue
            name = line[len(IMAGE_TAG_PREFIX):].strip()
            if name not in self.known:
                self.unknown.append(name)
                continue
            self.seen.append(name)
            entry = self.images.get(name)
            if entry is None:
                # The image was dropped earlier (unreadable source).
                continue
            placeholder = self.md.htmlStash.store(str(image_card(entry, self.root)))
            out.extend(["", placeholder, ""])
        return out

    @staticmethod
    def _is_reference(lines: List[str], index: int) -> bool:
        if not lines[index].startswith(IMAGE_TAG_PREFIX):
            return False
        before = lines[index - 1] if index > 0 else ""
        after = lines[index + 1] if index + 1 < len(lines) else ""
        return not before.strip() and not after.strip()


class ImageReferenceExtension(Extension):
    def __init__(self, processor_args: Tuple, **kwargs) -> None:
        self.processor_args = processor_args
        self.processor = None
        super().__init__(**kwargs)

    def extendMarkdown(self, md) -> None:
        self.processor = ImageReferenceProcessor(md, *self.processor_args)
        md.preprocessors.register(self.processor, "gallery_images", 27)


def render_description(
    path: Path,
    entries: Sequence[ImageEntry],
    known_names: Set[str],
    root: str = "../",
) -> Tuple[str, List[str]]:
    """Render a description file to HTML.

    ``entries`` are the images that made it into the gallery, ``known_names``
    all image names of the directory. Images the text does not reference
    are appended after it; their names are returned so they can be
    reported.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise MarkdownError(f"Failed to read description file ({exc})", path) from exc

    images = {entry.name: entry for entry in entries}
    extension = ImageReferenceExtension((images, known_names, root))
    html = markdown.markdown(text, extensions=["extra", extension])
    processor = extension.processor

    if processor.unknown:
        raise MarkdownError("Unknown images: " + ", ".join(processor.unknown), path)

    seen = set(processor.seen)
    unreferenced = [entry for entry in entries if entry.name not in seen]
    if unreferenced:
        html += '\n<div class="unreferenced">\n'
        html += "\n".join(str(image_card(entry, root)) for entry in unreferenced)
        html += "\n</div>"
    return html, [entry.name for entry in unreferenced]
