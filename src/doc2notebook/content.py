"""Render page segments into standalone HTML pages."""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from urllib.parse import unquote

from bs4 import BeautifulSoup
from bs4.element import Tag
from PIL import Image, ImageDraw

from doc2notebook.config import ERROR_IMAGE_NAME, ERROR_IMAGE_SIZE
from doc2notebook.exceptions import ImageNotFoundError, SegmentContentError
from doc2notebook.markup import find_body, iter_tags
from doc2notebook.renderers import AssetFolders
from doc2notebook.schemas import PageSegment

logger = logging.getLogger(__name__)

_FRAME_TEMPLATE = "<html><head></head><body></body></html>"


class PageFrame:
    """Page shell that reuses the source document's head and body attributes."""

    def __init__(self, document: BeautifulSoup) -> None:
        self._head = copy.copy(document.head) if document.head is not None else None
        body = find_body(document)
        self._body_attrs = dict(body.attrs) if isinstance(body, Tag) and body.name == "body" else {}

    def new_page(self) -> tuple[BeautifulSoup, Tag]:
        page = BeautifulSoup(_FRAME_TEMPLATE, "lxml")
        if self._head is not None:
            page.head.replace_with(copy.copy(self._head))
        page.body.attrs = dict(self._body_attrs)
        return page, page.body


def error_image_path(directory: Path) -> Path:
    """Path of the missing-image placeholder in ``directory``, drawn on first use."""
    path = directory / ERROR_IMAGE_NAME
    if not path.exists():
        directory.mkdir(parents=True, exist_ok=True)
        size = ERROR_IMAGE_SIZE
        image = Image.new("RGB", (size, size), "white")
        draw = ImageDraw.Draw(image)
        draw.line((0, 0, size - 1, size - 1), fill="red", width=12)
        draw.line((0, size - 1, size - 1, 0), fill="red", width=12)
        image.save(path)
    return path


def resolve_image(img: Tag, assets: AssetFolders) -> None:
    """Point ``img`` at its asset on disk and scale its height to its width.

    Raises:
        ImageNotFoundError: If the image is in neither asset folder; the
            ``src`` is replaced with the placeholder image first.
    """
    src = img.get("src")
    if not src:
        return
    name = Path(unquote(src).replace("\\", "/")).name

    found = None
    for folder in (assets.primary, assets.auxiliary):
        if folder is not None and (folder / name).is_file():
            found = folder / name
            break

    if found is None:
        placeholder_dir = assets.scratch or assets.auxiliary or assets.primary
        if placeholder_dir is not None:
            img["src"] = str(error_image_path(placeholder_dir))
        img["height"] = str(ERROR_IMAGE_SIZE)
        img["width"] = str(ERROR_IMAGE_SIZE)
        raise ImageNotFoundError(f"Failed to import image: Image Not Found ({name})")

    img["src"] = str(found)
    width = img.get("width")
    if width and width.isdigit():
        with Image.open(found) as image:
            if image.width:
                img["height"] = str(image.height * int(width) // image.width)


def generate_page_content(
    segment: PageSegment, frame: PageFrame, assets: AssetFolders
) -> str:
    """Move the segment's nodes into a new page and return its HTML.

    Problems with individual nodes are recorded on ``segment.errors`` and
    the node is kept with whatever repairs were possible.
    """
    page, body = frame.new_page()
    for node in segment.nodes:
        for img in list(iter_tags(node, "img")):
            try:
                resolve_image(img, assets)
            except SegmentContentError as exc:
                logger.warning("Page %r: %s", segment.title, exc)
                segment.add_error(str(exc))
            except OSError as exc:
                logger.warning("Page %r: cannot read image: %s", segment.title, exc)
                segment.add_error(f"Failed to import image: {exc}")
        body.append(node)
    return str(page)
