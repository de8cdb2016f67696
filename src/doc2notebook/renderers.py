"""Interfaces to the external renderers, plus loaders for pre-rendered input.

Rendering a source document (word-processor export, slide export, PDF
rasterization, e-book extraction) happens outside this package. What
arrives here is exported HTML with its asset folders, sets of page images,
slide-deck descriptions and e-book page lists.
"""

from __future__ import annotations

import json
import posixpath
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence, runtime_checkable
from urllib.parse import unquote, urlsplit

from bs4 import BeautifulSoup
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from doc2notebook.config import DOC2NOTEBOOK_SCRATCH_DIR
from doc2notebook.exceptions import RendererError
from doc2notebook.markup import normalize_text, parse_markup

HTML_EXTENSIONS = (".htm", ".html", ".xhtml")
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".bmp", ".tif", ".tiff")
MANIFEST_EXTENSIONS = (".json",)

# Word-processor exports keep images in "<name>_files"; a second, unfiltered
# export is written to "<name>_aux_files".
ASSET_FOLDER_SUFFIX = "_files"
AUX_FILE_SUFFIX = "_aux"

_DIGITS_RE = re.compile(r"(\d+)")


@dataclass(frozen=True)
class AssetFolders:
    """Where images referenced by exported markup may be found."""

    primary: Path | None = None
    auxiliary: Path | None = None
    # Directory that receives the placeholder image for missing assets.
    scratch: Path | None = None


@dataclass
class RenderedMarkup:
    source: Path
    document: BeautifulSoup
    assets: AssetFolders


@runtime_checkable
class SlideDeck(Protocol):
    """Accessors of a rendered presentation. Slide numbers start at 1."""

    def slide_count(self) -> int: ...

    def slide_title(self, slide_number: int) -> str: ...

    def slide_notes(self, slide_number: int) -> str: ...

    def slide_comments(self, slide_number: int) -> str: ...

    def is_hidden(self, slide_number: int) -> bool: ...

    def has_sections(self) -> bool: ...

    def section_names(self) -> Sequence[str]: ...

    def slides_per_section(self) -> Sequence[Sequence[int]]: ...


@runtime_checkable
class EbookSource(Protocol):
    """Pages of an extracted e-book, in reading order."""

    def title(self) -> str: ...

    def page_paths(self) -> Sequence[str]: ...

    def page_titles(self) -> Sequence[str]: ...

    def page_documents(self) -> Sequence[str]: ...

    def page_levels(self) -> dict[str, int]: ...


class SlideInfo(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = ""
    notes: str = ""
    comments: str = ""
    hidden: bool = False


class SlideSectionInfo(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    slides: list[int] = Field(default_factory=list)


class StaticSlideDeck(BaseModel):
    """Slide deck description produced by an external slide exporter.

    ``image_dir`` holds ``Slide{n}.png`` renderings of the slides.
    Unknown keys are rejected and ``slides`` is required.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = ""
    slides: list[SlideInfo]
    sections: list[SlideSectionInfo] = Field(default_factory=list)
    image_dir: Path | None = None

    def slide_count(self) -> int:
        return len(self.slides)

    def slide_title(self, slide_number: int) -> str:
        return self._slide(slide_number).title

    def slide_notes(self, slide_number: int) -> str:
        return self._slide(slide_number).notes

    def slide_comments(self, slide_number: int) -> str:
        return self._slide(slide_number).comments

    def is_hidden(self, slide_number: int) -> bool:
        return self._slide(slide_number).hidden

    def has_sections(self) -> bool:
        return bool(self.sections)

    def section_names(self) -> list[str]:
        return [section.name for section in self.sections]

    def slides_per_section(self) -> list[list[int]]:
        return [list(section.slides) for section in self.sections]

    def _slide(self, slide_number: int) -> SlideInfo:
        if not 1 <= slide_number <= len(self.slides):
            raise IndexError(f"Slide {slide_number} out of range 1..{len(self.slides)}")
        return self.slides[slide_number - 1]


class EbookPage(BaseModel):
    """One e-book document.

    ``html`` may be left out of a manifest, in which case the page is read
    from ``path`` relative to the manifest.
    """

    model_config = ConfigDict(extra="forbid")

    path: str
    title: str = ""
    html: str | None = None
    level: int | None = None


class StaticEbook(BaseModel):
    """E-book pages already extracted from the archive."""

    model_config = ConfigDict(extra="forbid")

    name: str = ""
    pages: list[EbookPage]

    def title(self) -> str:
        return self.name

    def page_paths(self) -> list[str]:
        return [page.path for page in self.pages]

    def page_titles(self) -> list[str]:
        return [page.title for page in self.pages]

    def page_documents(self) -> list[str]:
        return [page.html or "" for page in self.pages]

    def page_levels(self) -> dict[str, int]:
        return {page.path: page.level for page in self.pages if page.level is not None}


def render_html_export(path: Path, *, scratch_dir: Path | None = None) -> RenderedMarkup:
    """Load a word-processor HTML export and locate its asset folders.

    Generated files go to ``scratch_dir``, or to ``DOC2NOTEBOOK_SCRATCH_DIR``
    when it is not given, and never next to ``path``.

    Raises:
        RendererError: If the file cannot be read.
    """
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise RendererError(f"Cannot read {path}: {exc}") from exc

    # Exports declare their own charset; parse the raw bytes.
    document = parse_markup(raw)
    primary = path.with_name(path.stem + ASSET_FOLDER_SUFFIX)
    auxiliary = path.with_name(path.stem + AUX_FILE_SUFFIX + ASSET_FOLDER_SUFFIX)
    assets = AssetFolders(
        primary=primary,
        auxiliary=auxiliary,
        scratch=scratch_dir or DOC2NOTEBOOK_SCRATCH_DIR,
    )
    return RenderedMarkup(source=path, document=document, assets=assets)


def load_manifest(path: Path) -> StaticSlideDeck | StaticEbook:
    """Load a JSON manifest describing a slide deck or an extracted e-book.

    A manifest with a ``pages`` list is an e-book; anything else must be a
    slide deck.

    For a deck, a relative ``image_dir`` is resolved against the manifest's
    folder; when absent, a sibling folder named after the file is used if
    present.

    For an e-book, page files are read relative to the manifest unless the
    page carries its ``html`` inline. A page without a title takes the text
    of its first ``<h1>`` (which is then removed from the page) or of its
    ``<title>``. Relative links between pages are rewritten to the linked
    page's ``path``.

    Raises:
        RendererError: If a file cannot be read or the manifest is neither.
    """
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
    except OSError as exc:
        raise RendererError(f"Cannot read {path}: {exc}") from exc
    except ValueError as exc:
        raise RendererError(f"Invalid manifest {path}: {exc}") from exc
    if isinstance(data, dict) and "pages" in data:
        return _ebook_from_manifest(path, text)
    return _deck_from_manifest(path, text)


def _deck_from_manifest(path: Path, text: str) -> StaticSlideDeck:
    try:
        deck = StaticSlideDeck.model_validate_json(text)
    except ValidationError as exc:
        raise RendererError(f"Invalid slide deck {path}: {exc}") from exc

    image_dir = deck.image_dir
    if image_dir is not None and not image_dir.is_absolute():
        image_dir = path.parent / image_dir
    elif image_dir is None and path.with_suffix("").is_dir():
        image_dir = path.with_suffix("")
    return deck.model_copy(update={"name": deck.name or path.stem, "image_dir": image_dir})


def _ebook_from_manifest(path: Path, text: str) -> StaticEbook:
    try:
        book = StaticEbook.model_validate_json(text)
    except ValidationError as exc:
        raise RendererError(f"Invalid e-book {path}: {exc}") from exc

    page_paths = {_normalize_page_path(page.path) for page in book.pages}
    pages = []
    for page in book.pages:
        page_path = _normalize_page_path(page.path)
        if page.html is not None:
            markup = page.html
        else:
            try:
                markup = (path.parent / page_path).read_bytes()
            except OSError as exc:
                raise RendererError(f"Cannot read e-book page {page_path}: {exc}") from exc

        document = parse_markup(markup)
        title = page.title.strip()
        if not title:
            heading = document.find("h1")
            node = heading if heading is not None else document.find("title")
            title = normalize_text(node.get_text()) if node is not None else ""
            if heading is not None:
                heading.decompose()

        for tag in document.find_all(href=True):
            target = _link_target(page_path, tag["href"])
            if target in page_paths:
                tag["href"] = target

        pages.append(page.model_copy(update={"path": page_path, "title": title, "html": str(document)}))
    return StaticEbook(name=book.name or path.stem, pages=pages)


def _normalize_page_path(page_path: str) -> str:
    return posixpath.normpath(page_path.replace("\\", "/"))


def _link_target(page_path: str, href: str) -> str | None:
    parts = urlsplit(href)
    if parts.scheme or parts.netloc or not parts.path:
        return None
    return posixpath.normpath(posixpath.join(posixpath.dirname(page_path), unquote(parts.path)))


def natural_sort_key(path: Path) -> list[int | str]:
    """Sort ``page2`` before ``page10``."""
    return [
        int(part) if part.isdigit() else part.lower()
        for part in _DIGITS_RE.split(path.name)
    ]


def collect_page_images(directory: Path) -> list[Path]:
    """Page images in ``directory``, in natural file-name order."""
    if not directory.is_dir():
        raise RendererError(f"Not a directory: {directory}")
    images = [
        child
        for child in directory.iterdir()
        if child.is_file() and child.suffix.lower() in IMAGE_EXTENSIONS
    ]
    return sorted(images, key=natural_sort_key)
