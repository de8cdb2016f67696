"""High-level notebook operations on top of an :class:`OutlineStore`.

The store is the source of truth: every operation that depends on the
current hierarchy (sibling names, page levels, page order) queries it
instead of trusting local state. Any failure coming out of the store is
re-raised as :class:`StoreError` with the original exception chained.
"""

from __future__ import annotations

import base64
import functools
import html
import io
import logging
from pathlib import Path
from typing import Callable, TypeVar

from PIL import Image

from doc2notebook.config import (
    CONTENT_BLOCK_MARGIN,
    DEFAULT_BLOCK_WIDTH,
    DEFAULT_BLOCK_Y,
    DEFAULT_PAGE_HEIGHT,
    DEFAULT_PAGE_WIDTH,
    DOC2NOTEBOOK_MAX_NAME_ATTEMPTS,
    DOC2NOTEBOOK_OUTPUT_PATH,
    MAX_IMAGE_WIDTH,
    MAX_PAGE_LEVEL,
    MIN_PAGE_LEVEL,
    TOC_PAGE_TITLE,
)
from doc2notebook.exceptions import NameCollisionError, StoreError
from doc2notebook.schemas import ContentBlock, HierarchyNode, HierarchyScope
from doc2notebook.store.base import OutlineStore

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable)

_TEXT_LINE_HEIGHT = 14.0


def _store_operation(name: str) -> Callable[[F], F]:
    """Re-raise anything but ``StoreError`` as ``StoreError`` naming ``name``."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except StoreError:
                raise
            except Exception as exc:
                raise StoreError(f"Error in {name}: {exc}") from exc

        return wrapper  # type: ignore[return-value]

    return decorator


def clamp_page_level(level: int) -> int:
    return max(MIN_PAGE_LEVEL, min(MAX_PAGE_LEVEL, level))


def build_toc_lines(pages: list[HierarchyNode], hyperlinks: dict[str, str], *, exclude: str | None = None) -> list[str]:
    """One hyperlink line per page, indented with a tab per nesting level."""
    lines = []
    for page in pages:
        if page.id == exclude:
            continue
        level = page.page_level or MIN_PAGE_LEVEL
        indent = "\t" * (level - 1)
        lines.append(f'{indent}<a href="{hyperlinks[page.id]}">{html.escape(page.name)}</a>')
    return lines


class OutlineWriter:
    """Creates notebooks, sections and pages and edits page attributes."""

    def __init__(
        self,
        store: OutlineStore,
        *,
        output_path: Path | str = DOC2NOTEBOOK_OUTPUT_PATH,
        max_name_attempts: int = DOC2NOTEBOOK_MAX_NAME_ATTEMPTS,
    ) -> None:
        self.store = store
        self.output_path = Path(output_path)
        self.max_name_attempts = max_name_attempts

    # Creation -----------------------------------------------------------------

    @_store_operation("CreateNotebook")
    def create_notebook(self, name: str) -> str:
        """Open the notebook ``name`` under the output path, creating it if needed."""
        return self.store.open_notebook(str(self.output_path / name))

    @_store_operation("CreateSection")
    def create_section(self, name: str, notebook_id: str) -> str:
        """Create a section, renaming it ``name (2)``, ``name (3)``... on collisions.

        Raises:
            NameCollisionError: If no free name is found within
                ``max_name_attempts`` candidates.
        """
        hierarchy = self.store.get_hierarchy(notebook_id, HierarchyScope.SECTIONS)
        existing = {section.name for section in hierarchy.sections()}

        candidate = name
        ordinal = 2
        attempts = 1
        while candidate in existing:
            if attempts >= self.max_name_attempts:
                raise NameCollisionError(
                    f"No free section name for {name!r} after {attempts} attempts"
                )
            candidate = f"{name} ({ordinal})"
            ordinal += 1
            attempts += 1

        if candidate != name:
            logger.info("Section name %r taken, using %r", name, candidate)
        return self.store.open_section(candidate, notebook_id)

    @_store_operation("CreatePage")
    def create_page(self, title: str, section_id: str) -> str:
        page_id = self.store.create_page(section_id)
        document = self.store.get_page_content(page_id)
        self.store.update_page_content(document.model_copy(update={"title": title}))
        return page_id

    @_store_operation("CreateTableOfContents")
    def create_table_of_contents(self, section_id: str, title: str = TOC_PAGE_TITLE) -> str:
        """Create a page linking to every other page of the section.

        Links follow the current page order and are indented by page level.
        The new page is then moved in front of all others.
        """
        toc_page_id = self.create_page(title, section_id)
        section = self.store.get_hierarchy(section_id, HierarchyScope.CHILDREN)
        pages = section.pages()
        hyperlinks = {
            page.id: self.store.get_hyperlink(page.id) for page in pages if page.id != toc_page_id
        }
        lines = build_toc_lines(pages, hyperlinks, exclude=toc_page_id)
        self.add_page_content(toc_page_id, "".join(line + "\n\n" for line in lines))
        self.set_as_first_page(toc_page_id, section_id)
        return toc_page_id

    # Hierarchy ----------------------------------------------------------------

    @_store_operation("SetSubPage")
    def set_sub_page(self, section_id: str, page_id: str, promote: bool = True) -> int:
        """Nest a page one level deeper (or lift it one level with ``promote=False``).

        Returns the new page level, which always stays within 1..3.
        """
        hierarchy = self.store.get_hierarchy(section_id, HierarchyScope.PAGES)
        page = hierarchy.find(page_id)
        if page is None or page.page_level is None:
            raise StoreError(f"Page {page_id} not found in section {section_id}")

        level = page.page_level + 1 if promote else page.page_level - 1
        page.page_level = clamp_page_level(level)
        self.store.update_hierarchy(hierarchy)
        return page.page_level

    @_store_operation("SetPageLevel")
    def set_page_level(self, page_id: str, level: int) -> int:
        level = clamp_page_level(level)
        document = self.store.get_page_content(page_id)
        self.store.update_page_content(document.model_copy(update={"page_level": level}))
        return level

    @_store_operation("GetPageLevel")
    def get_page_level(self, page_id: str) -> int:
        section_id = self.store.get_parent(page_id)
        page = self.store.get_hierarchy(section_id, HierarchyScope.PAGES).find(page_id)
        if page is None or page.page_level is None:
            raise StoreError(f"Page {page_id} not found in section {section_id}")
        return page.page_level

    @_store_operation("SetAsFirstPage")
    def set_as_first_page(self, page_id: str, section_id: str) -> None:
        section = self.store.get_hierarchy(section_id, HierarchyScope.CHILDREN)
        pages = section.pages()
        if len(pages) <= 1:
            return
        page = next((p for p in pages if p.id == page_id), None)
        if page is None:
            raise StoreError(f"Page {page_id} not found in section {section_id}")
        section.children = [page] + [p for p in section.children if p.id != page_id]
        self.store.update_hierarchy(section)

    @_store_operation("FindPage")
    def find_page(self, title: str, section_id: str) -> str | None:
        """Id of the first page titled ``title``, or ``None``."""
        for page in self.store.get_hierarchy(section_id, HierarchyScope.PAGES).pages():
            if page.name == title:
                return page.id
        return None

    @_store_operation("GetHyperLinkToObject")
    def get_hyperlink(self, object_id: str) -> str:
        return self.store.get_hyperlink(object_id)

    # Page attributes ----------------------------------------------------------

    @_store_operation("SetCollapsed")
    def set_collapsed(self, page_id: str, collapsed: bool = True) -> None:
        """Hide (or show) the subpages listed under a page."""
        document = self.store.get_page_content(page_id)
        self.store.update_page_content(document.model_copy(update={"is_collapsed": collapsed}))

    @_store_operation("SetShowDate")
    def set_show_date(self, page_id: str, shown: bool = True) -> None:
        document = self.store.get_page_content(page_id)
        self.store.update_page_content(document.model_copy(update={"show_date": shown}))

    @_store_operation("SetShowTime")
    def set_show_time(self, page_id: str, shown: bool = True) -> None:
        document = self.store.get_page_content(page_id)
        self.store.update_page_content(document.model_copy(update={"show_time": shown}))

    @_store_operation("RemoveAuthor")
    def remove_author(self, page_id: str) -> None:
        """Blank the author and last-editor fields on a page and its blocks."""
        document = self.store.get_page_content(page_id)
        blocks = [
            block.model_copy(update={"author": "", "last_modified_by": ""})
            if block.author is not None or block.last_modified_by is not None
            else block
            for block in document.blocks
        ]
        updates: dict[str, object] = {"blocks": blocks}
        if document.author is not None:
            updates["author"] = ""
        if document.last_modified_by is not None:
            updates["last_modified_by"] = ""
        self.store.update_page_content(document.model_copy(update=updates))

    # Content ------------------------------------------------------------------

    @_store_operation("AddPageContent")
    def add_page_content(
        self, page_id: str, content: str, y: float = DEFAULT_BLOCK_Y, width: float = DEFAULT_BLOCK_WIDTH
    ) -> None:
        """Add a plain text block."""
        block = ContentBlock(kind="text", data=content, y=y, width=width, height=_TEXT_LINE_HEIGHT)
        self._append_block(page_id, block)

    def append_page_content(self, page_id: str, content: str, width: float = DEFAULT_BLOCK_WIDTH) -> None:
        """Add a plain text block below everything already on the page."""
        self.add_page_content(page_id, content, self.get_page_height(page_id) + CONTENT_BLOCK_MARGIN, width)

    @_store_operation("AddHtmlBlock")
    def add_html_block(
        self, page_id: str, markup: str, y: float = DEFAULT_BLOCK_Y, width: float = DEFAULT_BLOCK_WIDTH
    ) -> None:
        block = ContentBlock(kind="html", data=markup, y=y, width=width, height=_TEXT_LINE_HEIGHT)
        self._append_block(page_id, block)

    def append_html_block(self, page_id: str, markup: str, width: float = DEFAULT_BLOCK_WIDTH) -> None:
        self.add_html_block(page_id, markup, self.get_page_height(page_id) + CONTENT_BLOCK_MARGIN, width)

    @_store_operation("AddImageToPage")
    def add_image(self, page_id: str, image: Path | bytes, y: float = DEFAULT_BLOCK_Y) -> None:
        """Add an image, scaled down proportionally to at most 960px wide."""
        source = io.BytesIO(image) if isinstance(image, bytes) else image
        with Image.open(source) as img:
            width, height = img.size
            image_format = img.format or "PNG"
            if width > MAX_IMAGE_WIDTH:
                height = height * MAX_IMAGE_WIDTH // width
                width = MAX_IMAGE_WIDTH
                img = img.resize((width, height))
            buffer = io.BytesIO()
            img.save(buffer, format=image_format)

        data = base64.b64encode(buffer.getvalue()).decode("ascii")
        block = ContentBlock(kind="image", data=data, y=y, width=width, height=height)
        self._append_block(page_id, block)

    def append_image(self, page_id: str, image: Path | bytes) -> None:
        self.add_image(page_id, image, self.get_page_height(page_id) + CONTENT_BLOCK_MARGIN)

    @_store_operation("GetPageHeight")
    def get_page_height(self, page_id: str) -> float:
        """Bottom edge of the lowest block (80 on an empty page)."""
        blocks = self.store.get_page_content(page_id).blocks
        return max([DEFAULT_PAGE_HEIGHT] + [block.y + block.height for block in blocks])

    @_store_operation("GetPageWidth")
    def get_page_width(self, page_id: str) -> float:
        """Width of the widest block (520 on an empty page)."""
        blocks = self.store.get_page_content(page_id).blocks
        return max([DEFAULT_PAGE_WIDTH] + [block.width for block in blocks])

    def _append_block(self, page_id: str, block: ContentBlock) -> None:
        document = self.store.get_page_content(page_id)
        self.store.update_page_content(
            document.model_copy(update={"blocks": [*document.blocks, block]})
        )
