"""Outline store models: hierarchy snapshots and page documents."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from doc2notebook.config import (
    DEFAULT_BLOCK_WIDTH,
    DEFAULT_BLOCK_Y,
    MAX_PAGE_LEVEL,
    MIN_PAGE_LEVEL,
)


class NodeKind(str, Enum):
    """Level of an entity in the notebook hierarchy."""

    NOTEBOOK = "notebook"
    SECTION = "section"
    PAGE = "page"


class HierarchyScope(str, Enum):
    """How much of the hierarchy a query returns.

    ``children`` returns the start node and its immediate children,
    ``sections`` returns a notebook with its sections, ``pages`` returns
    the start node with every page below it.
    """

    CHILDREN = "children"
    SECTIONS = "sections"
    PAGES = "pages"


class HierarchyNode(BaseModel):
    """A notebook, section or page as seen in a hierarchy snapshot.

    Snapshots are copies: editing one changes nothing until it is written
    back with ``update_hierarchy``.
    """

    id: str
    name: str
    kind: NodeKind
    path: str | None = None
    page_level: int | None = Field(default=None, ge=MIN_PAGE_LEVEL, le=MAX_PAGE_LEVEL)
    is_collapsed: bool = False
    children: list["HierarchyNode"] = Field(default_factory=list)

    def pages(self) -> list["HierarchyNode"]:
        """Immediate page children, in store order."""
        return [child for child in self.children if child.kind is NodeKind.PAGE]

    def sections(self) -> list["HierarchyNode"]:
        return [child for child in self.children if child.kind is NodeKind.SECTION]

    def find(self, object_id: str) -> "HierarchyNode | None":
        """Depth-first search for ``object_id`` in this snapshot."""
        if self.id == object_id:
            return self
        for child in self.children:
            found = child.find(object_id)
            if found is not None:
                return found
        return None


class ContentBlock(BaseModel):
    """A positioned block of page content."""

    kind: Literal["text", "html", "image"]
    data: str
    x: float = 36.0
    y: float = float(DEFAULT_BLOCK_Y)
    width: float = float(DEFAULT_BLOCK_WIDTH)
    height: float = 14.0
    author: str | None = None
    last_modified_by: str | None = None


class PageDocument(BaseModel):
    """Full content of one page, read and written as a whole."""

    id: str
    title: str
    page_level: int = Field(default=MIN_PAGE_LEVEL, ge=MIN_PAGE_LEVEL, le=MAX_PAGE_LEVEL)
    is_collapsed: bool = False
    show_date: bool = True
    show_time: bool = True
    author: str | None = None
    last_modified_by: str | None = None
    blocks: list[ContentBlock] = Field(default_factory=list)


class Notebook(BaseModel):
    id: str
    name: str
    root_path: str


class Section(BaseModel):
    id: str
    name: str
    parent_notebook_id: str


class Page(BaseModel):
    """A page together with its position in its section."""

    id: str
    title: str
    parent_section_id: str
    page_level: int = Field(default=MIN_PAGE_LEVEL, ge=MIN_PAGE_LEVEL, le=MAX_PAGE_LEVEL)
    collapsed: bool = False
    order_index: int = 0
