"""Dictionary-backed outline store with JSON snapshots."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, Field

from doc2notebook.schemas import (
    HierarchyNode,
    HierarchyScope,
    NodeKind,
    Notebook,
    Page,
    PageDocument,
    Section,
)

logger = logging.getLogger(__name__)

_HYPERLINK_PREFIX = "notebook://"


class StoreSnapshot(BaseModel):
    """Serialized state of an :class:`InMemoryOutlineStore`."""

    notebooks: list[Notebook] = Field(default_factory=list)
    sections: list[Section] = Field(default_factory=list)
    pages: list[Page] = Field(default_factory=list)
    documents: list[PageDocument] = Field(default_factory=list)
    next_id: int = 1


class InMemoryOutlineStore:
    """Outline store kept in memory.

    Ids are assigned sequentially so runs are reproducible. Lookups of
    unknown ids raise ``LookupError``.
    """

    def __init__(self) -> None:
        self._notebooks: dict[str, Notebook] = {}
        self._sections: dict[str, Section] = {}
        self._pages: dict[str, Page] = {}
        self._documents: dict[str, PageDocument] = {}
        self._next_id = 1

    # Creation -----------------------------------------------------------------

    def open_notebook(self, path: str) -> str:
        for notebook in self._notebooks.values():
            if notebook.root_path == path:
                return notebook.id
        notebook = Notebook(id=self._new_id("nb"), name=Path(path).name, root_path=path)
        self._notebooks[notebook.id] = notebook
        logger.debug("Created notebook %s at %s", notebook.id, path)
        return notebook.id

    def open_section(self, name: str, notebook_id: str) -> str:
        self._notebook(notebook_id)
        for section in self._sections_of(notebook_id):
            if section.name == name:
                return section.id
        section = Section(id=self._new_id("sec"), name=name, parent_notebook_id=notebook_id)
        self._sections[section.id] = section
        return section.id

    def create_page(self, section_id: str) -> str:
        self._section(section_id)
        page = Page(
            id=self._new_id("pg"),
            title="",
            parent_section_id=section_id,
            order_index=len(self._pages_of(section_id)),
        )
        self._pages[page.id] = page
        self._documents[page.id] = PageDocument(id=page.id, title="")
        return page.id

    # Queries ------------------------------------------------------------------

    def get_hierarchy(self, object_id: str, scope: HierarchyScope) -> HierarchyNode:
        if object_id in self._notebooks:
            notebook = self._notebooks[object_id]
            with_pages = scope is HierarchyScope.PAGES
            return HierarchyNode(
                id=notebook.id,
                name=notebook.name,
                kind=NodeKind.NOTEBOOK,
                path=notebook.root_path,
                children=[
                    self._section_node(section, with_pages=with_pages)
                    for section in self._sections_of(notebook.id)
                ],
            )
        if object_id in self._sections:
            with_pages = scope is not HierarchyScope.SECTIONS
            return self._section_node(self._sections[object_id], with_pages=with_pages)
        return self._page_node(self._page(object_id))

    def get_page_content(self, page_id: str) -> PageDocument:
        page = self._page(page_id)
        return self._documents[page_id].model_copy(
            update={
                "title": page.title,
                "page_level": page.page_level,
                "is_collapsed": page.collapsed,
            },
            deep=True,
        )

    def get_hyperlink(self, object_id: str) -> str:
        self._lookup(object_id)
        return f"{_HYPERLINK_PREFIX}{object_id}"

    def get_parent(self, object_id: str) -> str:
        entity = self._lookup(object_id)
        if isinstance(entity, Page):
            return entity.parent_section_id
        if isinstance(entity, Section):
            return entity.parent_notebook_id
        raise LookupError(f"Notebook {object_id} has no parent")

    def pages_in(self, section_id: str) -> list[Page]:
        """Page records of a section in display order."""
        self._section(section_id)
        return [page.model_copy() for page in self._pages_of(section_id)]

    # Updates ------------------------------------------------------------------

    def update_hierarchy(self, node: HierarchyNode) -> None:
        if node.kind is NodeKind.PAGE:
            page = self._page(node.id)
            if node.page_level is not None:
                page.page_level = node.page_level
            page.collapsed = node.is_collapsed
            return
        if node.kind is NodeKind.SECTION:
            self._section(node.id)
            listed = node.pages()
            for child in listed:
                if self._page(child.id).parent_section_id != node.id:
                    raise LookupError(f"Page {child.id} is not in section {node.id}")
            for child in listed:
                self.update_hierarchy(child)
            if listed:
                self._reorder(node.id, [child.id for child in listed])
            return
        self._notebook(node.id)
        for child in node.sections():
            self.update_hierarchy(child)

    def update_page_content(self, document: PageDocument) -> None:
        page = self._page(document.id)
        page.title = document.title
        page.page_level = document.page_level
        page.collapsed = document.is_collapsed
        self._documents[document.id] = document.model_copy(deep=True)

    # Persistence --------------------------------------------------------------

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            notebooks=list(self._notebooks.values()),
            sections=list(self._sections.values()),
            pages=list(self._pages.values()),
            documents=list(self._documents.values()),
            next_id=self._next_id,
        )

    def dump(self, path: Path) -> None:
        """Write the whole store to ``path`` as JSON."""
        path.write_text(self.snapshot().model_dump_json(indent=2), encoding="utf-8")

    @classmethod
    def load(cls, path: Path) -> "InMemoryOutlineStore":
        snapshot = StoreSnapshot.model_validate_json(path.read_text(encoding="utf-8"))
        store = cls()
        store._notebooks = {notebook.id: notebook for notebook in snapshot.notebooks}
        store._sections = {section.id: section for section in snapshot.sections}
        store._pages = {page.id: page for page in snapshot.pages}
        store._documents = {document.id: document for document in snapshot.documents}
        store._next_id = snapshot.next_id
        return store

    # Helpers ------------------------------------------------------------------

    def _new_id(self, prefix: str) -> str:
        object_id = f"{prefix}-{self._next_id}"
        self._next_id += 1
        return object_id

    def _lookup(self, object_id: str) -> Notebook | Section | Page:
        for table in (self._notebooks, self._sections, self._pages):
            if object_id in table:
                return table[object_id]
        raise LookupError(f"Unknown object id {object_id}")

    def _notebook(self, notebook_id: str) -> Notebook:
        try:
            return self._notebooks[notebook_id]
        except KeyError:
            raise LookupError(f"Unknown notebook id {notebook_id}") from None

    def _section(self, section_id: str) -> Section:
        try:
            return self._sections[section_id]
        except KeyError:
            raise LookupError(f"Unknown section id {section_id}") from None

    def _page(self, page_id: str) -> Page:
        try:
            return self._pages[page_id]
        except KeyError:
            raise LookupError(f"Unknown page id {page_id}") from None

    def _sections_of(self, notebook_id: str) -> list[Section]:
        return [s for s in self._sections.values() if s.parent_notebook_id == notebook_id]

    def _pages_of(self, section_id: str) -> list[Page]:
        pages = [p for p in self._pages.values() if p.parent_section_id == section_id]
        return sorted(pages, key=lambda page: page.order_index)

    def _reorder(self, section_id: str, ordered_ids: list[str]) -> None:
        current = self._pages_of(section_id)
        listed = set(ordered_ids)
        order = ordered_ids + [page.id for page in current if page.id not in listed]
        for index, page_id in enumerate(order):
            self._pages[page_id].order_index = index

    def _section_node(self, section: Section, *, with_pages: bool) -> HierarchyNode:
        children = [self._page_node(page) for page in self._pages_of(section.id)] if with_pages else []
        return HierarchyNode(
            id=section.id,
            name=section.name,
            kind=NodeKind.SECTION,
            children=children,
        )

    def _page_node(self, page: Page) -> HierarchyNode:
        return HierarchyNode(
            id=page.id,
            name=page.title,
            kind=NodeKind.PAGE,
            page_level=page.page_level,
            is_collapsed=page.collapsed,
        )
