"""Protocol implemented by outline store backends."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from doc2notebook.schemas import HierarchyNode, HierarchyScope, PageDocument


@runtime_checkable
class OutlineStore(Protocol):
    """Hierarchy queries and content updates against a notebook store.

    Queries return snapshots taken at call time. Writes either replace a
    whole page document or patch hierarchy attributes (page level,
    collapse state, page order).
    """

    def open_notebook(self, path: str) -> str:
        """Open the notebook at ``path``, creating it if needed; return its id."""
        ...

    def open_section(self, name: str, notebook_id: str) -> str:
        """Create the section ``name`` in a notebook; return its id."""
        ...

    def create_page(self, section_id: str) -> str:
        """Append a blank page carrying the store's default title."""
        ...

    def get_hierarchy(self, object_id: str, scope: HierarchyScope) -> HierarchyNode: ...

    def update_hierarchy(self, node: HierarchyNode) -> None: ...

    def get_page_content(self, page_id: str) -> PageDocument: ...

    def update_page_content(self, document: PageDocument) -> None: ...

    def get_hyperlink(self, object_id: str) -> str: ...

    def get_parent(self, object_id: str) -> str: ...
