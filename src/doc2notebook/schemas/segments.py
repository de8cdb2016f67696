"""Page segment model."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from bs4.element import PageElement

from doc2notebook.config import DEFAULT_PAGE_TITLE
from doc2notebook.markup import serialize


class SegmentCategory(str, Enum):
    """Which hierarchy policy a segment is classified with."""

    GENERIC = "generic"
    CHAPTER = "chapter"
    SLIDE_SECTION = "slide-section"


@dataclass
class PageSegment:
    """A contiguous run of source nodes that becomes one output page.

    Nodes are detached from the source body when they are added, so a
    segment owns them until they are moved into a rendered page.
    """

    nodes: list[PageElement] = field(default_factory=list)
    title: str = DEFAULT_PAGE_TITLE
    errors: list[str] = field(default_factory=list)
    category: SegmentCategory = SegmentCategory.GENERIC

    def add_error(self, message: str) -> None:
        self.errors.append(message)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def to_markup(self) -> str:
        return serialize(self.nodes)
