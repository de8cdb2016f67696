"""Infer page titles from segment content."""

from __future__ import annotations

from doc2notebook.config import DEFAULT_PAGE_TITLE
from doc2notebook.markup import flattened_text, is_blank_text, normalize_text
from doc2notebook.schemas import PageSegment


def extract_title(segment: PageSegment) -> tuple[str, PageSegment]:
    """Take the first node with visible text as the segment title.

    The title node is removed from the segment so the title does not
    appear twice on the page. Segments without any text keep all their
    nodes and get the default title.
    """
    for index, node in enumerate(segment.nodes):
        text = normalize_text(flattened_text(node))
        if is_blank_text(text):
            continue
        del segment.nodes[index]
        node.extract()
        segment.title = text
        return text, segment

    segment.title = DEFAULT_PAGE_TITLE
    return DEFAULT_PAGE_TITLE, segment


def titles_match(left: str, right: str) -> bool:
    """Case-insensitive title comparison."""
    return left.casefold() == right.casefold()


def is_default_title(title: str) -> bool:
    return titles_match(title, DEFAULT_PAGE_TITLE)


def chapter_names(segment: PageSegment) -> list[str]:
    """Text of every node in a table-of-contents segment, blanks skipped."""
    names = []
    for node in segment.nodes:
        text = normalize_text(flattened_text(node))
        if not is_blank_text(text):
            names.append(text)
    return names
