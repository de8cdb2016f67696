"""Split an exported document body into page segments at page breaks."""

from __future__ import annotations

import logging
from typing import Iterator

from bs4.element import PageElement, Tag

from doc2notebook.markup import (
    BLOCK_WRAPPER_TAGS,
    detach,
    find_page_break,
    is_blank,
    split_at,
)
from doc2notebook.schemas import PageSegment, SegmentCategory

logger = logging.getLogger(__name__)


def segment_pages(
    body: Tag, *, category: SegmentCategory = SegmentCategory.GENERIC
) -> Iterator[PageSegment]:
    """Yield the page segments of ``body`` in document order.

    Direct children of ``body`` are the units of segmentation, except that
    block wrappers (``<div>``) are flattened one level. A unit holding a
    page-break marker is split around it: content before the marker closes
    the current segment, content after it opens the next one, and the
    marker itself is dropped. Segments with nothing visible in them are
    never yielded, so an empty body yields nothing.

    Units are detached from ``body`` as they are consumed. The returned
    iterator can be consumed only once.
    """
    current = PageSegment(category=category)
    count = 0

    for unit in _iter_units(body):
        marker = find_page_break(unit)
        while marker is not None:
            before, unit = split_at(unit, marker)
            if before is not None and not is_blank(before):
                current.nodes.append(before)
            if _has_content(current):
                count += 1
                yield current
            current = PageSegment(category=category)
            if unit is None:
                break
            marker = find_page_break(unit)

        if unit is not None:
            current.nodes.append(unit)

    if _has_content(current):
        count += 1
        yield current

    logger.debug("Segmented body into %d page(s)", count)


def _iter_units(body: Tag) -> Iterator[PageElement]:
    for child in list(body.contents):
        if isinstance(child, Tag) and child.name in BLOCK_WRAPPER_TAGS:
            for grandchild in list(child.contents):
                yield detach(grandchild)
            detach(child)
        else:
            yield detach(child)


def _has_content(segment: PageSegment) -> bool:
    return any(not is_blank(node) for node in segment.nodes)
