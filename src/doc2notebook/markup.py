"""Markup tree helpers built on BeautifulSoup.

Exported documents are parsed once with lxml into a BeautifulSoup tree. The
rest of the pipeline works directly on ``Tag`` and ``NavigableString``
nodes; this module collects the queries and mutations it needs.
"""

from __future__ import annotations

import copy
import re
from typing import Iterable, Iterator

from doc2notebook.exceptions import RendererError

try:
    from bs4 import BeautifulSoup
    from bs4.element import NavigableString, PageElement, PreformattedString, Tag
except ImportError as exc:  # pragma: no cover - runtime dependency check
    raise RendererError(
        "BeautifulSoup4 is required for markup parsing (pip install beautifulsoup4)."
    ) from exc


BLOCK_WRAPPER_TAGS = frozenset({"div"})
# Elements that carry content even when they have no text.
MEDIA_TAGS = frozenset(
    {"img", "table", "object", "embed", "svg", "video", "audio", "iframe", "canvas", "math"}
)
NBSP_ENTITY = "&nbsp;"

_PAGE_BREAK_RE = re.compile(r"page-break-before\s*:\s*always", re.IGNORECASE)
_NEWLINES_RE = re.compile(r"\s*[\r\n]+\s*")


def parse_markup(markup: str | bytes) -> BeautifulSoup:
    """Parse HTML markup into a tree."""
    return BeautifulSoup(markup, "lxml")


def find_body(soup: BeautifulSoup) -> Tag:
    """Return the ``<body>`` element, or the document itself when absent."""
    if soup.body is not None:
        return soup.body
    return soup


def is_text_node(node: PageElement) -> bool:
    """True for plain text nodes (not comments, CDATA or declarations)."""
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def flattened_text(node: PageElement) -> str:
    """Concatenated text of ``node`` and its descendants."""
    if isinstance(node, Tag):
        return node.get_text()
    if is_text_node(node):
        return str(node)
    return ""


def normalize_text(text: str) -> str:
    """Collapse line breaks (and the whitespace around them) to single spaces."""
    return _NEWLINES_RE.sub(" ", text).strip()


def is_blank_text(text: str) -> bool:
    """True if ``text`` is whitespace or a bare non-breaking space entity."""
    stripped = text.strip()
    return not stripped or stripped.lower() == NBSP_ENTITY


def has_media(node: PageElement) -> bool:
    if not isinstance(node, Tag):
        return False
    if node.name in MEDIA_TAGS:
        return True
    return node.find(list(MEDIA_TAGS)) is not None


def is_blank(node: PageElement) -> bool:
    """True if ``node`` shows nothing: no visible text and no media."""
    return is_blank_text(flattened_text(node)) and not has_media(node)


def is_page_break(node: PageElement) -> bool:
    """True for a ``<br>`` carrying ``page-break-before: always``."""
    if not isinstance(node, Tag) or node.name != "br":
        return False
    return bool(_PAGE_BREAK_RE.search(node.get("style", "")))


def find_page_break(node: PageElement) -> Tag | None:
    """First page-break marker at or below ``node`` in document order."""
    if is_page_break(node):
        return node
    if isinstance(node, Tag):
        return node.find(is_page_break)
    return None


def iter_tags(node: PageElement, name: str) -> Iterator[Tag]:
    """Yield ``node`` (if it matches) and every descendant named ``name``."""
    if not isinstance(node, Tag):
        return
    if node.name == name:
        yield node
    yield from node.find_all(name)


def detach(node: PageElement) -> PageElement:
    """Remove ``node`` from its parent and return it."""
    return node.extract()


def split_at(unit: PageElement, marker: Tag) -> tuple[PageElement | None, PageElement | None]:
    """Split ``unit`` around ``marker``, which must be ``unit`` or a descendant.

    Returns ``(before, after)``. ``before`` is a trimmed copy holding the
    content that precedes the marker; ``after`` is ``unit`` itself with the
    marker and everything before it removed. When ``unit`` is the marker,
    both parts are ``None``.
    """
    if unit is marker:
        return None, None

    path: list[int] = []
    node: PageElement = marker
    while node is not unit:
        path.append(_index_in_parent(node))
        node = node.parent
    path.reverse()

    before = copy.copy(unit)
    _trim(before, path, keep_before=True)
    _trim(unit, path, keep_before=False)
    return before, unit


def _index_in_parent(node: PageElement) -> int:
    # Tag equality is structural in bs4, so compare identities.
    for index, child in enumerate(node.parent.contents):
        if child is node:
            return index
    raise ValueError("node is not a child of its parent")


def _trim(root: Tag, path: list[int], *, keep_before: bool) -> None:
    node = root
    for depth, index in enumerate(path):
        children = list(node.contents)
        last = depth == len(path) - 1
        if keep_before:
            doomed = children[index:] if last else children[index + 1:]
        else:
            doomed = children[: index + 1] if last else children[:index]
        for child in doomed:
            child.extract()
        if last:
            return
        node = children[index]


def serialize(nodes: Iterable[PageElement]) -> str:
    """Serialize nodes back to markup.

    Bare strings go through ``output_ready`` so comments keep their
    delimiters and text keeps its entities.
    """
    return "".join(
        str(node) if isinstance(node, Tag) else node.output_ready() for node in nodes
    )


def structurally_equal(left: PageElement, right: PageElement) -> bool:
    """Compare tag names, attributes and text, ignoring whitespace-only text."""
    if isinstance(left, Tag) != isinstance(right, Tag):
        return False
    if not isinstance(left, Tag):
        return type(left) is type(right) and str(left) == str(right)
    if left.name != right.name or dict(left.attrs) != dict(right.attrs):
        return False
    left_children = _significant_children(left)
    right_children = _significant_children(right)
    if len(left_children) != len(right_children):
        return False
    return all(
        structurally_equal(a, b) for a, b in zip(left_children, right_children)
    )


def _significant_children(tag: Tag) -> list[PageElement]:
    return [
        child
        for child in tag.contents
        if not (is_text_node(child) and not child.strip())
    ]
