"""Decide which pages become subpages.

Source markup carries no outline metadata, so nesting is inferred with a
heuristic chosen per source family. Each policy is a left fold over the
page titles: a step function takes the fold state and one title and
returns the new state together with the subpage decision for that title.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Sequence, TypeVar

from doc2notebook.exceptions import ClassificationError
from doc2notebook.renderers import SlideDeck
from doc2notebook.schemas import PageSegment, SegmentCategory
from doc2notebook.titles import is_default_title, titles_match

S = TypeVar("S")
T = TypeVar("T")


def _fold(step: Callable[[S, T], tuple[S, bool]], initial: S, items: Iterable[T]) -> list[bool]:
    state = initial
    decisions: list[bool] = []
    for item in items:
        state, decision = step(state, item)
        decisions.append(decision)
    return decisions


# Generic policy --------------------------------------------------------------


def _generic_step(previous_title: str, title: str) -> tuple[str, bool]:
    is_subpage = not is_default_title(title) and titles_match(title, previous_title)
    return title, is_subpage


def classify_generic(titles: Sequence[str]) -> list[bool]:
    """A page repeating the previous page's title is a subpage.

    Pages with the default title are never nested.
    """
    return _fold(_generic_step, "", titles)


# Chapter-correlated policy ---------------------------------------------------


@dataclass(frozen=True)
class _ChapterState:
    index: int = 0
    last_seen_chapter: str = ""


def classify_chapters(titles: Sequence[str], chapter_names: Iterable[str]) -> list[bool]:
    """Nest pages under the chapter they follow.

    A title is a chapter when some table-of-contents entry contains it.
    Non-chapter pages are subpages unless they repeat the last chapter
    title. The first page of a run of identically titled non-chapter pages
    is promoted back to a top-level page; the rest of the run stays nested.
    """
    entries = [name.casefold() for name in chapter_names if name.strip()]
    folded = [title.casefold() for title in titles]

    def step(state: _ChapterState, name: str) -> tuple[_ChapterState, bool]:
        i = state.index
        is_chapter = any(name in entry for entry in entries)
        is_subpage = not is_chapter and name != state.last_seen_chapter

        if (
            not is_chapter
            and i > 0
            and name != folded[i - 1]
            and i + 1 < len(folded)
            and name == folded[i + 1]
        ):
            is_subpage = False

        last_seen = name if is_chapter else state.last_seen_chapter
        return _ChapterState(index=i + 1, last_seen_chapter=last_seen), is_subpage

    return _fold(step, _ChapterState(), folded)


def classify_segments(
    segments: Sequence[PageSegment], *, chapter_names: Iterable[str] | None = None
) -> list[bool]:
    """Classify titled segments with the policy matching their category."""
    if not segments:
        return []
    titles = [segment.title for segment in segments]
    category = segments[0].category
    if category is SegmentCategory.GENERIC:
        return classify_generic(titles)
    if category is SegmentCategory.CHAPTER:
        if chapter_names is None:
            raise ClassificationError("Chapter classification needs table-of-contents entries")
        return classify_chapters(titles, chapter_names)
    raise ClassificationError(f"Segments of category {category.value!r} are not markup pages")


# Slide-section policy --------------------------------------------------------


@dataclass(frozen=True)
class SlidePlanEntry:
    """One page to emit for a presentation.

    ``slide_number`` is ``None`` for the page standing for a section.
    """

    title: str
    slide_number: int | None
    is_subpage: bool


@dataclass
class SlidePlan:
    entries: list[SlidePlanEntry]
    sectioned: bool


def slide_title(deck: SlideDeck, slide_number: int) -> str:
    title = (deck.slide_title(slide_number) or "").strip()
    return title or f"Slide{slide_number}"


def plan_slide_sections(deck: SlideDeck, *, include_hidden: bool = False) -> SlidePlan:
    """Lay out a presentation as section pages with slide subpages.

    Without sections the slides are listed flat. Hidden slides are skipped
    unless ``include_hidden`` is set.

    Raises:
        ClassificationError: If the section data does not match the slides.
    """
    count = deck.slide_count()
    if count < 0:
        raise ClassificationError(f"Invalid slide count: {count}")

    def visible(number: int) -> bool:
        return include_hidden or not deck.is_hidden(number)

    if not deck.has_sections():
        entries = [
            SlidePlanEntry(title=slide_title(deck, number), slide_number=number, is_subpage=False)
            for number in range(1, count + 1)
            if visible(number)
        ]
        return SlidePlan(entries=entries, sectioned=False)

    names = list(deck.section_names())
    groups = [list(group) for group in deck.slides_per_section()]
    if len(names) != len(groups):
        raise ClassificationError(
            f"Presentation lists {len(names)} section name(s) but {len(groups)} slide group(s)"
        )

    entries: list[SlidePlanEntry] = []
    seen: set[int] = set()
    for name, slides in zip(names, groups):
        entries.append(SlidePlanEntry(title=name, slide_number=None, is_subpage=False))
        for number in slides:
            if not 1 <= number <= count:
                raise ClassificationError(
                    f"Section {name!r} references slide {number} of {count}"
                )
            if number in seen:
                raise ClassificationError(f"Slide {number} belongs to more than one section")
            seen.add(number)
            if visible(number):
                entries.append(
                    SlidePlanEntry(title=slide_title(deck, number), slide_number=number, is_subpage=True)
                )
    return SlidePlan(entries=entries, sectioned=True)
