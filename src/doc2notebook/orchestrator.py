"""Conversion pipelines wiring segmentation, classification and the outline store."""

from __future__ import annotations

import html
import io
import logging
from pathlib import Path
from typing import Sequence

from bs4 import BeautifulSoup
from PIL import Image

from doc2notebook.classifiers import SlidePlanEntry, classify_segments, plan_slide_sections
from doc2notebook.config import DEFAULT_PAGE_TITLE, ERROR_PAGE_TITLE
from doc2notebook.content import PageFrame, generate_page_content
from doc2notebook.formats import GENERIC, FormatProfile, SlideAudience
from doc2notebook.markup import find_body, parse_markup
from doc2notebook.renderers import (
    AssetFolders,
    EbookSource,
    SlideDeck,
    render_html_export,
)
from doc2notebook.schemas import (
    ConversionResult,
    ConversionStage,
    PageError,
    PageSegment,
    SegmentCategory,
)
from doc2notebook.segmenter import segment_pages
from doc2notebook.store.adapter import OutlineWriter
from doc2notebook.titles import chapter_names, extract_title

logger = logging.getLogger(__name__)


class DocumentConverter:
    """Convert one document at a time into the outline store.

    Per-page content problems (a missing image, say) are collected and
    listed on an error page at the end of the section. Store and
    classification errors abort the current document and propagate.
    Instances hold no per-document state, so one converter can process
    many documents in sequence.
    """

    def __init__(self, writer: OutlineWriter, profile: FormatProfile = GENERIC) -> None:
        self.writer = writer
        self.profile = profile

    # Exported markup ----------------------------------------------------------

    def convert_html_file(self, path: Path, *, scratch_dir: Path | None = None) -> ConversionResult:
        """Convert a word-processor HTML export into a section named after the file."""
        rendered = render_html_export(path, scratch_dir=scratch_dir)
        return self.convert_markup(
            rendered.document,
            section_name=path.stem,
            assets=rendered.assets,
            source=str(path),
        )

    def convert_markup(
        self,
        document: BeautifulSoup,
        *,
        section_name: str,
        assets: AssetFolders | None = None,
        source: str | None = None,
        include_toc: bool = True,
    ) -> ConversionResult:
        """Split a parsed document into pages and write them to one section."""
        assets = assets or AssetFolders()
        result = ConversionResult(source=source or section_name)
        category = self.profile.markup_category

        self._advance(result, ConversionStage.SEGMENTING)
        frame = PageFrame(document)
        segments = list(segment_pages(find_body(document), category=category))
        if not segments:
            logger.info("No pages found", extra={"source": result.source})
            self._advance(result, ConversionStage.DONE)
            return result

        toc_entries = chapter_names(segments[0]) if category is SegmentCategory.CHAPTER else None
        for segment in segments:
            extract_title(segment)

        self._advance(result, ConversionStage.CLASSIFYING)
        assignments = classify_segments(segments, chapter_names=toc_entries)

        self._advance(result, ConversionStage.EMITTING)
        notebook_id = self.writer.create_notebook(self.profile.notebook_name)
        section_id = self.writer.create_section(section_name, notebook_id)
        result.notebook_ids.append(notebook_id)
        result.section_ids.append(section_id)

        for segment, is_subpage in zip(segments, assignments):
            page_id = self._emit_segment(segment, section_id, frame, assets)
            result.page_ids.append(page_id)
            if is_subpage:
                self.writer.set_sub_page(section_id, page_id)
            if segment.has_errors:
                result.page_errors.append(
                    PageError(page_id=page_id, title=segment.title, messages=list(segment.errors))
                )

        self._report_errors(result, section_id)
        if include_toc:
            result.toc_page_ids.append(self.writer.create_table_of_contents(section_id))
        self._advance(result, ConversionStage.DONE)
        return result

    def _emit_segment(
        self, segment: PageSegment, section_id: str, frame: PageFrame, assets: AssetFolders
    ) -> str:
        page_id = self.writer.create_page(segment.title, section_id)
        content = generate_page_content(segment, frame, assets)
        self.writer.add_html_block(page_id, content)
        return page_id

    # Page images --------------------------------------------------------------

    def convert_page_images(
        self,
        images: Sequence[Path | bytes],
        *,
        section_name: str,
        source: str | None = None,
    ) -> ConversionResult:
        """One page per image, titled ``Page1``, ``Page2``..., then a table of contents."""
        result = ConversionResult(source=source or section_name)
        self._advance(result, ConversionStage.EMITTING)
        notebook_id = self.writer.create_notebook(self.profile.notebook_name)
        section_id = self.writer.create_section(section_name, notebook_id)
        result.notebook_ids.append(notebook_id)
        result.section_ids.append(section_id)

        for number, image in enumerate(images, start=1):
            title = f"Page{number}"
            page_id = self.writer.create_page(title, section_id)
            result.page_ids.append(page_id)
            try:
                data = _load_image(image)
            except OSError as exc:
                logger.warning("Page image %d unreadable: %s", number, exc)
                result.page_errors.append(
                    PageError(page_id=page_id, title=title, messages=[f"Failed to import image: {exc}"])
                )
                continue
            self.writer.add_image(page_id, data)

        self._report_errors(result, section_id)
        result.toc_page_ids.append(self.writer.create_table_of_contents(section_id))
        self._advance(result, ConversionStage.DONE)
        return result

    # Presentations ------------------------------------------------------------

    def convert_slide_deck(
        self,
        deck: SlideDeck,
        *,
        section_name: str,
        image_dir: Path | None = None,
        source: str | None = None,
    ) -> ConversionResult:
        """Write a presentation once per audience of the profile.

        Sections become top-level pages with their slides nested beneath,
        followed by a collapsed table of contents.
        """
        result = ConversionResult(source=source or section_name)
        self._advance(result, ConversionStage.CLASSIFYING)
        plan = plan_slide_sections(deck, include_hidden=self.profile.include_hidden_slides)

        self._advance(result, ConversionStage.EMITTING)
        for audience in self.profile.slide_audiences:
            notebook_id = self.writer.create_notebook(audience.notebook_name)
            section_id = self.writer.create_section(section_name, notebook_id)
            result.notebook_ids.append(notebook_id)
            result.section_ids.append(section_id)
            errors_before = len(result.page_errors)

            section_page_ids = []
            for entry in plan.entries:
                if entry.slide_number is None:
                    page_id = self.writer.create_page(entry.title, section_id)
                    section_page_ids.append(page_id)
                else:
                    page_id = self._insert_slide(deck, entry, section_id, audience, image_dir, result)
                    if entry.is_subpage:
                        self.writer.set_sub_page(section_id, page_id)
                result.page_ids.append(page_id)
                if audience.hide_timestamps and entry.slide_number is not None:
                    self._hide_timestamps(page_id)

            if len(result.page_errors) > errors_before:
                self._report_errors(result, section_id, result.page_errors[errors_before:])

            if plan.sectioned or audience.toc_without_sections:
                toc_page_id = self.writer.create_table_of_contents(section_id)
                result.toc_page_ids.append(toc_page_id)
                if audience.hide_timestamps:
                    self._hide_timestamps(toc_page_id)

            for page_id in section_page_ids:
                self.writer.set_collapsed(page_id)
                if audience.hide_timestamps:
                    self._hide_timestamps(page_id)

        self._advance(result, ConversionStage.DONE)
        return result

    def _insert_slide(
        self,
        deck: SlideDeck,
        entry: SlidePlanEntry,
        section_id: str,
        audience: SlideAudience,
        image_dir: Path | None,
        result: ConversionResult,
    ) -> str:
        number = entry.slide_number
        page_id = self.writer.create_page(entry.title, section_id)

        image_path = image_dir / f"Slide{number}.png" if image_dir is not None else None
        if image_path is not None and image_path.is_file():
            self.writer.add_image(page_id, image_path)
        else:
            logger.warning("Slide %d was not converted", number, extra={"section_id": section_id})
            result.page_errors.append(
                PageError(page_id=page_id, title=entry.title, messages=[f"Slide {number} image not found"])
            )

        comments = deck.slide_comments(number)
        if audience.show_comments and comments:
            self.writer.append_page_content(
                page_id,
                f"{audience.comments_title}: \n\n{comments}",
                self.writer.get_page_width(page_id),
            )

        notes = deck.slide_notes(number)
        if audience.show_notes and notes:
            self.writer.append_page_content(
                page_id,
                f"{audience.notes_title}: \n\n{notes}",
                self.writer.get_page_width(page_id),
            )

        self.writer.remove_author(page_id)
        return page_id

    def _hide_timestamps(self, page_id: str) -> None:
        self.writer.set_show_date(page_id, False)
        self.writer.set_show_time(page_id, False)

    # E-books ------------------------------------------------------------------

    def convert_ebook(self, book: EbookSource, *, source: str | None = None) -> ConversionResult:
        """One page per e-book document, with intra-book links pointing at the new pages."""
        result = ConversionResult(source=source or book.title())
        paths = list(book.page_paths())
        titles = [title.strip() or DEFAULT_PAGE_TITLE for title in book.page_titles()]
        documents = [parse_markup(markup) for markup in book.page_documents()]
        levels = book.page_levels()

        self._advance(result, ConversionStage.EMITTING)
        notebook_id = self.writer.create_notebook(self.profile.notebook_name)
        section_id = self.writer.create_section(book.title(), notebook_id)
        result.notebook_ids.append(notebook_id)
        result.section_ids.append(section_id)

        page_ids = [self.writer.create_page(title, section_id) for title in titles]
        links = {path: self.writer.get_hyperlink(page_id) for path, page_id in zip(paths, page_ids)}
        for document in documents:
            for tag in document.find_all(href=True):
                if tag["href"] in links:
                    tag["href"] = links[tag["href"]]

        for path, page_id, document in zip(paths, page_ids, documents):
            self.writer.append_html_block(page_id, str(document))
            if path in levels:
                self.writer.set_page_level(page_id, levels[path])
            result.page_ids.append(page_id)

        self._advance(result, ConversionStage.DONE)
        return result

    # Shared -------------------------------------------------------------------

    def _report_errors(
        self,
        result: ConversionResult,
        section_id: str,
        page_errors: Sequence[PageError] | None = None,
    ) -> None:
        page_errors = result.page_errors if page_errors is None else page_errors
        if not page_errors:
            return
        self._advance(result, ConversionStage.ERROR_REPORT)
        page_id = self.writer.create_page(ERROR_PAGE_TITLE, section_id)
        content = ""
        for error in page_errors:
            link = self.writer.get_hyperlink(error.page_id)
            messages = html.escape("\n".join(error.messages))
            content += f'<a href="{link}">{html.escape(error.title)} : \n{messages}</a>\n\n'
        self.writer.add_page_content(page_id, content)
        result.error_page_id = page_id
        logger.warning(
            "Conversion finished with page errors",
            extra={"source": result.source, "pages": len(page_errors)},
        )

    @staticmethod
    def _advance(result: ConversionResult, stage: ConversionStage) -> None:
        result.stage = stage
        logger.debug("%s: %s", result.source, stage.value)


def _load_image(image: Path | bytes) -> bytes:
    data = image if isinstance(image, bytes) else image.read_bytes()
    with Image.open(io.BytesIO(data)) as img:
        img.verify()
    return data
