"""Tests for the OutlineWriter adapter."""

from __future__ import annotations

import base64
import io
from pathlib import Path
from typing import Callable
from unittest.mock import MagicMock

import pytest
from PIL import Image

from doc2notebook.exceptions import NameCollisionError, StoreError
from doc2notebook.schemas import HierarchyScope
from doc2notebook.store.adapter import OutlineWriter, build_toc_lines, clamp_page_level
from doc2notebook.store.memory import InMemoryOutlineStore


@pytest.fixture
def section(writer: OutlineWriter) -> str:
    notebook_id = writer.create_notebook("Generic")
    return writer.create_section("Doc", notebook_id)


class TestCreation:
    """Tests for notebook, section and page creation."""

    def test_notebook_opened_under_output_path(
        self, writer: OutlineWriter, store: InMemoryOutlineStore, tmp_path: Path
    ) -> None:
        notebook_id = writer.create_notebook("Generic")
        hierarchy = store.get_hierarchy(notebook_id, HierarchyScope.SECTIONS)
        assert hierarchy.path == str(tmp_path / "notebooks" / "Generic")
        assert writer.create_notebook("Generic") == notebook_id

    def test_section_name_collisions(self, writer: OutlineWriter, store: InMemoryOutlineStore) -> None:
        notebook_id = writer.create_notebook("Generic")

        ids = [writer.create_section("Notes", notebook_id) for _ in range(3)]

        hierarchy = store.get_hierarchy(notebook_id, HierarchyScope.SECTIONS)
        assert len(set(ids)) == 3
        assert [s.name for s in hierarchy.sections()] == ["Notes", "Notes (2)", "Notes (3)"]

    def test_same_name_in_other_notebook_is_free(self, writer: OutlineWriter, store: InMemoryOutlineStore) -> None:
        first = writer.create_notebook("A")
        second = writer.create_notebook("B")
        writer.create_section("Notes", first)
        section_id = writer.create_section("Notes", second)
        assert store.get_hierarchy(section_id, HierarchyScope.CHILDREN).name == "Notes"

    def test_collision_search_is_bounded(self, store: InMemoryOutlineStore, tmp_path: Path) -> None:
        writer = OutlineWriter(store, output_path=tmp_path, max_name_attempts=3)
        notebook_id = writer.create_notebook("Generic")
        for _ in range(3):
            writer.create_section("Notes", notebook_id)

        with pytest.raises(NameCollisionError):
            writer.create_section("Notes", notebook_id)

    def test_create_page_sets_title(self, writer: OutlineWriter, store: InMemoryOutlineStore, section: str) -> None:
        page_id = writer.create_page("Intro", section)
        assert store.get_page_content(page_id).title == "Intro"
        assert writer.find_page("Intro", section) == page_id
        assert writer.find_page("Missing", section) is None


class TestPageLevels:
    """Tests for subpage nesting."""

    def test_promote_twice_then_demote(self, writer: OutlineWriter, section: str) -> None:
        page_id = writer.create_page("P", section)

        levels = [
            writer.set_sub_page(section, page_id),
            writer.set_sub_page(section, page_id),
            writer.set_sub_page(section, page_id, promote=False),
        ]

        assert levels == [2, 3, 2]
        assert writer.get_page_level(page_id) == 2

    def test_level_is_clamped(self, writer: OutlineWriter, section: str) -> None:
        page_id = writer.create_page("P", section)
        for _ in range(5):
            writer.set_sub_page(section, page_id)
        assert writer.get_page_level(page_id) == 3
        for _ in range(5):
            writer.set_sub_page(section, page_id, promote=False)
        assert writer.get_page_level(page_id) == 1

    def test_reads_level_from_store(self, writer: OutlineWriter, store: InMemoryOutlineStore, section: str) -> None:
        page_id = writer.create_page("P", section)
        document = store.get_page_content(page_id)
        store.update_page_content(document.model_copy(update={"page_level": 3}))

        assert writer.set_sub_page(section, page_id, promote=False) == 2

    def test_set_page_level_clamps(self, writer: OutlineWriter, section: str) -> None:
        page_id = writer.create_page("P", section)
        assert writer.set_page_level(page_id, 7) == 3
        assert writer.set_page_level(page_id, 0) == 1

    def test_clamp_page_level(self) -> None:
        assert [clamp_page_level(n) for n in (-1, 1, 2, 3, 4)] == [1, 1, 2, 3, 3]

    def test_unknown_page_raises_store_error(self, writer: OutlineWriter, section: str) -> None:
        with pytest.raises(StoreError):
            writer.set_sub_page(section, "pg-404")


class TestTableOfContents:
    """Tests for table-of-contents synthesis."""

    def test_indentation_and_position(
        self, writer: OutlineWriter, store: InMemoryOutlineStore, section: str
    ) -> None:
        first = writer.create_page("One", section)
        second = writer.create_page("Two", section)
        third = writer.create_page("Three", section)
        writer.set_sub_page(section, second)

        toc_id = writer.create_table_of_contents(section)

        pages = store.pages_in(section)
        assert [p.id for p in pages] == [toc_id, first, second, third]
        text = store.get_page_content(toc_id).blocks[0].data
        lines = [line for line in text.split("\n\n") if line]
        assert [len(line) - len(line.lstrip("\t")) for line in lines] == [0, 1, 0]
        assert toc_id not in text
        assert f'<a href="notebook://{second}">Two</a>' in lines[1]
        assert store.get_page_content(toc_id).title == "Table of Contents"

    def test_build_toc_lines_escapes_names(self) -> None:
        store = InMemoryOutlineStore()
        notebook_id = store.open_notebook("/nb")
        section_id = store.open_section("S", notebook_id)
        page_id = store.create_page(section_id)
        document = store.get_page_content(page_id)
        store.update_page_content(document.model_copy(update={"title": "A & B"}))
        pages = store.get_hierarchy(section_id, HierarchyScope.CHILDREN).pages()

        lines = build_toc_lines(pages, {page_id: "link"})

        assert lines == ['<a href="link">A &amp; B</a>']


class TestPageAttributes:
    """Tests for collapse, date/time and author toggles."""

    def test_toggles(self, writer: OutlineWriter, store: InMemoryOutlineStore, section: str) -> None:
        page_id = writer.create_page("P", section)

        writer.set_collapsed(page_id)
        writer.set_show_date(page_id, False)
        writer.set_show_time(page_id, False)

        document = store.get_page_content(page_id)
        assert document.is_collapsed
        assert not document.show_date
        assert not document.show_time
        assert store.pages_in(section)[0].collapsed

    def test_remove_author(self, writer: OutlineWriter, store: InMemoryOutlineStore, section: str) -> None:
        page_id = writer.create_page("P", section)
        writer.add_page_content(page_id, "text")
        document = store.get_page_content(page_id)
        blocks = [b.model_copy(update={"author": "Ann"}) for b in document.blocks]
        store.update_page_content(document.model_copy(update={"author": "Ann", "blocks": blocks}))

        writer.remove_author(page_id)

        document = store.get_page_content(page_id)
        assert document.author == ""
        assert document.blocks[0].author == ""


class TestContent:
    """Tests for content blocks and page geometry."""

    def test_empty_page_geometry(self, writer: OutlineWriter, section: str) -> None:
        page_id = writer.create_page("P", section)
        assert writer.get_page_height(page_id) == 80
        assert writer.get_page_width(page_id) == 520

    def test_append_places_block_below(self, writer: OutlineWriter, store: InMemoryOutlineStore, section: str) -> None:
        page_id = writer.create_page("P", section)
        writer.add_page_content(page_id, "first")
        writer.append_page_content(page_id, "second")
        writer.append_html_block(page_id, "<p>third</p>")

        blocks = store.get_page_content(page_id).blocks
        assert [b.kind for b in blocks] == ["text", "text", "html"]
        assert blocks[1].y == blocks[0].y + blocks[0].height + 20
        assert blocks[2].y > blocks[1].y

    def test_wide_image_scaled_down(
        self, writer: OutlineWriter, store: InMemoryOutlineStore, section: str, make_png: Callable[..., bytes]
    ) -> None:
        page_id = writer.create_page("P", section)
        writer.add_image(page_id, make_png(1920, 1080))

        block = store.get_page_content(page_id).blocks[0]
        assert (block.width, block.height) == (960, 540)
        with Image.open(io.BytesIO(base64.b64decode(block.data))) as img:
            assert img.size == (960, 540)
        assert writer.get_page_width(page_id) == 960

    def test_small_image_unchanged(
        self, writer: OutlineWriter, store: InMemoryOutlineStore, section: str, make_png: Callable[..., bytes], tmp_path: Path
    ) -> None:
        path = tmp_path / "small.png"
        path.write_bytes(make_png(100, 50))
        page_id = writer.create_page("P", section)
        writer.add_page_content(page_id, "caption")
        writer.append_image(page_id, path)

        block = store.get_page_content(page_id).blocks[1]
        assert (block.width, block.height) == (100, 50)
        assert block.y == 80 + 14 + 20

    def test_invalid_image_raises_store_error(self, writer: OutlineWriter, section: str) -> None:
        page_id = writer.create_page("P", section)
        with pytest.raises(StoreError, match="AddImageToPage"):
            writer.add_image(page_id, b"not an image")


class TestErrorWrapping:
    """Store failures surface as StoreError with the cause attached."""

    def test_wraps_backend_errors(self, tmp_path: Path) -> None:
        backend = MagicMock()
        backend.open_notebook.side_effect = RuntimeError("disk full")
        writer = OutlineWriter(backend, output_path=tmp_path)

        with pytest.raises(StoreError, match="CreateNotebook: disk full") as excinfo:
            writer.create_notebook("Generic")

        assert isinstance(excinfo.value.__cause__, RuntimeError)

    def test_store_error_passes_through(self, tmp_path: Path) -> None:
        backend = MagicMock()
        original = StoreError("remote said no")
        backend.create_page.side_effect = original
        writer = OutlineWriter(backend, output_path=tmp_path)

        with pytest.raises(StoreError) as excinfo:
            writer.create_page("P", "sec-1")

        assert excinfo.value is original
