"""Tests for page content generation."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest
from PIL import Image

from doc2notebook.content import PageFrame, error_image_path, generate_page_content, resolve_image
from doc2notebook.exceptions import ImageNotFoundError
from doc2notebook.markup import find_body, parse_markup
from doc2notebook.renderers import AssetFolders
from doc2notebook.schemas import PageSegment

SOURCE = (
    "<html><head><style>p {margin: 0}</style></head>"
    '<body lang="EN-US" class="doc"><p>x</p></body></html>'
)


def _segment(markup: str) -> PageSegment:
    body = find_body(parse_markup(f"<html><body>{markup}</body></html>"))
    return PageSegment(nodes=[child.extract() for child in list(body.contents)], title="Page")


class TestPageFrame:
    """Tests for PageFrame."""

    def test_copies_head_and_body_attributes(self) -> None:
        frame = PageFrame(parse_markup(SOURCE))

        page, body = frame.new_page()

        assert page.head.style.string == "p {margin: 0}"
        assert body["lang"] == "EN-US"
        assert body.find("p") is None

    def test_pages_are_independent(self) -> None:
        frame = PageFrame(parse_markup(SOURCE))
        first, first_body = frame.new_page()
        first_body["lang"] = "changed"
        _, second_body = frame.new_page()
        assert second_body["lang"] == "EN-US"


class TestResolveImage:
    """Tests for resolve_image."""

    def test_found_in_primary_folder(self, tmp_path: Path, make_png: Callable[..., bytes]) -> None:
        primary = tmp_path / "doc_files"
        primary.mkdir()
        (primary / "image001.png").write_bytes(make_png(200, 100))
        img = parse_markup('<img src="doc_files/image001.png" width="100">').img

        resolve_image(img, AssetFolders(primary=primary))

        assert img["src"] == str(primary / "image001.png")
        assert img["height"] == "50"

    def test_falls_back_to_auxiliary_folder(self, tmp_path: Path, make_png: Callable[..., bytes]) -> None:
        auxiliary = tmp_path / "doc_aux_files"
        auxiliary.mkdir()
        (auxiliary / "image002.png").write_bytes(make_png())
        img = parse_markup('<img src="doc_files\\image002.png">').img

        resolve_image(img, AssetFolders(primary=tmp_path / "doc_files", auxiliary=auxiliary))

        assert img["src"] == str(auxiliary / "image002.png")
        assert not img.has_attr("height")

    def test_missing_image_replaced_and_reported(self, tmp_path: Path) -> None:
        img = parse_markup('<img src="doc_files/gone.png" width="400">').img

        with pytest.raises(ImageNotFoundError, match="gone.png"):
            resolve_image(img, AssetFolders(primary=tmp_path / "doc_files", scratch=tmp_path))

        assert img["src"] == str(tmp_path / "error.png")
        assert (img["width"], img["height"]) == ("180", "180")
        with Image.open(tmp_path / "error.png") as placeholder:
            assert placeholder.size == (180, 180)

    def test_error_image_created_once(self, tmp_path: Path) -> None:
        path = error_image_path(tmp_path / "scratch")
        mtime = path.stat().st_mtime_ns
        assert error_image_path(tmp_path / "scratch") == path
        assert path.stat().st_mtime_ns == mtime


class TestGeneratePageContent:
    """Tests for generate_page_content."""

    def test_moves_nodes_into_page(self, tmp_path: Path) -> None:
        segment = _segment("<p>one</p><p>two</p>")
        frame = PageFrame(parse_markup(SOURCE))

        html = generate_page_content(segment, frame, AssetFolders(scratch=tmp_path))

        page = parse_markup(html)
        assert [p.get_text() for p in page.body.find_all("p")] == ["one", "two"]
        assert page.body["class"] == ["doc"]
        assert not segment.has_errors

    def test_records_missing_images_and_continues(self, tmp_path: Path) -> None:
        segment = _segment('<p><img src="a.png"></p><p>text</p><img src="b.png">')
        frame = PageFrame(parse_markup(SOURCE))

        html = generate_page_content(segment, frame, AssetFolders(primary=tmp_path, scratch=tmp_path))

        assert len(segment.errors) == 2
        assert "a.png" in segment.errors[0]
        assert "b.png" in segment.errors[1]
        assert "text" in html
        assert html.count("error.png") == 2

    def test_unreadable_image_recorded(self, tmp_path: Path) -> None:
        (tmp_path / "bad.png").write_bytes(b"not a png")
        segment = _segment('<img src="bad.png" width="10">')
        frame = PageFrame(parse_markup(SOURCE))

        generate_page_content(segment, frame, AssetFolders(primary=tmp_path))

        assert len(segment.errors) == 1
        assert segment.errors[0].startswith("Failed to import image")
