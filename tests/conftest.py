"""Test setup for doc2notebook."""

from __future__ import annotations

import io
import sys
from pathlib import Path
from typing import Callable

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from PIL import Image  # noqa: E402

from doc2notebook.store.adapter import OutlineWriter  # noqa: E402
from doc2notebook.store.memory import InMemoryOutlineStore  # noqa: E402


@pytest.fixture
def store() -> InMemoryOutlineStore:
    return InMemoryOutlineStore()


@pytest.fixture
def writer(store: InMemoryOutlineStore, tmp_path: Path) -> OutlineWriter:
    """Writer over an empty in-memory store rooted in a temp directory."""
    return OutlineWriter(store, output_path=tmp_path / "notebooks")


@pytest.fixture
def make_png() -> Callable[..., bytes]:
    """Build PNG bytes of the given size."""

    def _make(width: int = 40, height: int = 20, color: str = "blue") -> bytes:
        buffer = io.BytesIO()
        Image.new("RGB", (width, height), color).save(buffer, format="PNG")
        return buffer.getvalue()

    return _make
