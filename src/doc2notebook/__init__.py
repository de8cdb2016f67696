"""doc2notebook: convert documents into notebook outlines."""

from doc2notebook.batch import convert_path
from doc2notebook.exceptions import (
    ClassificationError,
    Doc2NotebookError,
    ImageNotFoundError,
    NameCollisionError,
    RendererError,
    SegmentContentError,
    StoreError,
    UnsupportedFormatError,
)
from doc2notebook.formats import FormatProfile, get_profile, get_supported_formats
from doc2notebook.orchestrator import DocumentConverter
from doc2notebook.schemas import BatchReport, ConversionResult, PageSegment
from doc2notebook.segmenter import segment_pages
from doc2notebook.store import HttpOutlineStore, InMemoryOutlineStore, OutlineStore, OutlineWriter

__all__ = [
    "BatchReport",
    "ClassificationError",
    "ConversionResult",
    "Doc2NotebookError",
    "DocumentConverter",
    "FormatProfile",
    "HttpOutlineStore",
    "ImageNotFoundError",
    "InMemoryOutlineStore",
    "NameCollisionError",
    "OutlineStore",
    "OutlineWriter",
    "PageSegment",
    "RendererError",
    "SegmentContentError",
    "StoreError",
    "UnsupportedFormatError",
    "convert_path",
    "get_profile",
    "get_supported_formats",
    "segment_pages",
]
