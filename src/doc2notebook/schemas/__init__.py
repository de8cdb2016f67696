"""Shared schemas for doc2notebook."""

from doc2notebook.schemas.conversion import (
    BatchReport,
    ConversionResult,
    ConversionStage,
    DocumentFailure,
    PageError,
)
from doc2notebook.schemas.outline import (
    ContentBlock,
    HierarchyNode,
    HierarchyScope,
    NodeKind,
    Notebook,
    Page,
    PageDocument,
    Section,
)
from doc2notebook.schemas.segments import PageSegment, SegmentCategory

__all__ = [
    "BatchReport",
    "ContentBlock",
    "ConversionResult",
    "ConversionStage",
    "DocumentFailure",
    "HierarchyNode",
    "HierarchyScope",
    "NodeKind",
    "Notebook",
    "Page",
    "PageDocument",
    "PageError",
    "PageSegment",
    "SegmentCategory",
    "Section",
]
