"""Custom exceptions for doc2notebook."""


class Doc2NotebookError(Exception):
    """Base exception for doc2notebook operations."""


class RendererError(Doc2NotebookError):
    """Source document could not be read or rendered."""


class SegmentContentError(Doc2NotebookError):
    """Recoverable problem while generating the content of one page."""


class ImageNotFoundError(SegmentContentError):
    """A referenced image asset could not be located."""


class ClassificationError(Doc2NotebookError):
    """Input to a hierarchy classifier is inconsistent."""


class StoreError(Doc2NotebookError):
    """Error reported by the outline store."""


class NameCollisionError(StoreError):
    """No free sibling name was found within the attempt limit."""


class UnsupportedFormatError(Doc2NotebookError):
    """No conversion pipeline exists for the input or format name."""
