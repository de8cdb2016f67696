"""Local configuration for doc2notebook."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


DEFAULT_OUTPUT_DIR = "notebooks"
DEFAULT_STORE_TIMEOUT_S = 10.0
DEFAULT_STORE_MAX_RETRIES = 2
DEFAULT_STORE_BACKOFF_S = 0.5
DEFAULT_MAX_NAME_ATTEMPTS = 10_000
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_USER_AGENT = "doc2notebook/0.1"

DEFAULT_PAGE_TITLE = "Untitled"
ERROR_PAGE_TITLE = "Error Page"
TOC_PAGE_TITLE = "Table of Contents"

MIN_PAGE_LEVEL = 1
MAX_PAGE_LEVEL = 3

# Layout of content blocks on a page, in pixels.
DEFAULT_BLOCK_Y = 80
DEFAULT_BLOCK_WIDTH = 520
DEFAULT_PAGE_HEIGHT = 80.0
DEFAULT_PAGE_WIDTH = 520.0
CONTENT_BLOCK_MARGIN = 20
MAX_IMAGE_WIDTH = 960
ERROR_IMAGE_SIZE = 180
ERROR_IMAGE_NAME = "error.png"

# Root directory under which notebooks are opened.
DOC2NOTEBOOK_OUTPUT_PATH = Path(os.getenv("DOC2NOTEBOOK_OUTPUT_PATH", DEFAULT_OUTPUT_DIR)).expanduser().resolve()
DOC2NOTEBOOK_STORE_URL = os.getenv("DOC2NOTEBOOK_STORE_URL") or None
DOC2NOTEBOOK_STORE_TIMEOUT_S = float(os.getenv("DOC2NOTEBOOK_STORE_TIMEOUT_S", str(DEFAULT_STORE_TIMEOUT_S)))
DOC2NOTEBOOK_STORE_MAX_RETRIES = int(os.getenv("DOC2NOTEBOOK_STORE_MAX_RETRIES", str(DEFAULT_STORE_MAX_RETRIES)))
DOC2NOTEBOOK_STORE_BACKOFF_S = float(os.getenv("DOC2NOTEBOOK_STORE_BACKOFF_S", str(DEFAULT_STORE_BACKOFF_S)))
DOC2NOTEBOOK_MAX_NAME_ATTEMPTS = int(os.getenv("DOC2NOTEBOOK_MAX_NAME_ATTEMPTS", str(DEFAULT_MAX_NAME_ATTEMPTS)))
DOC2NOTEBOOK_LOG_LEVEL = os.getenv("DOC2NOTEBOOK_LOG_LEVEL", DEFAULT_LOG_LEVEL)
DOC2NOTEBOOK_USER_AGENT = os.getenv("DOC2NOTEBOOK_USER_AGENT", DEFAULT_USER_AGENT)
# Receives generated files such as the missing-image placeholder; never an input folder.
DOC2NOTEBOOK_SCRATCH_DIR = Path(
    os.getenv("DOC2NOTEBOOK_SCRATCH_DIR", str(Path(tempfile.gettempdir()) / "doc2notebook"))
).expanduser().resolve()
