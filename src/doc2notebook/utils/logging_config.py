"""Logging setup shared by the command line entry points."""

from __future__ import annotations

import logging
import sys

from doc2notebook.config import DOC2NOTEBOOK_LOG_LEVEL

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Attributes present on every LogRecord; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}


class ContextFormatter(logging.Formatter):
    """Formatter that appends ``extra`` context as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        if not context:
            return line
        pairs = " ".join(f"{key}={value!r}" for key, value in sorted(context.items()))
        return f"{line} [{pairs}]"


def configure_logging(level: str | int | None = None) -> None:
    """Install a single stderr handler on the ``doc2notebook`` logger."""
    root = logging.getLogger("doc2notebook")
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ContextFormatter(_FORMAT))
    root.addHandler(handler)
    level = level or DOC2NOTEBOOK_LOG_LEVEL
    if isinstance(level, str):
        level = level.upper()
    root.setLevel(level)
    root.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Return a logger for ``name``."""
    return logging.getLogger(name)
