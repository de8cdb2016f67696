"""Outline store protocol, backends and the high-level writer."""

from doc2notebook.store.adapter import OutlineWriter
from doc2notebook.store.base import OutlineStore
from doc2notebook.store.http import HttpOutlineStore
from doc2notebook.store.memory import InMemoryOutlineStore

__all__ = [
    "HttpOutlineStore",
    "InMemoryOutlineStore",
    "OutlineStore",
    "OutlineWriter",
]
