"""Utility helpers for doc2notebook."""
