"""Utility functions for docs_retrieval."""

from .file_utils import (
    is_binary_file,
    path_slug,
    to_posix,
)

__all__ = [
    "is_binary_file",
    "path_slug",
    "to_posix",
]
