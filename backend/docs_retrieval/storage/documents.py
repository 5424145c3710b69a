"""Rendered Markdown documents on disk."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..core.frontmatter import split_frontmatter

logger = logging.getLogger(__name__)


class DocumentStore:
    """Abstract base class for whole-document lookup."""

    def get_document(self, file_path: str) -> Optional[Dict[str, Any]]:
        """Return ``{"content", "metadata"}`` for a document, or None if it does not exist.

        Raises:
            ValueError: If ``file_path`` is not a valid document path
        """
        raise NotImplementedError


class FileSystemDocumentStore(DocumentStore):

    def __init__(self, base_path: Union[str, Path]):
        self.base_path = Path(base_path).resolve()

    def resolve(self, file_path: str) -> Path:
        """Resolve a relative document path inside the base directory.

        Raises:
            ValueError: If the path is empty, absolute or escapes the base directory
        """
        if not file_path or not file_path.strip():
            raise ValueError("Empty file path")
        relative = Path(file_path.replace("\\", "/"))
        if relative.is_absolute():
            raise ValueError(f"Invalid file path: {file_path}")

        candidate = (self.base_path / relative).resolve()
        if candidate != self.base_path and self.base_path not in candidate.parents:
            raise ValueError(f"Invalid file path: {file_path}")
        return candidate

    def get_document(self, file_path: str) -> Optional[Dict[str, Any]]:
        path = self.resolve(file_path)
        if not path.is_file() and not path.suffix:
            path = path.with_suffix(".md")
        if not path.is_file():
            logger.debug(f"Document not found: {file_path}")
            return None

        text = path.read_text(encoding="utf-8", errors="replace")
        metadata, content = split_frontmatter(text)
        return {"content": content, "metadata": metadata}
