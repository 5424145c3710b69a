"""Indexer Interface."""

from __future__ import annotations

from pathlib import Path
from typing import List

from ..schemas import IndexReport, SourceDeletion


class Indexer:
    """Abstract base class for documentation indexing."""

    def index(self, docs_dir: Path) -> IndexReport:
        """Chunk, link, embed and upsert every document under ``docs_dir``."""
        raise NotImplementedError

    def delete_sources(self, file_paths: List[str]) -> List[SourceDeletion]:
        raise NotImplementedError
