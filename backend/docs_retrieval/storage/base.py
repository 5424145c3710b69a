"""Abstract vector storage interface."""

from __future__ import annotations

import dataclasses
from abc import ABC, abstractmethod
from typing import List, Optional

from ..core.filters import SearchFilter
from ..core.models import ChannelHit, Chunk
from ..core.sparse import SparseEmbedding


@dataclasses.dataclass
class IndexRecord:
    """One chunk ready for the index: payload plus both vectors."""

    chunk: Chunk
    dense: List[float]
    sparse: SparseEmbedding


class VectorStore(ABC):
    """Abstract base class for hybrid (dense + sparse) index backends."""

    @abstractmethod
    def upsert(self, records: List[IndexRecord]) -> None:
        """Insert or overwrite records by chunk id."""
        pass

    @abstractmethod
    def delete_chunks(self, chunk_ids: List[str]) -> None:
        pass

    @abstractmethod
    def list_chunk_ids(self, file_path: Optional[str] = None) -> List[str]:
        pass

    @abstractmethod
    def list_sources(self) -> List[str]:
        """Distinct ``file_path`` values present in the index."""
        pass

    @abstractmethod
    def get_chunk(self, chunk_id: str) -> Optional[Chunk]:
        pass

    @abstractmethod
    def dense_search(
        self,
        vector: List[float],
        k: int,
        search_filter: Optional[SearchFilter] = None,
    ) -> List[ChannelHit]:
        pass

    @abstractmethod
    def sparse_search(
        self,
        vector: SparseEmbedding,
        k: int,
        search_filter: Optional[SearchFilter] = None,
    ) -> List[ChannelHit]:
        pass

    @abstractmethod
    def clear(self) -> None:
        """Delete every record in the collection."""
        pass

    @abstractmethod
    def count(self) -> int:
        pass

    def exists(self) -> bool:
        """Check if the collection exists and has data."""
        return self.count() > 0

    def delete_by_source(self, file_path: Optional[str] = None, prefix: Optional[str] = None) -> int:
        """Delete every chunk of one document, or of every document under ``prefix``.

        Returns:
            Number of chunks deleted
        """
        if file_path is None and prefix is None:
            raise ValueError("delete_by_source needs file_path or prefix")

        sources = [file_path] if file_path is not None else [
            s for s in self.list_sources() if s.startswith(prefix or "")
        ]
        chunk_ids: List[str] = []
        for source in sources:
            chunk_ids.extend(self.list_chunk_ids(file_path=source))
        if chunk_ids:
            self.delete_chunks(chunk_ids)
        return len(chunk_ids)
