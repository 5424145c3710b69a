"""In-process vector store for local runs and tests."""

from __future__ import annotations

import logging
import math
import threading
from typing import Dict, List, Optional, Tuple

from ..core.filters import SearchFilter
from ..core.models import ChannelHit, Chunk
from ..core.sparse import SparseEmbedding
from .base import IndexRecord, VectorStore

logger = logging.getLogger(__name__)


def _cosine(a: List[float], b: List[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class InMemoryVectorStore(VectorStore):
    """Dict-backed store: cosine for dense, IDF-weighted dot product for sparse."""

    def __init__(self) -> None:
        self._records: Dict[str, IndexRecord] = {}
        self._lock = threading.Lock()

    def upsert(self, records: List[IndexRecord]) -> None:
        with self._lock:
            for record in records:
                self._records[record.chunk.chunk_id] = record

    def delete_chunks(self, chunk_ids: List[str]) -> None:
        with self._lock:
            for chunk_id in chunk_ids:
                self._records.pop(chunk_id, None)

    def _snapshot(self) -> List[IndexRecord]:
        with self._lock:
            return list(self._records.values())

    def list_chunk_ids(self, file_path: Optional[str] = None) -> List[str]:
        return [
            r.chunk.chunk_id for r in self._snapshot()
            if file_path is None or r.chunk.file_path == file_path
        ]

    def list_sources(self) -> List[str]:
        return sorted({r.chunk.file_path for r in self._snapshot()})

    def get_chunk(self, chunk_id: str) -> Optional[Chunk]:
        with self._lock:
            record = self._records.get(chunk_id)
        return Chunk.from_payload(record.chunk.to_payload()) if record else None

    def _rank(self, scored: List[Tuple[float, IndexRecord]], k: int) -> List[ChannelHit]:
        # sorted() is stable, equal scores keep insertion order
        scored = sorted(scored, key=lambda x: x[0], reverse=True)[:k]
        return [ChannelHit.from_payload(r.chunk.to_payload(), score) for score, r in scored]

    def _candidates(self, search_filter: Optional[SearchFilter]) -> List[IndexRecord]:
        records = self._snapshot()
        if search_filter is None or search_filter.is_empty:
            return records
        return [r for r in records if search_filter.matches_payload(r.chunk.to_payload())]

    def dense_search(
        self,
        vector: List[float],
        k: int,
        search_filter: Optional[SearchFilter] = None,
    ) -> List[ChannelHit]:
        if k <= 0:
            return []
        scored = [(_cosine(vector, r.dense), r) for r in self._candidates(search_filter)]
        return self._rank(scored, k)

    def sparse_search(
        self,
        vector: SparseEmbedding,
        k: int,
        search_filter: Optional[SearchFilter] = None,
    ) -> List[ChannelHit]:
        if k <= 0 or not vector.indices:
            return []

        records = self._snapshot()
        doc_freq: Dict[int, int] = {}
        for r in records:
            for idx in r.sparse.indices:
                doc_freq[idx] = doc_freq.get(idx, 0) + 1

        n = len(records)
        query = vector.as_dict()
        scored: List[Tuple[float, IndexRecord]] = []
        for r in self._candidates(search_filter):
            score = 0.0
            for idx, value in zip(r.sparse.indices, r.sparse.values):
                if idx in query:
                    df = doc_freq.get(idx, 0)
                    idf = math.log(1.0 + (n - df + 0.5) / (df + 0.5))
                    score += query[idx] * value * idf
            if score > 0:
                scored.append((score, r))
        return self._rank(scored, k)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def count(self) -> int:
        with self._lock:
            return len(self._records)
