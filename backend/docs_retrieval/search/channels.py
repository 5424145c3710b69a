"""Channels backed by a vector store."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from ..core.embeddings import Embedder
from ..core.filters import SearchFilter
from ..core.models import ChannelHit
from ..core.sparse import SparseEncoder
from ..storage.base import VectorStore
from .base import SearchChannel

logger = logging.getLogger(__name__)


class DenseChannel(SearchChannel):
    name = "dense"

    def __init__(self, embedder: Embedder, store: VectorStore):
        self.embedder = embedder
        self.store = store

    def _search(self, query: str, k: int, search_filter: Optional[SearchFilter]) -> List[ChannelHit]:
        vector = self.embedder.embed_one(query)
        return self.store.dense_search(vector, k, search_filter)

    async def search(
        self,
        query: str,
        k: int,
        search_filter: Optional[SearchFilter] = None,
    ) -> List[ChannelHit]:
        return await asyncio.to_thread(self._search, query, k, search_filter)


class SparseChannel(SearchChannel):
    name = "sparse"

    def __init__(self, store: VectorStore, encoder: Optional[SparseEncoder] = None):
        self.store = store
        self.encoder = encoder or SparseEncoder()

    def _search(self, query: str, k: int, search_filter: Optional[SearchFilter]) -> List[ChannelHit]:
        vector = self.encoder.encode_query(query)
        if not vector.indices:
            logger.debug(f"Sparse query has no terms: {query!r}")
            return []
        return self.store.sparse_search(vector, k, search_filter)

    async def search(
        self,
        query: str,
        k: int,
        search_filter: Optional[SearchFilter] = None,
    ) -> List[ChannelHit]:
        return await asyncio.to_thread(self._search, query, k, search_filter)
