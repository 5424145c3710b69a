"""Hybrid (dense + sparse) documentation search."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import re
from typing import Dict, List, Optional

from ..config import validate_config
from ..core import Chunk, Embedder, RetrievalResult, make_embedder
from ..core.filters import SearchFilter
from ..core.models import ChannelHit
from ..schemas import DocumentResult, SearchOptions
from ..storage import DocumentStore, VectorStore, make_document_store, make_vector_store
from .base import SearchChannel
from .channels import DenseChannel, SparseChannel
from .fusion import DEFAULT_RRF_K, reciprocal_rank_fusion, to_result, truncate_to_budget

logger = logging.getLogger(__name__)

_PUNCTUATION_RE = re.compile(r"[^\w\s-]")
_WHITESPACE_RE = re.compile(r"\s+")


def preprocess_query(question: str) -> str:
    """Lowercase, drop punctuation other than ``-``/``_`` and collapse whitespace.

    Falls back to the stripped question when cleaning leaves nothing.
    """
    cleaned = _PUNCTUATION_RE.sub(" ", question.lower())
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip()
    return cleaned or question.strip()


@dataclasses.dataclass
class SearchConfig:
    max_results: int = 10
    max_tokens: int = 5000
    rrf_k: int = DEFAULT_RRF_K
    candidate_multiplier: int = 3
    max_candidates: int = 100
    channel_timeout: float = 10.0
    chars_per_token: int = 4

    @classmethod
    def from_config(cls, cfg: Dict) -> "SearchConfig":
        search_cfg = cfg.get("search", {})
        fields = {f.name for f in dataclasses.fields(cls)}
        return cls(**{k: v for k, v in search_cfg.items() if k in fields})

    def candidate_count(self, max_results: int) -> int:
        return min(max(max_results * self.candidate_multiplier, max_results), self.max_candidates)


class HybridSearchEngine:
    """Filter -> dual retrieve -> fuse -> truncate.

    Args:
        dense: Semantic channel
        sparse: Keyword channel
        chunk_store: Source of single chunks for ``get_chunk``
        document_store: Source of whole documents for ``get_documents``
        config: Search defaults and limits
    """

    def __init__(
        self,
        dense: SearchChannel,
        sparse: SearchChannel,
        chunk_store: VectorStore,
        document_store: Optional[DocumentStore] = None,
        config: Optional[SearchConfig] = None,
    ):
        self.dense = dense
        self.sparse = sparse
        self.chunk_store = chunk_store
        self.document_store = document_store
        self.config = config or SearchConfig()

    async def _run_channel(
        self,
        channel: SearchChannel,
        query: str,
        k: int,
        search_filter: SearchFilter,
    ) -> List[ChannelHit]:
        try:
            hits = await asyncio.wait_for(
                channel.search(query, k, search_filter), timeout=self.config.channel_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(f"{channel.name} search timed out after {self.config.channel_timeout}s")
            return []
        except Exception as e:
            logger.warning(f"{channel.name} search failed: {e}")
            return []

        # Channels may ignore the pushed-down filter
        return [h for h in hits if search_filter.matches(h)]

    async def search(
        self,
        question: str,
        max_results: Optional[int] = None,
        max_tokens: Optional[int] = None,
        framework: Optional[str] = None,
        version: Optional[str] = None,
    ) -> List[RetrievalResult]:
        max_results = self.config.max_results if max_results is None else max_results
        max_tokens = self.config.max_tokens if max_tokens is None else max_tokens

        if not question or not question.strip() or max_results <= 0 or max_tokens <= 0:
            return []

        query = preprocess_query(question)
        search_filter = SearchFilter.build(framework, version)
        k = self.config.candidate_count(max_results)

        dense_hits, sparse_hits = await asyncio.gather(
            self._run_channel(self.dense, query, k, search_filter),
            self._run_channel(self.sparse, query, k, search_filter),
        )
        logger.debug(f"Query {query!r}: {len(dense_hits)} dense, {len(sparse_hits)} sparse candidates")

        fused = reciprocal_rank_fusion([dense_hits, sparse_hits], k=self.config.rrf_k)
        results = [to_result(hit, score) for hit, score in fused]
        return truncate_to_budget(results, max_results, max_tokens, self.config.chars_per_token)

    async def search_with_options(self, question: str, options: SearchOptions) -> List[RetrievalResult]:
        return await self.search(
            question,
            max_results=options.max_results,
            max_tokens=options.max_tokens,
            framework=options.framework,
            version=options.version,
        )

    async def get_chunk(self, chunk_id: str) -> Optional[Chunk]:
        if not chunk_id:
            return None
        return await asyncio.to_thread(self.chunk_store.get_chunk, chunk_id)

    async def _get_document(self, file_path: str) -> DocumentResult:
        if self.document_store is None:
            return DocumentResult(file_path=file_path, error="No document store configured")
        try:
            document = await asyncio.to_thread(self.document_store.get_document, file_path)
        except Exception as e:
            logger.warning(f"Failed to load document {file_path}: {e}")
            return DocumentResult(file_path=file_path, error=str(e))

        if document is None:
            return DocumentResult(file_path=file_path, error=f"Document not found: {file_path}")
        return DocumentResult(
            file_path=file_path,
            content=document.get("content", ""),
            metadata=document.get("metadata") or {},
        )

    async def get_documents(self, file_paths: List[str]) -> List[DocumentResult]:
        """Fetch several documents concurrently, one result per requested path."""
        return list(await asyncio.gather(*(self._get_document(p) for p in file_paths)))


def make_search_engine(
    cfg: Dict,
    require_index: bool = True,
    embedder: Optional[Embedder] = None,
    store: Optional[VectorStore] = None,
) -> HybridSearchEngine:
    """Create a search engine from config.

    Raises:
        SystemExit: If the configuration is invalid
        ValueError: If ``require_index`` and the collection is missing or empty
    """
    validate_config(cfg)
    store = store or make_vector_store(cfg)
    if require_index and not store.exists():
        name = getattr(store, "collection_name", "in-memory")
        raise ValueError(f"Collection '{name}' not found or empty. Please run indexing first.")

    embedder = embedder or make_embedder(cfg)
    return HybridSearchEngine(
        dense=DenseChannel(embedder, store),
        sparse=SparseChannel(store),
        chunk_store=store,
        document_store=make_document_store(cfg),
        config=SearchConfig.from_config(cfg),
    )
