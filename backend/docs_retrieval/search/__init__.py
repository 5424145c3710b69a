"""Hybrid search for docs_retrieval."""

from .base import SearchChannel
from .channels import DenseChannel, SparseChannel
from .fusion import reciprocal_rank_fusion, truncate_to_budget
from .searcher import HybridSearchEngine, SearchConfig, make_search_engine, preprocess_query

__all__ = [
    "SearchChannel",
    "DenseChannel",
    "SparseChannel",
    "reciprocal_rank_fusion",
    "truncate_to_budget",
    "HybridSearchEngine",
    "SearchConfig",
    "make_search_engine",
    "preprocess_query",
]
