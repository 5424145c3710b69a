"""Retrieval core for documentation question answering."""

from .config import load_config, setup_logging, validate_config
from .indexing import DefaultIndexer, build_index
from .search import HybridSearchEngine, make_search_engine

__all__ = [
    "load_config",
    "setup_logging",
    "validate_config",
    "DefaultIndexer",
    "build_index",
    "HybridSearchEngine",
    "make_search_engine",
]

__version__ = "0.1.0"
