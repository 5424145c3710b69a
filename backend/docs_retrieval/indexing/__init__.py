"""Indexing functionality for docs_retrieval."""

from .hierarchy import (
    build_directory_structure,
    get_child_file_paths,
    get_parent_file_path,
    has_parent,
    parse_file_hierarchy,
)
from .indexer import DefaultIndexer, build_index, iter_files
from .relationships import (
    RelationshipBuilder,
    ValidationResult,
    build_chunk_relationships,
    validate_relationships,
)
from .retry import RateLimitError, RetryPolicy, is_rate_limit_error, run_in_batches

__all__ = [
    "build_directory_structure",
    "get_child_file_paths",
    "get_parent_file_path",
    "has_parent",
    "parse_file_hierarchy",
    "DefaultIndexer",
    "build_index",
    "iter_files",
    "RelationshipBuilder",
    "ValidationResult",
    "build_chunk_relationships",
    "validate_relationships",
    "RateLimitError",
    "RetryPolicy",
    "is_rate_limit_error",
    "run_in_batches",
]
