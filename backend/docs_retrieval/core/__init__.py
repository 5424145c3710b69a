"""Core functionality for docs_retrieval."""

from .models import (
    FRAMEWORKS,
    Chunk,
    DirectoryStructure,
    FileHierarchy,
    RetrievalResult,
    SectionChunk,
    normalize_framework,
)
from .chunking import Chunker, ChunkingConfig, MarkdownChunker, chunk_document
from .embeddings import Embedder, SentenceTransformersEmbedder, make_embedder, prepare_text_for_embedding
from .sparse import SparseEmbedding, SparseEncoder
from .tokens import count_tokens, estimate_tokens, truncate_to_token_limit

__all__ = [
    "FRAMEWORKS",
    "Chunk",
    "DirectoryStructure",
    "FileHierarchy",
    "RetrievalResult",
    "SectionChunk",
    "normalize_framework",
    "Chunker",
    "ChunkingConfig",
    "MarkdownChunker",
    "chunk_document",
    "Embedder",
    "SentenceTransformersEmbedder",
    "make_embedder",
    "prepare_text_for_embedding",
    "SparseEmbedding",
    "SparseEncoder",
    "count_tokens",
    "estimate_tokens",
    "truncate_to_token_limit",
]
