"""Vector and document storage backends."""

from .base import IndexRecord, VectorStore
from .documents import DocumentStore, FileSystemDocumentStore
from .factory import make_document_store, make_vector_store
from .memory import InMemoryVectorStore
from .qdrant import QdrantVectorStore, build_qdrant_filter, point_id

__all__ = [
    "IndexRecord",
    "VectorStore",
    "DocumentStore",
    "FileSystemDocumentStore",
    "InMemoryVectorStore",
    "QdrantVectorStore",
    "build_qdrant_filter",
    "point_id",
    "make_document_store",
    "make_vector_store",
]
