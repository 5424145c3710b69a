"""Factories for storage backends."""

from __future__ import annotations

from typing import Dict, Optional

from .base import VectorStore
from .documents import DocumentStore, FileSystemDocumentStore
from .memory import InMemoryVectorStore
from .qdrant import QdrantVectorStore


def make_vector_store(cfg: Dict, collection_name: Optional[str] = None) -> VectorStore:
    """Create the vector store named by ``vector_store.backend``.

    Raises:
        SystemExit: If the backend is unknown
    """
    vector_store_cfg = cfg.get("vector_store", {})
    backend = str(vector_store_cfg.get("backend", "qdrant")).strip().lower()

    if backend == "memory":
        return InMemoryVectorStore()
    if backend != "qdrant":
        raise SystemExit(f"vector_store.backend is invalid: {backend!r}")

    qdrant_cfg = vector_store_cfg.get("qdrant", {})
    return QdrantVectorStore(
        host=qdrant_cfg.get("host", "localhost"),
        port=int(qdrant_cfg.get("port", 6333)),
        collection_name=collection_name or qdrant_cfg.get("collection", "docs_chunks"),
        api_key=qdrant_cfg.get("api_key"),
    )


def make_document_store(cfg: Dict) -> DocumentStore:
    base_path = cfg.get("documents", {}).get("base_path", "./docs/markdown")
    return FileSystemDocumentStore(base_path)
