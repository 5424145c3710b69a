"""Qdrant vector database backend."""

from __future__ import annotations

import logging
import uuid
from typing import Dict, List, Optional

from qdrant_client import QdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    MatchAny,
    MatchValue,
    Modifier,
    PointIdsList,
    PointStruct,
    SparseVector,
    SparseVectorParams,
    VectorParams,
)

from ..core.filters import SearchFilter
from ..core.models import ChannelHit, Chunk
from ..core.sparse import SparseEmbedding
from .base import IndexRecord, VectorStore

logger = logging.getLogger(__name__)

DENSE_VECTOR = "dense"
SPARSE_VECTOR = "sparse"
_POINT_NAMESPACE = uuid.UUID("6f1c3f0e-4b8e-5d0a-9a53-2f3f7c1d9e41")


def point_id(chunk_id: str) -> str:
    """Deterministic Qdrant point id for a chunk id."""
    return str(uuid.uuid5(_POINT_NAMESPACE, chunk_id))


def build_qdrant_filter(search_filter: Optional[SearchFilter]) -> Optional[Filter]:
    if search_filter is None or search_filter.is_empty:
        return None

    must = []
    if search_filter.frameworks is not None:
        must.append(FieldCondition(key="framework", match=MatchAny(any=list(search_filter.frameworks))))
    if search_filter.version is not None:
        must.append(FieldCondition(key="metadata.version", match=MatchValue(value=search_filter.version)))
    return Filter(must=must)


class QdrantVectorStore(VectorStore):
    """One collection with a named dense vector and a named sparse vector."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6333,
        collection_name: Optional[str] = None,
        api_key: Optional[str] = None,
        client: Optional[QdrantClient] = None,
    ):
        self.host = host
        self.port = port
        self.collection_name = collection_name or "docs_chunks"
        self.client = client if client is not None else QdrantClient(host=host, port=port, api_key=api_key)

    def _collection_exists(self) -> bool:
        return bool(self.client.collection_exists(collection_name=self.collection_name))

    def _get_collection_vector_dim(self) -> Optional[int]:
        if not self._collection_exists():
            return None
        info = self.client.get_collection(collection_name=self.collection_name)
        vectors = info.config.params.vectors
        if isinstance(vectors, dict) and DENSE_VECTOR in vectors:
            return vectors[DENSE_VECTOR].size
        return None

    def _ensure_collection(self, vector_dim: int) -> None:
        existing_dim = self._get_collection_vector_dim()
        if existing_dim is not None:
            if existing_dim != vector_dim:
                raise ValueError(
                    f"Collection '{self.collection_name}' exists with dimension {existing_dim}, "
                    f"but records have dimension {vector_dim}. Please delete the collection and re-index."
                )
            return

        self.client.create_collection(
            collection_name=self.collection_name,
            vectors_config={DENSE_VECTOR: VectorParams(size=vector_dim, distance=Distance.COSINE)},
            sparse_vectors_config={SPARSE_VECTOR: SparseVectorParams(modifier=Modifier.IDF)},
        )
        logger.info(f"Created collection '{self.collection_name}' (dim={vector_dim})")

    def upsert(self, records: List[IndexRecord]) -> None:
        if not records:
            logger.warning("No records to save")
            return

        vector_dim = len(records[0].dense)
        for i, record in enumerate(records):
            if len(record.dense) != vector_dim:
                raise ValueError(
                    f"Record {i} ({record.chunk.chunk_id}) has different dimension: "
                    f"{len(record.dense)} vs expected {vector_dim}"
                )
        self._ensure_collection(vector_dim=vector_dim)

        points = []
        for record in records:
            vector: Dict[str, object] = {DENSE_VECTOR: record.dense}
            if record.sparse.indices:
                vector[SPARSE_VECTOR] = SparseVector(
                    indices=record.sparse.indices, values=record.sparse.values
                )
            points.append(
                PointStruct(
                    id=point_id(record.chunk.chunk_id),
                    vector=vector,
                    payload=record.chunk.to_payload(),
                )
            )

        try:
            self.client.upsert(collection_name=self.collection_name, points=points, wait=True)
        except Exception as e:
            # Keep the status code visible to the retry policy
            if getattr(e, "status_code", None) == 429:
                raise
            raise RuntimeError(f"Failed to upsert {len(points)} points into '{self.collection_name}': {e}") from e
        logger.debug(f"Upserted {len(points)} points into '{self.collection_name}'")

    def delete_chunks(self, chunk_ids: List[str]) -> None:
        if not chunk_ids or not self._collection_exists():
            return
        self.client.delete(
            collection_name=self.collection_name,
            points_selector=PointIdsList(points=[point_id(c) for c in chunk_ids]),
            wait=True,
        )
        logger.info(f"Deleted {len(chunk_ids)} chunks from '{self.collection_name}'")

    def _scroll_payloads(self, scroll_filter: Optional[Filter] = None, fields: Optional[List[str]] = None) -> List[Dict]:
        if not self._collection_exists():
            return []

        payloads: List[Dict] = []
        offset = None
        while True:
            points, next_offset = self.client.scroll(
                collection_name=self.collection_name,
                scroll_filter=scroll_filter,
                limit=256,
                offset=offset,
                with_payload=fields if fields else True,
                with_vectors=False,
            )
            payloads.extend(p.payload or {} for p in points)
            if next_offset is None or not points:
                break
            offset = next_offset
        return payloads

    def list_chunk_ids(self, file_path: Optional[str] = None) -> List[str]:
        scroll_filter = None
        if file_path is not None:
            scroll_filter = Filter(must=[FieldCondition(key="file_path", match=MatchValue(value=file_path))])
        return [str(p["chunk_id"]) for p in self._scroll_payloads(scroll_filter, ["chunk_id"]) if "chunk_id" in p]

    def list_sources(self) -> List[str]:
        return sorted({str(p["file_path"]) for p in self._scroll_payloads(fields=["file_path"]) if "file_path" in p})

    def delete_by_source(self, file_path: Optional[str] = None, prefix: Optional[str] = None) -> int:
        if file_path is None:
            return super().delete_by_source(prefix=prefix)
        if not self._collection_exists():
            return 0

        source_filter = Filter(must=[FieldCondition(key="file_path", match=MatchValue(value=file_path))])
        deleted = self.client.count(
            collection_name=self.collection_name, count_filter=source_filter, exact=True
        ).count
        if deleted:
            self.client.delete(collection_name=self.collection_name, points_selector=source_filter, wait=True)
            logger.info(f"Deleted {deleted} chunks for source: {file_path}")
        return deleted

    def get_chunk(self, chunk_id: str) -> Optional[Chunk]:
        if not self._collection_exists():
            return None
        points = self.client.retrieve(
            collection_name=self.collection_name,
            ids=[point_id(chunk_id)],
            with_payload=True,
            with_vectors=False,
        )
        if not points or not points[0].payload:
            return None
        return Chunk.from_payload(points[0].payload)

    def _query(self, query, using: str, k: int, search_filter: Optional[SearchFilter]) -> List[ChannelHit]:
        if k <= 0 or not self._collection_exists():
            return []
        try:
            results = self.client.query_points(
                collection_name=self.collection_name,
                query=query,
                using=using,
                limit=k,
                query_filter=build_qdrant_filter(search_filter),
                with_payload=True,
                with_vectors=False,
            )
        except Exception as e:
            logger.error(f"Error searching '{using}' in collection '{self.collection_name}': {e}")
            raise
        return [ChannelHit.from_payload(p.payload or {}, p.score) for p in results.points]

    def dense_search(
        self,
        vector: List[float],
        k: int,
        search_filter: Optional[SearchFilter] = None,
    ) -> List[ChannelHit]:
        return self._query(vector, DENSE_VECTOR, k, search_filter)

    def sparse_search(
        self,
        vector: SparseEmbedding,
        k: int,
        search_filter: Optional[SearchFilter] = None,
    ) -> List[ChannelHit]:
        if not vector.indices:
            return []
        query = SparseVector(indices=vector.indices, values=vector.values)
        # Points sharing no term with the query carry no keyword signal
        return [h for h in self._query(query, SPARSE_VECTOR, k, search_filter) if h.score > 0]

    def clear(self) -> None:
        """Delete the collection; it is recreated on the next upsert."""
        if self._collection_exists():
            self.client.delete_collection(collection_name=self.collection_name)
            logger.info(f"Deleted collection '{self.collection_name}'")

    def count(self) -> int:
        if not self._collection_exists():
            return 0
        return int(self.client.count(collection_name=self.collection_name, exact=True).count)

    def exists(self) -> bool:
        """Check if collection exists and has data."""
        try:
            return self.count() > 0
        except Exception as e:
            logger.warning(f"Could not reach collection '{self.collection_name}': {e}")
            return False
