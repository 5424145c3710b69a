"""Documentation ingestion pipeline."""

from __future__ import annotations

import datetime as _dt
import fnmatch
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from ..config import DEFAULT_EXCLUDE_PATTERNS, DEFAULT_INCLUDE_PATTERNS, cfg_fingerprint, validate_config
from ..config.manager import _expand_patterns
from ..core import (
    Chunk,
    ChunkingConfig,
    Embedder,
    MarkdownChunker,
    SectionChunk,
    SparseEncoder,
    make_embedder,
    prepare_text_for_embedding,
)
from ..core.frontmatter import build_document_metadata
from ..schemas import IndexReport, SourceDeletion
from ..storage import IndexRecord, VectorStore, make_vector_store
from ..utils import is_binary_file
from .base import Indexer
from .hierarchy import build_directory_structure
from .relationships import RelationshipBuilder, validate_relationships
from .retry import RetryPolicy, run_in_batches

logger = logging.getLogger(__name__)


def _match_any(path: str, globs: List[str]) -> bool:
    return any(fnmatch.fnmatch(path, g) for g in globs)


def iter_files(docs_dir: Path, cfg: Dict) -> Iterable[Path]:
    include_globs = cfg.get("include_globs", _expand_patterns(DEFAULT_INCLUDE_PATTERNS))
    exclude_globs = cfg.get("exclude_globs", _expand_patterns(DEFAULT_EXCLUDE_PATTERNS))
    max_kb = int(cfg.get("max_file_size_kb", 1024))

    for p in sorted(docs_dir.rglob("*")):
        if not p.is_file():
            continue
        rel = p.relative_to(docs_dir).as_posix()
        if _match_any(rel, exclude_globs):
            continue
        if not _match_any(rel, include_globs):
            continue
        try:
            if (p.stat().st_size / 1024.0) > max_kb:
                logger.debug(f"Skipping {rel}: larger than {max_kb} KB")
                continue
        except OSError:
            continue
        if is_binary_file(p):
            continue
        yield p


class DefaultIndexer(Indexer):
    """Chunk -> link -> validate -> embed -> upsert -> delete orphans.

    Every collaborator can be injected; missing ones are built from ``cfg``.
    """

    def __init__(
        self,
        cfg: Dict,
        embedder: Optional[Embedder] = None,
        store: Optional[VectorStore] = None,
        sparse_encoder: Optional[SparseEncoder] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.cfg = cfg
        self.embedder = embedder or make_embedder(cfg)
        self.store = store or make_vector_store(cfg)
        self.sparse_encoder = sparse_encoder or SparseEncoder()
        self.retry_policy = retry_policy or RetryPolicy.from_config(cfg)
        self.chunker = MarkdownChunker(ChunkingConfig.from_config(cfg))
        self.relationships = RelationshipBuilder(
            float(cfg.get("relationships", {}).get("topic_match_ratio", 0.6))
        )

    def load_documents(self, docs_dir: Path, report: IndexReport) -> Dict[str, List[SectionChunk]]:
        base_url = str(self.cfg.get("documents", {}).get("base_url", ""))
        file_chunks: Dict[str, List[SectionChunk]] = {}

        for fp in iter_files(docs_dir, self.cfg):
            rel = fp.relative_to(docs_dir).as_posix()
            try:
                text = fp.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                logger.error(f"Could not read {rel}: {e}")
                report.failed_files.append(rel)
                continue

            metadata, body = build_document_metadata(rel, text, base_url=base_url)
            file_chunks[rel] = self.chunker.chunk(body, metadata)

        report.files = len(file_chunks)
        return file_chunks

    def build_chunks(self, file_chunks: Dict[str, List[SectionChunk]]) -> List[Chunk]:
        """Link per-file chunks into one graph.

        Raises:
            ValueError: If the graph is invalid; nothing is written in that case
        """
        structure = build_directory_structure(file_chunks.keys())
        chunks = self.relationships.build(file_chunks, structure)

        result = validate_relationships(chunks)
        if not result.valid:
            for error in result.errors:
                logger.error(f"Invalid chunk graph: {error}")
            raise ValueError(f"Chunk relationships are invalid ({len(result.errors)} errors): {result.errors[0]}")
        return chunks

    def embed_chunks(self, chunks: List[Chunk], report: IndexReport) -> List[IndexRecord]:
        embedding_cfg = self.cfg.get("embedding", {})
        vectors: Dict[int, List[float]] = {}

        def embed_batch(batch: List[Tuple[int, str]]) -> None:
            embs = self.embedder.embed([text for _, text in batch])
            for (i, _), v in zip(batch, embs):
                vectors[i] = v

        items = [
            (i, prepare_text_for_embedding(c.content, c.metadata, c.framework))
            for i, c in enumerate(chunks)
        ]
        batches = run_in_batches(
            items,
            int(embedding_cfg.get("batch_size", 50)),
            embed_batch,
            policy=self.retry_policy,
            delay=float(embedding_cfg.get("rate_limit_delay", 0.0)),
            label="embed",
        )
        report.failed_batches.extend(f"{batches.label} {e}" for e in batches.errors)

        embedded = [(i, chunk) for i, chunk in enumerate(chunks) if i in vectors]
        sparse = self.sparse_encoder.encode_documents(
            [f"{chunk.metadata.get('heading', '')}\n{chunk.content}" for _, chunk in embedded]
        )
        return [
            IndexRecord(chunk=chunk, dense=vectors[i], sparse=s)
            for (i, chunk), s in zip(embedded, sparse)
        ]

    def delete_orphans(self, live_ids: set, skip_sources: List[str]) -> int:
        deleted = 0
        for source in self.store.list_sources():
            if source in skip_sources:
                continue
            orphans = [c for c in self.store.list_chunk_ids(file_path=source) if c not in live_ids]
            if orphans:
                self.store.delete_chunks(orphans)
                deleted += len(orphans)
                logger.info(f"Deleted {len(orphans)} orphaned chunks of {source}")
        return deleted

    def index(self, docs_dir: Path) -> IndexReport:
        docs_dir = Path(docs_dir)
        if not docs_dir.is_dir():
            raise ValueError(f"Docs directory not found: {docs_dir}")

        report = IndexReport(
            cfg_fingerprint=cfg_fingerprint(self.cfg),
            created_at=_dt.datetime.now(_dt.timezone.utc).isoformat(),
        )

        file_chunks = self.load_documents(docs_dir, report)
        chunks = self.build_chunks(file_chunks)
        report.chunks = len(chunks)

        records = self.embed_chunks(chunks, report)

        vector_store_cfg = self.cfg.get("vector_store", {})
        upserts = run_in_batches(
            records,
            int(vector_store_cfg.get("batch_size", 100)),
            self.store.upsert,
            policy=self.retry_policy,
            delay=float(vector_store_cfg.get("rate_limit_delay", 0.0)),
            label="upsert",
        )
        report.upserted = upserts.succeeded
        report.failed_batches.extend(f"{upserts.label} {e}" for e in upserts.errors)

        report.deleted = self.delete_orphans({c.chunk_id for c in chunks}, report.failed_files)

        logger.info(
            f"Indexed {report.files} files: {report.chunks} chunks, {report.upserted} upserted, "
            f"{report.deleted} deleted, {len(report.failed_batches)} failed batches"
        )
        return report

    def delete_sources(self, file_paths: List[str]) -> List[SourceDeletion]:
        results: List[SourceDeletion] = []
        for file_path in file_paths:
            try:
                deleted = self.store.delete_by_source(file_path=file_path)
                results.append(SourceDeletion(file_path=file_path, deleted=deleted > 0))
            except Exception as e:
                logger.error(f"Failed to delete source {file_path}: {e}")
                results.append(SourceDeletion(file_path=file_path, deleted=False, error=str(e)))
        return results


def build_index(
    docs_dir: Path,
    cfg: Dict,
    embedder: Optional[Embedder] = None,
    store: Optional[VectorStore] = None,
) -> IndexReport:
    """Build or refresh the documentation index (wrapper)."""
    validate_config(cfg)
    indexer = DefaultIndexer(cfg, embedder=embedder, store=store)
    return indexer.index(docs_dir)
