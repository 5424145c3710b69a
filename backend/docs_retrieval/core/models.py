"""Data models for docs_retrieval."""

from __future__ import annotations

import dataclasses
from typing import Any, Dict, List, Optional

FRAMEWORKS = ("flow", "hilla", "common")

# Top-level chunk fields; these never appear inside ``Chunk.metadata``.
RESERVED_KEYS = frozenset(
    {"chunk_id", "parent_id", "framework", "content", "source_url", "file_path"}
)


def normalize_framework(value: Any) -> str:
    """Map any framework tag onto the closed set, defaulting to ``common``."""
    text = str(value or "").strip().lower()
    return text if text in FRAMEWORKS else "common"


def strip_reserved(metadata: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Drop keys that duplicate top-level chunk fields."""
    return {k: v for k, v in (metadata or {}).items() if k not in RESERVED_KEYS}


@dataclasses.dataclass
class SectionChunk:
    """A chunk as produced by the chunker, before cross-file linking.

    ``metadata`` holds the document record passed to the chunker (file_path,
    framework, source_url, title, ...) plus the per-chunk tags.
    """

    chunk_id: str
    content: str
    heading: str
    level: int
    chunk_type: str
    section_index: int
    metadata: Dict[str, Any] = dataclasses.field(default_factory=dict)
    parent_chunk_id: Optional[str] = None

    @property
    def file_path(self) -> str:
        return str(self.metadata.get("file_path", ""))


@dataclasses.dataclass
class Chunk:
    """A retrievable unit of documentation, as persisted in the index."""

    chunk_id: str
    framework: str
    content: str
    source_url: str
    file_path: str
    parent_id: Optional[str] = None
    metadata: Dict[str, Any] = dataclasses.field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        """Serialize to the persisted wire shape."""
        return {
            "chunk_id": self.chunk_id,
            "parent_id": self.parent_id,
            "framework": normalize_framework(self.framework),
            "content": self.content,
            "source_url": self.source_url,
            "file_path": self.file_path,
            "metadata": strip_reserved(self.metadata),
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Chunk":
        return cls(
            chunk_id=str(payload["chunk_id"]),
            parent_id=payload.get("parent_id") or None,
            framework=normalize_framework(payload.get("framework")),
            content=payload.get("content", ""),
            source_url=payload.get("source_url", ""),
            file_path=payload.get("file_path", ""),
            metadata=strip_reserved(payload.get("metadata")),
        )


@dataclasses.dataclass
class RetrievalResult(Chunk):
    """A chunk returned by a search, with its fused relevance score."""

    relevance_score: float = 0.0


@dataclasses.dataclass
class FileHierarchy:
    """Position of one document in the docs directory tree."""

    file_path: str
    parent_path: Optional[str]
    children: List[str]
    level: int


DirectoryStructure = Dict[str, FileHierarchy]


@dataclasses.dataclass
class ChannelHit:
    """One ranked hit from a retrieval channel.

    ``metadata`` is the persisted payload without ``content``.
    """

    id: str
    content: str
    metadata: Dict[str, Any]
    score: float

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], score: float) -> "ChannelHit":
        return cls(
            id=str(payload.get("chunk_id", "")),
            content=payload.get("content", ""),
            metadata={k: v for k, v in payload.items() if k != "content"},
            score=float(score),
        )

    def to_chunk(self) -> Chunk:
        return Chunk.from_payload({**self.metadata, "content": self.content, "chunk_id": self.id})
