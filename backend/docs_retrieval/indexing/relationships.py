"""Cross-file chunk linking and graph validation."""

from __future__ import annotations

import dataclasses
import logging
import math
import re
from typing import Dict, List, Optional, Set

from ..core.models import Chunk, DirectoryStructure, SectionChunk, normalize_framework, strip_reserved

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"[a-z0-9]+")


@dataclasses.dataclass
class ValidationResult:
    valid: bool
    errors: List[str]


def _significant_words(text: str) -> List[str]:
    return [w for w in _WORD_RE.findall(text.lower()) if len(w) > 2]


def _topic(chunks: List[SectionChunk]) -> str:
    for chunk in chunks:
        if chunk.level == 1 and chunk.heading:
            return chunk.heading
    if chunks[0].heading:
        return chunks[0].heading
    for line in chunks[0].content.splitlines():
        if line.startswith("# "):
            return line[2:].strip()
    return ""


def _root_chunk(chunks: List[SectionChunk]) -> SectionChunk:
    for chunk in chunks:
        if chunk.parent_chunk_id is None:
            return chunk
    return chunks[0]


class RelationshipBuilder:
    """Links per-file chunk lists into one chunk forest.

    Args:
        topic_match_ratio: Share of the child topic's significant words that
            must appear in a parent chunk for it to become the anchor
    """

    def __init__(self, topic_match_ratio: float = 0.6):
        self.topic_match_ratio = topic_match_ratio

    def find_anchor(self, parent_chunks: List[SectionChunk], topic: str) -> Optional[SectionChunk]:
        """Pick the chunk of the parent file that a child document hangs from."""
        if not parent_chunks:
            return None

        words = _significant_words(topic)
        if words:
            needed = math.ceil(len(words) * self.topic_match_ratio)
            for chunk in parent_chunks:
                haystack = f"{chunk.heading} {chunk.content}".lower()
                if sum(1 for w in words if w in haystack) >= needed:
                    return chunk

        for chunk in parent_chunks:
            if chunk.level > 0:
                return chunk
        return parent_chunks[0]

    def build(self, file_chunks: Dict[str, List[SectionChunk]], structure: DirectoryStructure) -> List[Chunk]:
        cross_parents: Dict[str, str] = {}

        for file_path, chunks in file_chunks.items():
            if not chunks:
                continue
            node = structure.get(file_path)
            if node is None or node.parent_path is None:
                continue
            parent_chunks = file_chunks.get(node.parent_path)
            if not parent_chunks:
                logger.debug(f"Parent file {node.parent_path} of {file_path} has no chunks; skipped")
                continue

            anchor = self.find_anchor(parent_chunks, _topic(chunks))
            if anchor is not None:
                cross_parents[_root_chunk(chunks).chunk_id] = anchor.chunk_id

        out: List[Chunk] = []
        for file_path, chunks in file_chunks.items():
            for chunk in chunks:
                metadata = chunk.metadata
                out.append(
                    Chunk(
                        chunk_id=chunk.chunk_id,
                        parent_id=cross_parents.get(chunk.chunk_id) or chunk.parent_chunk_id,
                        framework=normalize_framework(metadata.get("framework")),
                        content=chunk.content,
                        source_url=str(metadata.get("source_url") or ""),
                        file_path=file_path,
                        metadata=strip_reserved(metadata),
                    )
                )

        logger.info(
            f"Built {len(out)} chunks from {len(file_chunks)} files "
            f"({len(cross_parents)} cross-file links)"
        )
        return out


def build_chunk_relationships(
    file_chunks: Dict[str, List[SectionChunk]],
    structure: DirectoryStructure,
    topic_match_ratio: float = 0.6,
) -> List[Chunk]:
    """Build the flat chunk graph (functional wrapper)."""
    return RelationshipBuilder(topic_match_ratio).build(file_chunks, structure)


def validate_relationships(chunks: List[Chunk]) -> ValidationResult:
    """Report every dangling parent, self-parent, duplicate id and parent cycle."""
    errors: List[str] = []
    parents: Dict[str, Optional[str]] = {}

    for chunk in chunks:
        if chunk.chunk_id in parents:
            errors.append(f"Duplicate chunk id: {chunk.chunk_id}")
            continue
        parents[chunk.chunk_id] = chunk.parent_id

    for chunk_id, parent_id in parents.items():
        if parent_id is None:
            continue
        if parent_id == chunk_id:
            errors.append(f"Chunk {chunk_id} is its own parent")
        elif parent_id not in parents:
            errors.append(f"Chunk {chunk_id} has invalid parent {parent_id}")

    reported: Set[str] = set()
    for start in parents:
        seen: List[str] = []
        current: Optional[str] = start
        while current is not None and current in parents and current not in seen:
            seen.append(current)
            current = parents[current]
        if current is None or current not in seen:
            continue
        cycle = seen[seen.index(current):]
        # Self-parents are reported above
        if len(cycle) > 1 and min(cycle) not in reported:
            reported.add(min(cycle))
            errors.append(f"Parent cycle: {' -> '.join(cycle + [current])}")

    return ValidationResult(valid=not errors, errors=errors)
