"""Markdown chunking for rendered documentation pages.

Strategy:
1. Split the document into sections at every heading
2. Keep short sections whole
3. Split long sections around code blocks, giving each code block its own
   chunk prefixed with the sentence that introduces it
4. Split long prose sections by paragraphs, carrying the heading and a small
   overlap into every chunk
"""

from __future__ import annotations

import dataclasses
import logging
import re
from typing import Any, Dict, List, Optional

from ..utils.file_utils import path_slug
from .models import SectionChunk
from .structure import CodeBlock, DocumentStructure, parse_structure, split_lines

logger = logging.getLogger(__name__)

SECTION = "section"
TEXT_CONTENT = "text_content"
CODE_BLOCK = "code_block"
SEMANTIC_UNIT = "semantic_unit"

_SENTENCE_END = ".!?"
_UNIT_SEPARATOR_RE = re.compile(r"\n[ \t]*\n")
_PIECE_BOUNDARY_RE = re.compile(r"[.!?]+\s+|\n")


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


@dataclasses.dataclass
class ChunkingConfig:
    max_section_length: int = 1000
    overlap_size: int = 50
    min_paragraph_length: int = 150
    min_context_length: int = 20
    use_ast: bool = True

    @classmethod
    def from_config(cls, cfg: Dict) -> "ChunkingConfig":
        chunking = cfg.get("chunking", {})
        return cls(
            max_section_length=int(chunking.get("max_section_length", cls.max_section_length)),
            overlap_size=int(chunking.get("overlap_size", cls.overlap_size)),
            min_paragraph_length=int(chunking.get("min_paragraph_length", cls.min_paragraph_length)),
            min_context_length=int(chunking.get("min_context_length", cls.min_context_length)),
            use_ast=_as_bool(chunking.get("use_ast", cls.use_ast)),
        )


@dataclasses.dataclass
class _Section:
    heading: str
    level: int
    start: int
    body_start: int
    end: int


def _join(lines: List[str]) -> str:
    return "".join(lines)


def _tidy(text: str) -> str:
    return text.strip("\n").rstrip()


def _compose(*parts: str) -> str:
    return "\n\n".join(p for p in (_tidy(part) for part in parts) if p.strip())


class Chunker:
    """Abstract base class for document chunking."""

    def chunk(self, text: str, metadata: Dict[str, Any]) -> List[SectionChunk]:
        """Chunk one rendered document.

        Args:
            text: Rendered Markdown without frontmatter
            metadata: Document record copied onto every chunk (file_path,
                framework, source_url, title, ...)

        Returns:
            Chunks in document order
        """
        raise NotImplementedError


class MarkdownChunker(Chunker):
    """Heading-aware chunker that never splits a fenced code block."""

    def __init__(self, config: Optional[ChunkingConfig] = None):
        self.config = config or ChunkingConfig()

    def chunk(self, text: str, metadata: Dict[str, Any]) -> List[SectionChunk]:
        if not text or not text.strip():
            return []

        lines = split_lines(text)
        structure = parse_structure(text, use_ast=self.config.use_ast)
        sections = self._sections(lines, structure)
        base_id = path_slug(str(metadata.get("file_path", "")))

        chunks: List[SectionChunk] = []
        parents: List[tuple] = []  # (level, first chunk id) of enclosing headings

        for index, section in enumerate(sections):
            contents = self._chunk_section(lines, section, structure)
            if not contents:
                continue

            parent_id = None
            if section.level > 0:
                while parents and parents[-1][0] >= section.level:
                    parents.pop()
                parent_id = parents[-1][1] if parents else None

            first_id = f"{base_id}-{index}-0"
            for sub_index, (content, chunk_type, extra) in enumerate(contents):
                chunk_id = f"{base_id}-{index}-{sub_index}"
                chunk_metadata = {
                    **metadata,
                    "heading": section.heading,
                    "level": section.level,
                    "chunk_type": chunk_type,
                    "section_index": index,
                    **extra,
                }
                chunks.append(
                    SectionChunk(
                        chunk_id=chunk_id,
                        content=content,
                        heading=section.heading,
                        level=section.level,
                        chunk_type=chunk_type,
                        section_index=index,
                        metadata=chunk_metadata,
                        parent_chunk_id=parent_id if sub_index == 0 else first_id,
                    )
                )

            if section.level > 0:
                parents.append((section.level, first_id))

        logger.debug(
            f"Document {metadata.get('file_path') or 'unknown'}: "
            f"{len(sections)} sections -> {len(chunks)} chunks"
        )
        return chunks

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _sections(self, lines: List[str], structure: DocumentStructure) -> List[_Section]:
        """Split lines into heading-owned sections, folding empty headings forward."""
        headings = structure.headings
        raw: List[_Section] = []

        first_heading = headings[0].line if headings else len(lines)
        if first_heading > 0 and _join(lines[:first_heading]).strip():
            raw.append(_Section("", 0, 0, 0, first_heading))

        for i, heading in enumerate(headings):
            end = headings[i + 1].line if i + 1 < len(headings) else len(lines)
            raw.append(_Section(heading.text, heading.level, heading.line, heading.line + 1, end))

        sections: List[_Section] = []
        pending: Optional[_Section] = None
        for section in raw:
            if pending is not None:
                section = _Section(
                    pending.heading, pending.level, pending.start, section.body_start, section.end
                )
                pending = None
            if section.level > 0 and not _join(lines[section.body_start:section.end]).strip():
                pending = section
                continue
            sections.append(section)

        if pending is not None:
            # A trailing heading without content still becomes a chunk
            sections.append(pending)
        return sections

    def _chunk_section(
        self,
        lines: List[str],
        section: _Section,
        structure: DocumentStructure,
    ) -> List[tuple]:
        """Return ``(content, chunk_type, extra_metadata)`` tuples for one section."""
        prefix = _tidy(_join(lines[section.start:section.body_start]))
        full_text = _join(lines[section.start:section.end])

        if len(_tidy(full_text)) <= self.config.max_section_length:
            return [(_tidy(full_text), SECTION, {})]

        blocks = [
            b for b in structure.code_blocks
            if section.body_start <= b.start_line < section.end
        ]
        if blocks:
            return self._split_with_code_blocks(lines, section, prefix, blocks)

        body = _join(lines[section.body_start:section.end])
        return [(c, SEMANTIC_UNIT, {}) for c in self._split_by_semantic_units(prefix, body)]

    # ------------------------------------------------------------------
    # Code-aware splitting
    # ------------------------------------------------------------------

    def _split_with_code_blocks(
        self,
        lines: List[str],
        section: _Section,
        prefix: str,
        blocks: List[CodeBlock],
    ) -> List[tuple]:
        out: List[tuple] = []
        cursor = section.body_start
        last_text = ""

        for block in sorted(blocks, key=lambda b: b.start_line):
            if block.start_line > cursor:
                text_before = _join(lines[cursor:block.start_line])
                if text_before.strip():
                    out.extend(self._text_chunks(prefix, text_before))
                    last_text = text_before

            code = _join(lines[block.start_line:min(block.end_line, section.end - 1) + 1])
            context = self.extract_context(last_text)
            out.append((_compose(prefix, context, code), CODE_BLOCK, {"has_context": bool(context)}))

            last_text = ""
            cursor = block.end_line + 1

        if cursor < section.end:
            text_after = _join(lines[cursor:section.end])
            if text_after.strip():
                out.extend(self._text_chunks(prefix, text_after))

        return out

    def _text_chunks(self, prefix: str, text: str) -> List[tuple]:
        if len(_compose(prefix, text)) <= self.config.max_section_length:
            return [(_compose(prefix, text), TEXT_CONTENT, {})]
        return [(c, TEXT_CONTENT, {}) for c in self._split_by_semantic_units(prefix, text)]

    def extract_context(self, text: str) -> str:
        """Pick the explanatory text to show above a code block.

        Prefers the last complete sentence of ``text``; otherwise takes its tail.
        Returns an empty string when there is too little signal.
        """
        stripped = text.rstrip()
        if not stripped.strip():
            return ""

        context = ""
        last = max(stripped.rfind(c) for c in _SENTENCE_END)
        if last >= 0:
            run_start = last
            while run_start > 0 and stripped[run_start - 1] in _SENTENCE_END:
                run_start -= 1
            previous = max(stripped.rfind(c, 0, run_start) for c in _SENTENCE_END)
            sentence = stripped[previous + 1:last + 1]
            if len(sentence) > self.config.min_context_length:
                context = sentence.strip()

        if not context:
            size = min(max(self.config.overlap_size * 2, 200), len(stripped))
            context = stripped[len(stripped) - size:].strip()

        if len(context) < self.config.min_context_length:
            return ""
        return context

    # ------------------------------------------------------------------
    # Semantic-unit splitting
    # ------------------------------------------------------------------

    def _split_by_semantic_units(self, prefix: str, text: str) -> List[str]:
        """Greedily pack paragraphs, lists and tables into size-bounded chunks."""
        max_len = self.config.max_section_length
        overlap_size = self.config.overlap_size
        piece_limit = max(max_len - len(prefix) - overlap_size - 4, max_len // 2)

        units: List[str] = []
        for unit in _UNIT_SEPARATOR_RE.split(text):
            unit = _tidy(unit)
            if not unit.strip():
                continue
            if len(unit) > piece_limit:
                units.extend(self._split_oversized(unit, piece_limit))
            else:
                units.append(unit)

        chunks: List[str] = []
        current: List[str] = []
        body_len = 0
        last_unit = ""

        # body_len counts each part plus its "\n\n" separator
        for unit in units:
            too_long = len(prefix) + body_len + len(unit) + 2 > max_len
            if current and too_long and body_len >= self.config.min_paragraph_length:
                chunks.append(_compose(prefix, *current))
                overlap = last_unit[-overlap_size:] if overlap_size > 0 else ""
                current = [overlap] if overlap.strip() else []
                body_len = len(overlap) + 2 if current else 0

            current.append(unit)
            body_len += len(unit) + 2
            last_unit = unit

        if current:
            chunks.append(_compose(prefix, *current))
        return chunks

    @staticmethod
    def _split_oversized(unit: str, limit: int) -> List[str]:
        """Split one long unit at sentence or line ends, hard-cutting as a last resort."""
        cuts = [m.end() for m in _PIECE_BOUNDARY_RE.finditer(unit)]
        bounds = [0] + [c for c in cuts if 0 < c < len(unit)] + [len(unit)]
        pieces = [unit[a:b] for a, b in zip(bounds, bounds[1:])]

        out: List[str] = []
        current = ""
        for piece in pieces:
            if current and len(current) + len(piece) > limit:
                out.append(current)
                current = ""
            while len(piece) > limit:
                out.append(piece[:limit])
                piece = piece[limit:]
            current += piece

        if current:
            out.append(current)
        return [p.strip() for p in out if p.strip()]


def chunk_document(
    text: str,
    metadata: Dict[str, Any],
    config: Optional[ChunkingConfig] = None,
) -> List[SectionChunk]:
    """Chunk one document (functional wrapper)."""
    chunker = MarkdownChunker(config)
    return chunker.chunk(text, metadata)
