"""Markdown structure detection: headings and non-splittable code blocks.

Structure is read from the tree-sitter Markdown grammar when available, with a
line scanner as fallback. Both report positions as 0-based line indexes into
``split_lines(text)``.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from typing import List, Optional, Tuple

import tree_sitter_language_pack

logger = logging.getLogger(__name__)

_HEADING_RE = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?[ \t]*$")
_CLOSING_HASHES_RE = re.compile(r"(?:^|[ \t]+)#+$")
_FENCE_OPEN_RE = re.compile(r"^[ \t]*(`{3,}|~{3,})")
_FENCE_CLOSE_RE = re.compile(r"^[ \t]*(`{3,}|~{3,})[ \t]*$")


@dataclasses.dataclass(frozen=True)
class Heading:
    line: int
    level: int
    text: str


@dataclasses.dataclass(frozen=True)
class CodeBlock:
    """A fenced block spanning ``start_line`` to ``end_line`` inclusive."""

    start_line: int
    end_line: int


@dataclasses.dataclass
class DocumentStructure:
    headings: List[Heading]
    code_blocks: List[CodeBlock]

    def in_code_block(self, line: int) -> bool:
        return any(b.start_line <= line <= b.end_line for b in self.code_blocks)


def split_lines(text: str) -> List[str]:
    """Split on ``\\n`` only, keeping line endings so that joins are lossless."""
    return [line for line in re.split(r"(?<=\n)", text) if line]


def parse_heading(line: str) -> Optional[Tuple[int, str]]:
    """Parse an ATX heading line into ``(level, text)``."""
    match = _HEADING_RE.match(line.rstrip("\r\n"))
    if not match:
        return None
    text = match.group(2) or ""
    text = _CLOSING_HASHES_RE.sub("", text).strip()
    return len(match.group(1)), text


def scan_structure(lines: List[str]) -> DocumentStructure:
    """Line scanner: fences open on ``` or ~~~ and close on a matching fence."""
    headings: List[Heading] = []
    blocks: List[CodeBlock] = []
    fence: Optional[str] = None
    start = 0

    for i, raw in enumerate(lines):
        line = raw.rstrip("\r\n")
        if fence is not None:
            match = _FENCE_CLOSE_RE.match(line)
            if match and match.group(1)[0] == fence[0] and len(match.group(1)) >= len(fence):
                blocks.append(CodeBlock(start, i))
                fence = None
            continue

        match = _FENCE_OPEN_RE.match(line)
        if match:
            fence = match.group(1)
            start = i
            continue

        parsed = parse_heading(line)
        if parsed:
            headings.append(Heading(i, parsed[0], parsed[1]))

    if fence is not None:
        # Unclosed fence runs to the end of the document
        blocks.append(CodeBlock(start, len(lines) - 1))

    return DocumentStructure(headings=headings, code_blocks=blocks)


def parse_ast_structure(text: str, lines: List[str]) -> DocumentStructure:
    """Read headings and fenced code blocks from the tree-sitter Markdown tree."""
    parser = tree_sitter_language_pack.get_parser("markdown")
    tree = parser.parse(text.encode("utf-8"))

    headings: List[Heading] = []
    blocks: List[CodeBlock] = []
    last_line = len(lines) - 1
    stack = [tree.root_node]

    while stack:
        node = stack.pop()
        if node.type == "fenced_code_block":
            start = node.start_point[0]
            end_row, end_col = node.end_point[0], node.end_point[1]
            # Block nodes end at column 0 of the following line
            end = end_row - 1 if end_col == 0 and end_row > start else end_row
            blocks.append(CodeBlock(start, min(end, last_line)))
            continue
        if node.type == "atx_heading":
            row = node.start_point[0]
            parsed = parse_heading(lines[row]) if row <= last_line else None
            if parsed:
                headings.append(Heading(row, parsed[0], parsed[1]))
            continue
        stack.extend(node.children)

    headings.sort(key=lambda h: h.line)
    blocks.sort(key=lambda b: b.start_line)
    return DocumentStructure(headings=headings, code_blocks=blocks)


def parse_structure(text: str, use_ast: bool = True) -> DocumentStructure:
    """Detect headings and code blocks, preferring the AST."""
    lines = split_lines(text)
    if not lines:
        return DocumentStructure(headings=[], code_blocks=[])

    if use_ast:
        try:
            return parse_ast_structure(text, lines)
        except Exception as e:
            logger.warning(f"Markdown AST parsing failed, falling back to line scanner: {e}")

    return scan_structure(lines)
