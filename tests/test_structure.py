from docs_retrieval.core.structure import (
    CodeBlock,
    parse_ast_structure,
    parse_heading,
    parse_structure,
    scan_structure,
    split_lines,
)

DOC = (
    "# Title\n"
    "\n"
    "Some text.\n"
    "\n"
    "```python\n"
    "# not a heading\n"
    "x = 1\n"
    "```\n"
    "\n"
    "## Section\n"
    "\n"
    "More text.\n"
)


def test_split_lines_is_lossless():
    text = "a\n\nb\r\nc"
    assert "".join(split_lines(text)) == text
    assert split_lines("") == []


def test_parse_heading():
    assert parse_heading("# Title\n") == (1, "Title")
    assert parse_heading("### Deep ###") == (3, "Deep")
    assert parse_heading("   ## Indented") == (2, "Indented")
    assert parse_heading("#NoSpace") is None
    assert parse_heading("####### seven") is None
    assert parse_heading("plain text") is None


def test_scanner_ignores_headings_inside_fences():
    structure = scan_structure(split_lines(DOC))
    assert [(h.line, h.level, h.text) for h in structure.headings] == [(0, 1, "Title"), (9, 2, "Section")]
    assert structure.code_blocks == [CodeBlock(4, 7)]
    assert structure.in_code_block(5)
    assert not structure.in_code_block(9)


def test_fence_closes_only_on_same_character_and_length():
    lines = split_lines("~~~~\n```\n~~~\ncode\n~~~~\nafter\n")
    structure = scan_structure(lines)
    assert structure.code_blocks == [CodeBlock(0, 4)]


def test_unclosed_fence_runs_to_end():
    lines = split_lines("# A\n```\n# hidden\ncode\n")
    structure = scan_structure(lines)
    assert structure.code_blocks == [CodeBlock(1, 3)]
    assert [h.text for h in structure.headings] == ["A"]


def test_ast_and_scanner_agree(markdown_grammar):
    ast = parse_ast_structure(DOC, split_lines(DOC))
    scanned = scan_structure(split_lines(DOC))
    assert ast.headings == scanned.headings
    assert ast.code_blocks == scanned.code_blocks


def test_empty_document():
    structure = parse_structure("")
    assert structure.headings == []
    assert structure.code_blocks == []


def test_ast_finds_fence_inside_list_item(markdown_grammar):
    text = "# Steps\n\n- Add the grid:\n\n  ```java\n  # not a heading\n  grid.setItems(people);\n  ```\n\n## Next\n"
    structure = parse_ast_structure(text, split_lines(text))

    assert [(h.line, h.text) for h in structure.headings] == [(0, "Steps"), (9, "Next")]
    assert len(structure.code_blocks) == 1
    block = structure.code_blocks[0]
    assert block.start_line == 4
    assert 7 <= block.end_line < 9


def test_ast_unclosed_fence_runs_to_end(markdown_grammar):
    text = "# A\n```\n# hidden\ncode\n"
    structure = parse_ast_structure(text, split_lines(text))
    assert structure.code_blocks == [CodeBlock(1, 3)]
    assert [h.text for h in structure.headings] == ["A"]


def test_parse_structure_falls_back_when_ast_fails(monkeypatch):
    def broken(text, lines):
        raise RuntimeError("grammar missing")

    monkeypatch.setattr("docs_retrieval.core.structure.parse_ast_structure", broken)
    assert parse_structure(DOC, use_ast=True) == scan_structure(split_lines(DOC))
