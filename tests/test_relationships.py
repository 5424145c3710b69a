from docs_retrieval.core.chunking import ChunkingConfig, chunk_document
from docs_retrieval.core.models import Chunk
from docs_retrieval.indexing.hierarchy import build_directory_structure
from docs_retrieval.indexing.relationships import (
    RelationshipBuilder,
    build_chunk_relationships,
    validate_relationships,
)

CONFIG = ChunkingConfig(use_ast=False)


def _chunks(path, text, framework="common"):
    return chunk_document(text, {"file_path": path, "framework": framework, "source_url": f"https://x/{path}"}, CONFIG)


def _chunk(chunk_id, parent_id=None):
    return Chunk(chunk_id=chunk_id, parent_id=parent_id, framework="common", content="c", source_url="", file_path="f.md")


def test_child_root_links_to_parent_file():
    file_chunks = {
        "a.md": _chunks("a.md", "# Components\n\nOverview.\n\n## Button\n\nButtons.\n"),
        "a/b.md": _chunks("a/b.md", "# Button Variants\n\nPrimary and secondary.\n\n## Sizes\n\nSmall.\n"),
    }
    structure = build_directory_structure(file_chunks)

    chunks = build_chunk_relationships(file_chunks, structure)
    by_id = {c.chunk_id: c for c in chunks}
    child_root = by_id[file_chunks["a/b.md"][0].chunk_id]

    assert child_root.parent_id is not None
    assert by_id[child_root.parent_id].file_path == "a.md"
    assert validate_relationships(chunks).valid
    # intra-file links are kept
    assert by_id[file_chunks["a/b.md"][1].chunk_id].parent_id == child_root.chunk_id


def test_topic_match_picks_matching_chunk():
    parent = _chunks("a.md", "# Intro\n\nWelcome.\n\n## Grid Columns\n\nColumn configuration for the grid.\n")
    builder = RelationshipBuilder()

    anchor = builder.find_anchor(parent, "Grid Column Configuration")
    assert anchor.heading == "Grid Columns"


def test_anchor_falls_back_to_first_heading_chunk():
    parent = _chunks("a.md", "Preamble only.\n\n# First\n\nText.\n")
    anchor = RelationshipBuilder().find_anchor(parent, "Unrelated Topic Words")
    assert anchor.heading == "First"


def test_missing_parent_file_is_skipped():
    file_chunks = {"a/b.md": _chunks("a/b.md", "# B\n\nText.\n")}
    structure = build_directory_structure(["a.md", "a/b.md"])

    chunks = build_chunk_relationships(file_chunks, structure)
    assert chunks[0].parent_id is None
    assert validate_relationships(chunks).valid


def test_metadata_never_contains_top_level_fields():
    file_chunks = {"a.md": _chunks("a.md", "# A\n\nText.\n", framework="hilla")}
    chunks = build_chunk_relationships(file_chunks, build_directory_structure(file_chunks))

    assert chunks[0].framework == "hilla"
    assert chunks[0].source_url == "https://x/a.md"
    for key in ("chunk_id", "parent_id", "framework", "content", "source_url", "file_path"):
        assert key not in chunks[0].metadata


def test_validator_reports_every_violation():
    chunks = [
        _chunk("a"),
        _chunk("b", "missing"),
        _chunk("c", "c"),
        _chunk("a"),
        _chunk("x", "y"),
        _chunk("y", "x"),
    ]
    result = validate_relationships(chunks)

    assert not result.valid
    joined = "\n".join(result.errors)
    assert "Duplicate chunk id: a" in joined
    assert "b has invalid parent missing" in joined
    assert "c is its own parent" in joined
    assert sum("Parent cycle" in e for e in result.errors) == 1


def test_validator_accepts_forest():
    chunks = [_chunk("a"), _chunk("b", "a"), _chunk("c", "b"), _chunk("d")]
    assert validate_relationships(chunks).valid
