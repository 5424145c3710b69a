import pytest
from qdrant_client import QdrantClient

from docs_retrieval.core import Chunk, SparseEncoder
from docs_retrieval.core.filters import SearchFilter
from docs_retrieval.storage import IndexRecord, QdrantVectorStore, build_qdrant_filter, point_id


@pytest.fixture
def store():
    return QdrantVectorStore(collection_name="test_docs", client=QdrantClient(location=":memory:"))


def _record(embedder, chunk_id, content, framework="common", file_path="a.md", **metadata):
    chunk = Chunk(
        chunk_id=chunk_id,
        parent_id=None,
        framework=framework,
        content=content,
        source_url=f"https://x/{chunk_id}",
        file_path=file_path,
        metadata=metadata,
    )
    return IndexRecord(chunk=chunk, dense=embedder.embed_one(content), sparse=SparseEncoder().encode_document(content))


def test_point_id_is_deterministic():
    assert point_id("a-0-0") == point_id("a-0-0")
    assert point_id("a-0-0") != point_id("a-0-1")


def test_build_filter():
    assert build_qdrant_filter(SearchFilter()) is None
    qfilter = build_qdrant_filter(SearchFilter.build("hilla", "24"))
    keys = [c.key for c in qfilter.must]
    assert keys == ["framework", "metadata.version"]
    assert qfilter.must[0].match.any == ["hilla", "common"]


def test_empty_store(store):
    assert not store.exists()
    assert store.count() == 0
    assert store.get_chunk("nope") is None
    assert store.list_sources() == []
    assert store.dense_search([0.1] * 64, 5) == []


def test_upsert_and_lookup(store, embedder):
    records = [
        _record(embedder, "grid-0-0", "Grid column configuration", framework="flow", file_path="grid.md", version="24"),
        _record(embedder, "forms-0-0", "Form binding and validation", framework="hilla", file_path="forms.md"),
        _record(embedder, "intro-0-0", "Introduction to the platform", file_path="intro.md"),
    ]
    store.upsert(records)
    # upserting again overwrites by chunk id
    store.upsert(records[:1])

    assert store.count() == 3
    assert store.exists()
    assert store.list_sources() == ["forms.md", "grid.md", "intro.md"]
    assert store.get_chunk("grid-0-0") == records[0].chunk
    assert store.list_chunk_ids(file_path="forms.md") == ["forms-0-0"]


def test_dense_and_sparse_search_with_filters(store, embedder):
    store.upsert([
        _record(embedder, "grid-0-0", "Grid column configuration", framework="flow", file_path="grid.md", version="24"),
        _record(embedder, "forms-0-0", "Form binding and validation", framework="hilla", file_path="forms.md"),
        _record(embedder, "intro-0-0", "Grid introduction", file_path="intro.md"),
    ])

    dense = store.dense_search(embedder.embed_one("grid column configuration"), 3)
    assert dense[0].id == "grid-0-0"
    assert "content" not in dense[0].metadata
    assert dense[0].metadata["file_path"] == "grid.md"

    sparse = store.sparse_search(SparseEncoder().encode_query("grid"), 5)
    assert {h.id for h in sparse} == {"grid-0-0", "intro-0-0"}

    hilla = store.dense_search(embedder.embed_one("grid"), 5, SearchFilter.build("hilla"))
    assert {h.id for h in hilla} == {"forms-0-0", "intro-0-0"}

    versioned = store.sparse_search(SparseEncoder().encode_query("grid"), 5, SearchFilter.build(version="24"))
    assert [h.id for h in versioned] == ["grid-0-0"]


def test_delete_by_source_and_prefix(store, embedder):
    store.upsert([
        _record(embedder, "a-0-0", "alpha", file_path="guide/a.md"),
        _record(embedder, "a-1-0", "alpha two", file_path="guide/a.md"),
        _record(embedder, "b-0-0", "beta", file_path="guide/b.md"),
        _record(embedder, "c-0-0", "gamma", file_path="other.md"),
    ])

    assert store.delete_by_source(file_path="guide/a.md") == 2
    assert store.list_sources() == ["guide/b.md", "other.md"]
    assert store.delete_by_source(prefix="guide/") == 1
    assert store.list_sources() == ["other.md"]
    assert store.delete_by_source(file_path="missing.md") == 0

    store.delete_chunks(["c-0-0"])
    assert store.count() == 0


def test_dimension_mismatch_is_rejected(store, embedder):
    store.upsert([_record(embedder, "a-0-0", "alpha")])
    bad = _record(embedder, "b-0-0", "beta")
    bad.dense = bad.dense[:10]
    with pytest.raises(ValueError):
        store.upsert([bad])


def test_clear(store, embedder):
    store.upsert([_record(embedder, "a-0-0", "alpha")])
    store.clear()
    assert store.count() == 0
    assert not store.exists()
