from docs_retrieval.core import Chunk, SparseEncoder
from docs_retrieval.core.filters import SearchFilter
from docs_retrieval.storage import IndexRecord, make_vector_store


def _record(embedder, chunk_id, content, framework="common", file_path="a.md"):
    chunk = Chunk(chunk_id=chunk_id, framework=framework, content=content, source_url="", file_path=file_path)
    return IndexRecord(chunk=chunk, dense=embedder.embed_one(content), sparse=SparseEncoder().encode_document(content))


def test_factory_builds_memory_store(cfg):
    store = make_vector_store(cfg)
    assert store.count() == 0
    assert not store.exists()


def test_search_and_filters(cfg, embedder):
    store = make_vector_store(cfg)
    store.upsert([
        _record(embedder, "grid", "grid column configuration", framework="flow", file_path="grid.md"),
        _record(embedder, "forms", "form binding", framework="hilla", file_path="forms.md"),
        _record(embedder, "intro", "grid overview", file_path="intro.md"),
    ])

    assert store.dense_search(embedder.embed_one("grid column"), 1)[0].id == "grid"
    assert [h.id for h in store.sparse_search(SparseEncoder().encode_query("binding"), 5)] == ["forms"]
    flow = store.sparse_search(SparseEncoder().encode_query("grid"), 5, SearchFilter.build("flow"))
    assert {h.id for h in flow} == {"grid", "intro"}
    assert store.dense_search(embedder.embed_one("grid"), 0) == []


def test_delete_by_source(cfg, embedder):
    store = make_vector_store(cfg)
    store.upsert([_record(embedder, "a", "alpha", file_path="x/a.md"), _record(embedder, "b", "beta", file_path="y.md")])

    assert store.delete_by_source(prefix="x/") == 1
    assert store.list_sources() == ["y.md"]
    store.clear()
    assert store.count() == 0
