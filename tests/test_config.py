import pytest

from docs_retrieval.config import cfg_fingerprint, expand_pattern, load_config, validate_config


def test_defaults():
    cfg = load_config()
    assert cfg["chunking"] == {"max_section_length": 1000, "overlap_size": 50, "min_paragraph_length": 150}
    assert cfg["search"]["rrf_k"] == 60
    assert cfg["search"]["max_results"] == 10
    assert cfg["search"]["max_tokens"] == 5000
    assert "**/*.md" in cfg["include_globs"]


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("QDRANT_HOST", "qdrant.internal")
    monkeypatch.setenv("QDRANT_PORT", "7000")
    monkeypatch.setenv("QDRANT_COLLECTION", "vaadin_docs")
    monkeypatch.setenv("VECTOR_STORE_BACKEND", "memory")

    cfg = load_config()
    qdrant = cfg["vector_store"]["qdrant"]
    assert (qdrant["host"], qdrant["port"], qdrant["collection"]) == ("qdrant.internal", 7000, "vaadin_docs")
    assert cfg["vector_store"]["backend"] == "memory"


def test_overrides_merge_nested_sections():
    cfg = load_config({"chunking": {"overlap_size": 10}})
    assert cfg["chunking"]["overlap_size"] == 10
    assert cfg["chunking"]["max_section_length"] == 1000


def test_load_config_does_not_mutate_defaults():
    load_config({"search": {"rrf_k": 1}})
    assert load_config()["search"]["rrf_k"] == 60


def test_validate_config_lists_problems():
    cfg = load_config({"vector_store": {"backend": "sqlite"}, "search": {"rrf_k": 0}})
    with pytest.raises(SystemExit) as exc:
        validate_config(cfg)
    message = str(exc.value)
    assert "vector_store.backend" in message
    assert "search.rrf_k" in message


def test_validate_config_accepts_defaults():
    validate_config(load_config())


def test_fingerprint_tracks_index_shaping_settings():
    base = cfg_fingerprint(load_config())
    assert cfg_fingerprint(load_config({"search": {"max_results": 3}})) == base
    assert cfg_fingerprint(load_config({"chunking": {"overlap_size": 10}})) != base


def test_expand_pattern():
    assert expand_pattern("*.md") == ["*.md", "**/*.md"]
    assert expand_pattern("node_modules/**") == ["node_modules/**", "**/node_modules/**"]
    assert expand_pattern("# comment") == []
