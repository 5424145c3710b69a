import pytest

from docs_retrieval.core.embeddings import make_embedder, prepare_text_for_embedding
from docs_retrieval.core.tokens import count_tokens, estimate_tokens, truncate_to_token_limit


def test_prepare_text_prefixes_title_heading_framework():
    text = prepare_text_for_embedding("Body.", {"title": "Grid", "heading": "Columns"}, "flow")
    assert text == "Title: Grid\nHeading: Columns\nFramework: flow\n\nBody."


def test_prepare_text_skips_duplicate_heading_and_empty_header():
    assert prepare_text_for_embedding("Body.", {"title": "Grid", "heading": "Grid"}) == "Title: Grid\n\nBody."
    assert prepare_text_for_embedding("Body.") == "Body."


def test_estimate_tokens():
    assert estimate_tokens("") == 0
    assert estimate_tokens("abcd") == 1
    assert estimate_tokens("abcde") == 2
    assert estimate_tokens("abcdef", chars_per_token=3) == 2


def test_truncate_to_token_limit():
    text = "word " * 200
    truncated = truncate_to_token_limit(text, 50)

    assert count_tokens(truncated) <= 50
    assert text.startswith(truncated)
    assert truncate_to_token_limit("short", 50) == "short"
    assert truncate_to_token_limit("anything", 0) == ""


def test_make_embedder_rejects_unknown_backend():
    with pytest.raises(SystemExit):
        make_embedder({"embedding": {"backend": "openai"}})
