"""Shared fixtures: deterministic embedder, in-memory store, stub channels."""

import math
import re
import zlib
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from docs_retrieval.config import load_config
from docs_retrieval.core import Embedder
from docs_retrieval.core.models import ChannelHit
from docs_retrieval.indexing import RetryPolicy
from docs_retrieval.search import SearchChannel
from docs_retrieval.storage import InMemoryVectorStore


class HashEmbedder(Embedder):
    """Bag-of-words vectors hashed into a small space, L2-normalized."""

    def __init__(self, dim: int = 64):
        self.dim = dim
        self.calls: List[List[str]] = []

    def embed(self, texts: List[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        out = []
        for text in texts:
            vec = [0.0] * self.dim
            for word in re.findall(r"[a-z0-9]+", text.lower()):
                vec[zlib.crc32(word.encode()) % self.dim] += 1.0
            norm = math.sqrt(sum(v * v for v in vec)) or 1.0
            out.append([v / norm for v in vec])
        return out


class StubChannel(SearchChannel):
    """Returns fixed hits, or raises ``error`` when set."""

    def __init__(self, name: str, hits: Optional[List[ChannelHit]] = None, error: Optional[Exception] = None):
        self.name = name
        self.hits = hits or []
        self.error = error
        self.calls: List[tuple] = []

    async def search(self, query, k, search_filter=None):
        self.calls.append((query, k, search_filter))
        if self.error is not None:
            raise self.error
        return self.hits[:k]


def make_hit(chunk_id: str, content: str = "", framework: str = "common", score: float = 1.0, **metadata) -> ChannelHit:
    return ChannelHit(
        id=chunk_id,
        content=content or f"content of {chunk_id}",
        metadata={
            "chunk_id": chunk_id,
            "parent_id": None,
            "framework": framework,
            "source_url": f"https://docs.example.com/{chunk_id}",
            "file_path": f"{chunk_id}.md",
            "metadata": metadata,
        },
        score=score,
    )


@pytest.fixture
def cfg() -> Dict:
    return load_config({"vector_store": {"backend": "memory", "rate_limit_delay": 0}, "embedding": {"rate_limit_delay": 0}})


@pytest.fixture
def embedder() -> HashEmbedder:
    return HashEmbedder()


@pytest.fixture
def memory_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture
def no_sleep_policy() -> RetryPolicy:
    sleeps: List[float] = []
    policy = RetryPolicy(max_retries=3, base_delay=1.0, max_delay=32.0, sleep=sleeps.append)
    policy.sleeps = sleeps
    return policy


@pytest.fixture
def docs_tree(tmp_path: Path) -> Callable[[Dict[str, str]], Path]:
    """Factory writing ``{relative path: content}`` under a temp docs root."""

    def _create(files: Dict[str, str]) -> Path:
        for rel, content in files.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return _create


@pytest.fixture
def markdown_grammar():
    """Skip when the tree-sitter Markdown grammar cannot be loaded here."""
    import tree_sitter_language_pack

    try:
        return tree_sitter_language_pack.get_parser("markdown")
    except Exception as e:
        pytest.skip(f"tree-sitter markdown grammar unavailable: {e}")
