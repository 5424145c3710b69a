"""Embedding models for semantic search."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .tokens import truncate_to_token_limit

logger = logging.getLogger(__name__)


def prepare_text_for_embedding(content: str, metadata: Optional[Dict[str, Any]] = None, framework: str = "") -> str:
    """Prefix chunk content with its title, heading and framework.

    Example:
        Title: Grid
        Heading: Column Configuration
        Framework: flow

        <content>
    """
    metadata = metadata or {}
    header: List[str] = []
    title = metadata.get("title")
    heading = metadata.get("heading")
    if title:
        header.append(f"Title: {title}")
    if heading and heading != title:
        header.append(f"Heading: {heading}")
    if framework:
        header.append(f"Framework: {framework}")

    if not header:
        return content
    return "\n".join(header) + "\n\n" + content


class Embedder:
    """Abstract base class for embedding models."""

    def embed(self, texts: List[str]) -> List[List[float]]:
        """Embed multiple texts into vectors."""
        raise NotImplementedError

    def embed_one(self, text: str) -> List[float]:
        """Embed a single text into a vector."""
        return self.embed([text])[0]


class SentenceTransformersEmbedder(Embedder):
    """Embedder using SentenceTransformers library."""

    def __init__(self, model_name: str, max_input_tokens: int = 8000) -> None:
        from sentence_transformers import SentenceTransformer  # type: ignore
        self.model = SentenceTransformer(model_name)
        self.model_name = model_name
        self.max_input_tokens = max_input_tokens

    @property
    def dimension(self) -> int:
        return int(self.model.get_sentence_embedding_dimension())

    def embed(self, texts: List[str]) -> List[List[float]]:
        """Embed texts using SentenceTransformers model."""
        if not texts:
            return []
        prepared = [truncate_to_token_limit(t, self.max_input_tokens) for t in texts]
        arr = self.model.encode(prepared, normalize_embeddings=True, show_progress_bar=False)
        return [row.tolist() for row in arr]


def make_embedder(cfg: Dict) -> Embedder:
    """Create embedder from config.

    Args:
        cfg: Configuration dictionary

    Returns:
        Embedder instance

    Raises:
        SystemExit: If backend is invalid or the model cannot be loaded
    """
    embedding_cfg = cfg.get("embedding", {})
    backend = str(embedding_cfg.get("backend", "sentence_transformers")).strip().lower()
    if backend != "sentence_transformers":
        raise SystemExit(f"embedding.backend is invalid: {backend!r}")

    model_name = embedding_cfg.get("sentence_transformers_model", "sentence-transformers/all-MiniLM-L6-v2")
    max_input_tokens = int(embedding_cfg.get("max_input_tokens", 8000))
    try:
        embedder = SentenceTransformersEmbedder(model_name, max_input_tokens=max_input_tokens)
    except Exception as e:
        raise SystemExit(
            f"Could not load sentence-transformers model {model_name!r}. "
            "Run: pip install -U sentence-transformers"
        ) from e
    logger.info(f"Loaded embedding model {model_name}")
    return embedder
