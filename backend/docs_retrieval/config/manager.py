"""Configuration management for docs_retrieval."""

from __future__ import annotations

import copy
import hashlib
import json
import logging
import os
from typing import Dict, List, Optional


DEFAULT_INCLUDE_PATTERNS: List[str] = [
    "*.md",
    "*.markdown",
]

DEFAULT_EXCLUDE_PATTERNS: List[str] = [
    ".git/**",
    "node_modules/**",
    "_images/**",
    "_shared/**",
    ".venv/**",
    "venv/**",
    "__pycache__/**",
    "README.md",
]

DEFAULT_CONFIG: Dict = {
    "max_file_size_kb": 1024,
    "log_level": "INFO",
    "chunking": {
        "max_section_length": 1000,
        "overlap_size": 50,
        "min_paragraph_length": 150,
        "min_context_length": 20,
        "use_ast": True,
    },
    "relationships": {
        "topic_match_ratio": 0.6,
    },
    "embedding": {
        "backend": "sentence_transformers",
        "sentence_transformers_model": "sentence-transformers/all-MiniLM-L6-v2",
        "batch_size": 50,
        "rate_limit_delay": 0.2,
        "max_input_tokens": 8000,
    },
    "vector_store": {
        "backend": "qdrant",
        "batch_size": 100,
        "rate_limit_delay": 0.5,
        "qdrant": {
            "host": "localhost",
            "port": 6333,
            "api_key": None,
            "collection": "docs_chunks",
        },
    },
    "retry": {
        "max_retries": 3,
        "base_delay": 1.0,
        "max_delay": 32.0,
    },
    "search": {
        "max_results": 10,
        "max_tokens": 5000,
        "rrf_k": 60,
        "candidate_multiplier": 3,
        "max_candidates": 100,
        "channel_timeout": 10.0,
        "chars_per_token": 4,
    },
    "documents": {
        "base_path": "./docs/markdown",
        "base_url": "",
    },
}

# Keys that change what ends up in the index.
_FINGERPRINT_SECTIONS = ("chunking", "relationships", "embedding")


def expand_pattern(pattern: str) -> List[str]:
    """Expand pattern to include both root and nested versions.

    Examples:
        '*.md' -> ['*.md', '**/*.md']
        'node_modules/**' -> ['node_modules/**', '**/node_modules/**']
    """
    pattern = pattern.strip()
    if not pattern or pattern.startswith("#"):
        return []

    if pattern.startswith("**/"):
        return [pattern]

    if pattern.startswith("*."):
        return [pattern, "**/" + pattern]

    if "/**" in pattern:
        return [pattern, "**/" + pattern]

    return [pattern]


def _expand_patterns(patterns: List[str]) -> List[str]:
    """Expand and deduplicate patterns while preserving order."""
    out: List[str] = []
    seen: set[str] = set()
    for p in patterns:
        for ep in expand_pattern(p):
            if ep not in seen:
                seen.add(ep)
                out.append(ep)
    return out


def load_config(overrides: Optional[Dict] = None) -> Dict:
    """Load configuration.

    Returns the default configuration with environment overrides applied,
    then ``overrides`` merged on top (nested dicts are merged key by key).
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    qdrant = config["vector_store"]["qdrant"]
    qdrant["host"] = os.getenv("QDRANT_HOST", qdrant["host"])
    qdrant["port"] = int(os.getenv("QDRANT_PORT", str(qdrant["port"])))
    qdrant["api_key"] = os.getenv("QDRANT_API_KEY", qdrant["api_key"])
    qdrant["collection"] = os.getenv("QDRANT_COLLECTION", qdrant["collection"])
    config["vector_store"]["backend"] = os.getenv(
        "VECTOR_STORE_BACKEND", config["vector_store"]["backend"]
    )
    config["embedding"]["sentence_transformers_model"] = os.getenv(
        "EMBEDDING_MODEL", config["embedding"]["sentence_transformers_model"]
    )
    config["documents"]["base_path"] = os.getenv(
        "DOCS_MARKDOWN_PATH", config["documents"]["base_path"]
    )
    config["log_level"] = os.getenv("LOG_LEVEL", config["log_level"])

    config["include_globs"] = _expand_patterns(DEFAULT_INCLUDE_PATTERNS)
    config["exclude_globs"] = _expand_patterns(DEFAULT_EXCLUDE_PATTERNS)

    if overrides:
        _merge(config, overrides)
    return config


def _merge(base: Dict, overrides: Dict) -> None:
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value


def validate_config(cfg: Dict) -> None:
    """Check required settings.

    Raises:
        SystemExit: listing every problem found
    """
    errors: List[str] = []

    store_cfg = cfg.get("vector_store", {})
    backend = str(store_cfg.get("backend", "")).strip().lower()
    if backend not in ("qdrant", "memory"):
        errors.append(f"vector_store.backend is invalid: {backend!r}")
    if backend == "qdrant":
        qdrant_cfg = store_cfg.get("qdrant", {})
        if not qdrant_cfg.get("host"):
            errors.append("vector_store.qdrant.host is required")
        if not qdrant_cfg.get("collection"):
            errors.append("vector_store.qdrant.collection is required")

    embedding_backend = str(cfg.get("embedding", {}).get("backend", "")).strip().lower()
    if embedding_backend != "sentence_transformers":
        errors.append(f"embedding.backend is invalid: {embedding_backend!r}")

    for section, key in (
        ("chunking", "max_section_length"),
        ("embedding", "batch_size"),
        ("vector_store", "batch_size"),
        ("search", "rrf_k"),
        ("search", "chars_per_token"),
    ):
        value = cfg.get(section, {}).get(key)
        if not isinstance(value, int) or value <= 0:
            errors.append(f"{section}.{key} must be a positive integer, got {value!r}")

    if errors:
        raise SystemExit("Invalid configuration:\n  " + "\n  ".join(errors))


def cfg_fingerprint(cfg: Dict) -> str:
    """Generate fingerprint hash for the settings that shape the index."""
    relevant = {k: cfg.get(k) for k in _FINGERPRINT_SECTIONS}
    payload = json.dumps(relevant, sort_keys=True, ensure_ascii=False).encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging once for scripts and services."""
    logging.basicConfig(
        level=(level or os.getenv("LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
