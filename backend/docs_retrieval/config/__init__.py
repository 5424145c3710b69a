"""Configuration management for docs_retrieval."""

from .manager import (
    DEFAULT_CONFIG,
    DEFAULT_INCLUDE_PATTERNS,
    DEFAULT_EXCLUDE_PATTERNS,
    load_config,
    validate_config,
    cfg_fingerprint,
    expand_pattern,
    setup_logging,
)

__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_INCLUDE_PATTERNS",
    "DEFAULT_EXCLUDE_PATTERNS",
    "load_config",
    "validate_config",
    "cfg_fingerprint",
    "expand_pattern",
    "setup_logging",
]
