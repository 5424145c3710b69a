from __future__ import annotations

import functools
import math
from typing import Callable, Optional

import tiktoken


def estimate_tokens(text: str, chars_per_token: int = 4) -> int:
    """Cheap token estimate used for result budgets: ceil(len / chars_per_token)."""
    if not text:
        return 0
    return math.ceil(len(text) / chars_per_token)


@functools.lru_cache(maxsize=8)
def _get_encoding(model: Optional[str] = None) -> "tiktoken.Encoding":
    return tiktoken.encoding_for_model(model) if model else tiktoken.get_encoding("cl100k_base")


def _get_token_counter(model: Optional[str] = None) -> Callable[[str], int]:
    encoding = _get_encoding(model)

    def count_tokens(text: str) -> int:
        return len(encoding.encode(text))

    return count_tokens


def count_tokens(text: str, model: Optional[str] = None) -> int:
    return _get_token_counter(model)(text)


def truncate_to_token_limit(text: str, max_tokens: int, model: Optional[str] = None) -> str:
    """Cut ``text`` to at most ``max_tokens`` tokens.

    A token is never shorter than one character, so texts with no more
    characters than the limit are returned without tokenizing.
    """
    if max_tokens <= 0:
        return ""
    if len(text) <= max_tokens:
        return text

    encoding = _get_encoding(model)
    tokens = encoding.encode(text)
    if len(tokens) <= max_tokens:
        return text
    return encoding.decode(tokens[:max_tokens])
