"""Keyword (sparse) vectors for the lexical retrieval channel.

Terms are hashed into a fixed index space. Documents get BM25-style saturated
term frequencies, queries get binary weights; inverse document frequency is
left to the index (Qdrant's IDF modifier).
"""

from __future__ import annotations

import dataclasses
import re
import zlib
from collections import Counter
from typing import Dict, List

_TOKEN_RE = re.compile(r"[a-z0-9][a-z0-9_\-]*")

STOPWORDS = frozenset(
    "a an and are as at be by can do for from how i if in into is it its of on or "
    "that the their then there these this to was what when where which while will "
    "with you your".split()
)


@dataclasses.dataclass
class SparseEmbedding:
    indices: List[int]
    values: List[float]

    def as_dict(self) -> Dict[int, float]:
        return dict(zip(self.indices, self.values))


def tokenize(text: str) -> List[str]:
    return [t for t in _TOKEN_RE.findall(text.lower()) if t not in STOPWORDS]


class SparseEncoder:
    """Hashed bag-of-words encoder."""

    def __init__(self, k1: float = 1.2, b: float = 0.75, avg_doc_length: float = 120.0, space: int = 2**31 - 1):
        self.k1 = k1
        self.b = b
        self.avg_doc_length = avg_doc_length
        self.space = space

    def _index(self, term: str) -> int:
        return zlib.crc32(term.encode("utf-8")) % self.space

    def _collect(self, weights: Dict[int, float]) -> SparseEmbedding:
        indices = sorted(weights)
        return SparseEmbedding(indices=indices, values=[weights[i] for i in indices])

    def encode_document(self, text: str) -> SparseEmbedding:
        terms = tokenize(text)
        if not terms:
            return SparseEmbedding(indices=[], values=[])

        norm = self.k1 * (1 - self.b + self.b * len(terms) / self.avg_doc_length)
        weights: Dict[int, float] = {}
        for term, tf in Counter(terms).items():
            idx = self._index(term)
            weights[idx] = weights.get(idx, 0.0) + tf * (self.k1 + 1) / (tf + norm)
        return self._collect(weights)

    def encode_documents(self, texts: List[str]) -> List[SparseEmbedding]:
        return [self.encode_document(t) for t in texts]

    def encode_query(self, text: str) -> SparseEmbedding:
        return self._collect({self._index(term): 1.0 for term in set(tokenize(text))})
