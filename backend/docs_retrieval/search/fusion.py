"""Reciprocal Rank Fusion and result budgeting."""

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from ..core.models import ChannelHit, RetrievalResult
from ..core.tokens import estimate_tokens

DEFAULT_RRF_K = 60


def reciprocal_rank_fusion(
    ranked_lists: Sequence[List[ChannelHit]],
    k: int = DEFAULT_RRF_K,
) -> List[Tuple[ChannelHit, float]]:
    """Fuse ranked lists: the item at 1-based rank r adds ``1 / (k + r)``.

    Scores are summed per id. Output is sorted by fused score; equal scores
    keep first-appearance order across the lists in the order given. The hit
    kept for an id is the first one seen.
    """
    scores: Dict[str, float] = {}
    hits: Dict[str, ChannelHit] = {}

    for ranked in ranked_lists:
        for rank, hit in enumerate(ranked, start=1):
            if hit.id not in hits:
                hits[hit.id] = hit
                scores[hit.id] = 0.0
            scores[hit.id] += 1.0 / (k + rank)

    # dicts keep insertion order and sorted() is stable
    ordered = sorted(hits, key=lambda i: scores[i], reverse=True)
    return [(hits[i], scores[i]) for i in ordered]


def to_result(hit: ChannelHit, score: float) -> RetrievalResult:
    chunk = hit.to_chunk()
    return RetrievalResult(
        chunk_id=chunk.chunk_id,
        parent_id=chunk.parent_id,
        framework=chunk.framework,
        content=chunk.content,
        source_url=chunk.source_url,
        file_path=chunk.file_path,
        metadata=chunk.metadata,
        relevance_score=score,
    )


def truncate_to_budget(
    results: List[RetrievalResult],
    max_results: int,
    max_tokens: int,
    chars_per_token: int = 4,
) -> List[RetrievalResult]:
    """Keep results in order while they fit ``max_tokens``.

    The first result is always kept, even when it alone exceeds the budget.
    At most ``max_results`` results are returned.
    """
    if max_results <= 0 or max_tokens <= 0:
        return []

    out: List[RetrievalResult] = []
    used = 0
    for result in results:
        if len(out) >= max_results:
            break
        tokens = estimate_tokens(result.content, chars_per_token)
        if out and used + tokens > max_tokens:
            break
        out.append(result)
        used += tokens
    return out
