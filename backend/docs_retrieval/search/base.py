"""Retrieval channel interface."""

from __future__ import annotations

from typing import List, Optional

from ..core.filters import SearchFilter
from ..core.models import ChannelHit


class SearchChannel:
    """Abstract base class for one ranked retrieval channel (dense or sparse)."""

    name = "channel"

    async def search(
        self,
        query: str,
        k: int,
        search_filter: Optional[SearchFilter] = None,
    ) -> List[ChannelHit]:
        """Return up to ``k`` hits for ``query``, best first.

        Args:
            query: Preprocessed query text
            k: Number of candidates to fetch
            search_filter: Framework/version predicate to push down

        Returns:
            Hits ranked by descending score
        """
        raise NotImplementedError
