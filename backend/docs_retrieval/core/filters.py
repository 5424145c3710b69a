from __future__ import annotations

import dataclasses
from typing import Any, Dict, Optional, Tuple

from .models import ChannelHit, normalize_framework

# Framework -> frameworks whose chunks it may see.
FRAMEWORK_SCOPES: Dict[str, Tuple[str, ...]] = {
    "flow": ("flow", "common"),
    "hilla": ("hilla", "common"),
}


@dataclasses.dataclass(frozen=True)
class SearchFilter:
    """Framework/version predicate shared by both retrieval channels.

    ``frameworks=None`` admits every framework; ``version=None`` every version.
    """

    frameworks: Optional[Tuple[str, ...]] = None
    version: Optional[str] = None

    @classmethod
    def build(cls, framework: Optional[str] = None, version: Optional[str] = None) -> "SearchFilter":
        frameworks = None
        if framework and str(framework).strip():
            frameworks = FRAMEWORK_SCOPES.get(normalize_framework(framework))
        version = str(version).strip() if version is not None and str(version).strip() else None
        return cls(frameworks=frameworks, version=version)

    @property
    def is_empty(self) -> bool:
        return self.frameworks is None and self.version is None

    def matches_payload(self, payload: Dict[str, Any]) -> bool:
        if self.frameworks is not None:
            if normalize_framework(payload.get("framework")) not in self.frameworks:
                return False
        if self.version is not None:
            metadata = payload.get("metadata") or {}
            if str(metadata.get("version", "")) != self.version:
                return False
        return True

    def matches(self, hit: ChannelHit) -> bool:
        return self.matches_payload(hit.metadata)
