"""File and path utility functions."""

from __future__ import annotations

import hashlib
import re
from pathlib import Path, PurePosixPath
from typing import Union


def is_binary_file(path: Path) -> bool:
    """Check if file is binary by looking for null bytes."""
    try:
        with path.open("rb") as f:
            sample = f.read(2048)
        return b"\x00" in sample
    except OSError:
        return True


def to_posix(path: Union[str, Path]) -> str:
    """Normalize a relative document path to forward slashes without leading './'."""
    text = str(path).replace("\\", "/")
    normalized = PurePosixPath(text).as_posix()
    return normalized[2:] if normalized.startswith("./") else normalized


def path_slug(file_path: str) -> str:
    """Build a chunk id base from a file path.

    Directory separators become '--' so that 'a/b.md' and 'a-b.md' stay distinct.
    Paths the slug cannot reproduce exactly (other extensions, case, punctuation)
    get '_' and a short hash of the path appended, so distinct paths never share a base.

    Examples:
        'forms/data-binding.md' -> 'forms--data-binding'
        'forms/Data Binding.md' -> 'forms--data-binding_<sha1[:8]>'
    """
    path = to_posix(file_path)
    stem = re.sub(r"\.[A-Za-z0-9]+$", "", path)
    parts = []
    for segment in stem.split("/"):
        slug = re.sub(r"[^a-zA-Z0-9]+", "-", segment).strip("-").lower()
        if slug:
            parts.append(slug)
    base = "--".join(parts) or "doc"
    if path != f"{'/'.join(parts)}.md":
        base = f"{base}_{hashlib.sha1(path.encode('utf-8')).hexdigest()[:8]}"
    return base
