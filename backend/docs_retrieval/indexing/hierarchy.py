"""Directory-derived parent/child relations between documents.

Pure path logic, no file content is read:

    forms.md               (root, level 0)
    forms/binding.md       -> parent forms.md (level 1)
    forms/index.md         -> stands in for forms/, parent of its siblings
"""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Optional

from ..config import DEFAULT_EXCLUDE_PATTERNS, DEFAULT_INCLUDE_PATTERNS
from ..config.manager import _expand_patterns
from ..core.models import DirectoryStructure, FileHierarchy
from ..utils.file_utils import to_posix

logger = logging.getLogger(__name__)

INDEX_STEMS = ("index", "index-flow", "index-hilla")


def is_index_file(path: str) -> bool:
    return PurePosixPath(path).stem in INDEX_STEMS


def _resolve_parent(path: str, known: set) -> Optional[str]:
    pure = PurePosixPath(path)
    directory = pure.parent

    if is_index_file(path):
        # An index file is resolved as if it were <dir>.md in the parent directory
        if str(directory) in ("", "."):
            return None
        pure = directory.parent / (directory.name + pure.suffix)
        directory = pure.parent

    if str(directory) in ("", "."):
        return None

    for stem in INDEX_STEMS:
        candidate = (directory / (stem + pure.suffix)).as_posix()
        if candidate != path and candidate in known:
            return candidate

    named = (directory.parent / (directory.name + pure.suffix)).as_posix()
    if named != path and named in known:
        return named
    return None


def build_directory_structure(file_paths: Iterable[str]) -> DirectoryStructure:
    """Build the parent/child map for a set of relative document paths."""
    paths = sorted({to_posix(p) for p in file_paths})
    known = set(paths)

    parents: Dict[str, Optional[str]] = {p: _resolve_parent(p, known) for p in paths}
    children: Dict[str, List[str]] = {p: [] for p in paths}
    for path, parent in parents.items():
        if parent is not None:
            children[parent].append(path)

    structure: DirectoryStructure = {}
    for path in paths:
        structure[path] = FileHierarchy(
            file_path=path,
            parent_path=parents[path],
            children=sorted(children[path]),
            level=len(PurePosixPath(path).parts) - 1,
        )

    logger.debug(
        f"Directory structure: {len(structure)} files, "
        f"{sum(1 for p in parents.values() if p)} with a parent"
    )
    return structure


def parse_file_hierarchy(docs_root: Path, include_globs: Optional[List[str]] = None, exclude_globs: Optional[List[str]] = None) -> DirectoryStructure:
    """Scan a docs directory and build its structure from the files on disk."""
    include_globs = include_globs or _expand_patterns(DEFAULT_INCLUDE_PATTERNS)
    exclude_globs = exclude_globs or _expand_patterns(DEFAULT_EXCLUDE_PATTERNS)

    paths: List[str] = []
    for p in Path(docs_root).rglob("*"):
        if not p.is_file():
            continue
        rel = p.relative_to(docs_root).as_posix()
        if any(fnmatch.fnmatch(rel, g) for g in exclude_globs):
            continue
        if any(fnmatch.fnmatch(rel, g) for g in include_globs):
            paths.append(rel)
    return build_directory_structure(paths)


def get_parent_file_path(structure: DirectoryStructure, file_path: str) -> Optional[str]:
    node = structure.get(to_posix(file_path))
    return node.parent_path if node else None


def get_child_file_paths(structure: DirectoryStructure, file_path: str) -> List[str]:
    node = structure.get(to_posix(file_path))
    return list(node.children) if node else []


def has_parent(structure: DirectoryStructure, file_path: str) -> bool:
    return get_parent_file_path(structure, file_path) is not None
