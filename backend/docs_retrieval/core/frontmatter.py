"""YAML frontmatter and per-document metadata."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional, Tuple

import yaml

from ..utils.file_utils import to_posix
from .models import normalize_framework

logger = logging.getLogger(__name__)

_FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
_H1_RE = re.compile(r"^#[ \t]+(.+?)[ \t#]*$", re.MULTILINE)


def split_frontmatter(text: str) -> Tuple[Dict[str, Any], str]:
    """Split a leading ``---`` YAML block from the Markdown body.

    Malformed YAML is logged and treated as absent; the body is still returned
    without the block.
    """
    match = _FRONTMATTER_RE.match(text)
    if not match:
        return {}, text

    body = text[match.end():]
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        logger.warning(f"Invalid frontmatter ignored: {e}")
        return {}, body

    if not isinstance(data, dict):
        return {}, body
    return {str(k): v for k, v in data.items()}, body


def detect_framework(file_path: str) -> str:
    """Framework from a ``flow/`` or ``hilla/`` path segment, else ``common``."""
    segments = to_posix(file_path).lower().split("/")[:-1]
    if "flow" in segments:
        return "flow"
    if "hilla" in segments:
        return "hilla"
    return "common"


def first_heading(text: str) -> Optional[str]:
    match = _H1_RE.search(text)
    return match.group(1).strip() if match else None


def build_document_metadata(file_path: str, text: str, base_url: str = "") -> Tuple[Dict[str, Any], str]:
    """Build the metadata record attached to every chunk of a document.

    Returns:
        ``(metadata, body)`` where ``body`` is the Markdown without frontmatter
    """
    frontmatter, body = split_frontmatter(text)
    path = to_posix(file_path)

    metadata: Dict[str, Any] = dict(frontmatter)
    metadata["file_path"] = path
    metadata["framework"] = normalize_framework(frontmatter.get("framework") or detect_framework(path))
    metadata["title"] = str(frontmatter.get("title") or first_heading(body) or path.rsplit("/", 1)[-1])

    source_url = frontmatter.get("source_url") or frontmatter.get("url")
    if not source_url and base_url:
        source_url = base_url.rstrip("/") + "/" + re.sub(r"(/index)?\.[A-Za-z0-9]+$", "", path)
    metadata["source_url"] = str(source_url or "")

    if frontmatter.get("version") is not None:
        metadata["version"] = str(frontmatter["version"])
    return metadata, body
