from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from .core.models import normalize_framework


class SearchOptions(BaseModel):
    max_results: int = 10
    max_tokens: int = 5000
    framework: Optional[str] = None
    version: Optional[str] = None

    @field_validator("framework")
    @classmethod
    def _normalize_framework(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not str(value).strip():
            return None
        return normalize_framework(value)

    @field_validator("version")
    @classmethod
    def _blank_version(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not str(value).strip():
            return None
        return str(value).strip()


class DocumentResult(BaseModel):
    file_path: str
    content: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None


class BatchReport(BaseModel):
    label: str
    total: int = 0
    succeeded: int = 0
    failed_batches: List[int] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed_batches


class SourceDeletion(BaseModel):
    file_path: str
    deleted: bool
    error: Optional[str] = None


class IndexReport(BaseModel):
    files: int = 0
    chunks: int = 0
    upserted: int = 0
    deleted: int = 0
    failed_files: List[str] = Field(default_factory=list)
    failed_batches: List[str] = Field(default_factory=list)
    cfg_fingerprint: str = ""
    created_at: str = ""
