"""
Shared data models for the esmongo system.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class Page(BaseModel):
    """One bounded batch of raw search hits plus the exact total-match count."""

    hits: List[Dict[str, Any]] = Field(default_factory=list)
    total: int = 0


class SearchRequest(BaseModel):
    """Everything needed to fetch one page from the backend."""

    query: Dict[str, Any]
    sort: Optional[List[Dict[str, Any]]] = None
    source: Optional[Dict[str, List[str]]] = None  # _source includes/excludes
    from_: int = 0
    size: int


class InsertOneResult(BaseModel):
    """Acknowledgement of a single insert."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    inserted_id: Any
    inserted_count: int = 1
    result: Dict[str, int] = Field(default_factory=lambda: {"ok": 1, "n": 1})


class UpdateResult(BaseModel):
    """Acknowledgement of an update; the backend call surfaces no counts."""

    acknowledged: bool = True
