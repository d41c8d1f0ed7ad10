"""DTOs for dream listing, querying and statistics endpoints."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.database.dreams import DreamAnalysisRead, DreamRead
from app.models.database.mixins.camel import CAMEL_CASE


# ─────────────────────────────────────────────────────────────
# Query DTOs
# ─────────────────────────────────────────────────────────────


class DreamFilters(BaseModel):
    """All filters are optional and ANDed together."""
    model_config = ConfigDict(extra="forbid")

    search: Optional[str] = Field(default=None, description="Case-insensitive substring over text, story and title")
    tags: list[str] = Field(default_factory=list, description="Match dreams carrying at least one of these tags")
    start_date: Optional[datetime] = Field(default=None, description="Inclusive lower bound on dream date")
    end_date: Optional[datetime] = Field(default=None, description="Inclusive upper bound on dream date")
    mood: Optional[str] = None
    favorites_only: bool = False


class PageRequest(BaseModel):
    """1-indexed page plus sort selection. Unknown sort fields fall back to created_at."""
    model_config = ConfigDict(extra="forbid")

    page: int = Field(default=1, ge=1)
    size: int = Field(default=20, ge=1, le=100)
    order_by: str = "created_at"
    order: str = "desc"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size

    @property
    def ascending(self) -> bool:
        """Anything other than "asc" sorts descending."""
        return self.order.lower() == "asc"


# ─────────────────────────────────────────────────────────────
# Response DTOs
# ─────────────────────────────────────────────────────────────


class DreamPage(BaseModel):
    """One page of an owner's dreams plus totals."""
    model_config = CAMEL_CASE

    dreams: list[DreamRead] = Field(default_factory=list)
    total: int = 0
    has_more: bool = False


class DreamSaveResponse(BaseModel):
    """Result of a create/update/favorite call."""

    success: bool = True
    saved: bool = True
    message: Optional[str] = None
    dream: Any


class DreamAnalysesResponse(BaseModel):
    model_config = CAMEL_CASE

    dream_id: UUID
    analyses: list[DreamAnalysisRead] = Field(default_factory=list)


class TagCount(BaseModel):
    tag: str
    count: int


class MoodCount(BaseModel):
    mood: str
    count: int


class DreamStats(BaseModel):
    """Per-owner aggregate figures."""
    model_config = CAMEL_CASE

    total_dreams: int = 0
    dreams_this_month: int = 0
    favorite_dreams: int = 0
    most_common_tags: list[TagCount] = Field(default_factory=list)
    mood_distribution: list[MoodCount] = Field(default_factory=list)
    average_lucidity: Optional[float] = None
