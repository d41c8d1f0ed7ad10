"""
Dream API Routes

REST endpoints for the dream journal: CRUD, favorites, listing with
filters/sort/pagination, and analysis history.
All routes are thin HTTP adapters - business logic in DreamOperations.

Pattern: plain `def` routes + sync domain operations; FastAPI runs them
in its thread pool. The get_db dependency commits on success.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.api.deps import get_current_user_id, require_current_user_id
from app.core.database import get_db
from app.domain.dream_operations import DreamOperations
from app.models.database.dreams import DreamAnalysisRead, DreamCreate, DreamDetail, DreamUpdate
from app.models.dto.dreams import (
    DreamAnalysesResponse,
    DreamFilters,
    DreamPage,
    DreamSaveResponse,
    PageRequest,
)

router = APIRouter(prefix="/dreams", tags=["dreams"])


def _split_tags(tags: Optional[str]) -> list[str]:
    return [t for t in (tags or "").split(",") if t.strip()]


@router.get("", response_model=DreamPage)
def list_dreams(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100, description="Page size"),
    search: Optional[str] = None,
    tags: Optional[str] = Query(None, description="Comma-separated; matches any"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    mood: Optional[str] = None,
    order_by: str = Query("createdAt", alias="orderBy"),
    order: str = "desc",
    favorites_only: bool = Query(False, alias="favoritesOnly"),
    user_id: Optional[UUID] = Depends(get_current_user_id),
    db: Session = Depends(get_db)
) -> DreamPage:
    """
    List the caller's dreams.

    Guests get an empty page. Unknown orderBy values sort by createdAt.
    """
    filters = DreamFilters(
        search=search,
        tags=_split_tags(tags),
        start_date=start_date,
        end_date=end_date,
        mood=mood,
        favorites_only=favorites_only,
    )
    page_request = PageRequest(page=page, size=limit, order_by=order_by, order=order)
    return DreamOperations.query(db, user_id, filters, page_request)


@router.post("", response_model=DreamSaveResponse)
def create_dream(
    data: DreamCreate,
    user_id: Optional[UUID] = Depends(get_current_user_id),
    db: Session = Depends(get_db)
) -> DreamSaveResponse:
    """
    Save a dream.

    Guests are not persisted: the payload is echoed back with a fresh id
    and saved=false so the client can keep it locally.
    """
    if user_id is None:
        echo = data.model_dump(mode="json", by_alias=True)
        echo["id"] = str(uuid4())
        return DreamSaveResponse(saved=False, message="Dream saved locally (guest mode)", dream=echo)

    dream = DreamOperations.create(db, user_id, data)
    return DreamSaveResponse(dream=DreamOperations.to_read(dream))


@router.get("/{dream_id}", response_model=DreamDetail)
def get_dream(
    dream_id: UUID,
    user_id: UUID = Depends(require_current_user_id),
    db: Session = Depends(get_db)
) -> DreamDetail:
    """Dream with images and analysis history. 404 if missing or not owned."""
    dream = DreamOperations.get_or_raise(db, user_id, dream_id)
    return DreamOperations.to_detail(dream)


@router.put("/{dream_id}", response_model=DreamSaveResponse)
def update_dream(
    dream_id: UUID,
    data: DreamUpdate,
    user_id: UUID = Depends(require_current_user_id),
    db: Session = Depends(get_db)
) -> DreamSaveResponse:
    """Partial update: only fields present in the body change."""
    dream = DreamOperations.update(db, user_id, dream_id, data)
    counts = DreamOperations.count_analyses(db, [dream.id])
    return DreamSaveResponse(dream=DreamOperations.to_read(dream, counts.get(dream.id, 0)))


@router.patch("/{dream_id}/favorite", response_model=DreamSaveResponse)
def toggle_favorite(
    dream_id: UUID,
    user_id: UUID = Depends(require_current_user_id),
    db: Session = Depends(get_db)
) -> DreamSaveResponse:
    dream = DreamOperations.toggle_favorite(db, user_id, dream_id)
    counts = DreamOperations.count_analyses(db, [dream.id])
    return DreamSaveResponse(dream=DreamOperations.to_read(dream, counts.get(dream.id, 0)))


@router.delete("/{dream_id}")
def delete_dream(
    dream_id: UUID,
    user_id: UUID = Depends(require_current_user_id),
    db: Session = Depends(get_db)
) -> dict:
    """Delete a dream with its images and analyses."""
    DreamOperations.delete(db, user_id, dream_id)
    return {"success": True}


@router.get("/{dream_id}/analyses", response_model=DreamAnalysesResponse)
def list_dream_analyses(
    dream_id: UUID,
    user_id: UUID = Depends(require_current_user_id),
    db: Session = Depends(get_db)
) -> DreamAnalysesResponse:
    """Analysis history, newest first."""
    analyses = DreamOperations.list_analyses(db, user_id, dream_id)
    return DreamAnalysesResponse(
        dream_id=dream_id,
        analyses=[DreamAnalysisRead.model_validate(a) for a in analyses],
    )
