"""Journal statistics endpoint."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.api.deps import require_current_user_id
from app.core.database import get_db
from app.domain.dream_statistics import compute_dream_stats
from app.models.dto.dreams import DreamStats

router = APIRouter(tags=["stats"])


@router.get("/stats", response_model=DreamStats)
def get_stats(
    user_id: UUID = Depends(require_current_user_id),
    db: Session = Depends(get_db)
) -> DreamStats:
    """Totals, this month's count, favorites, top tags, moods and average lucidity."""
    return compute_dream_stats(db, user_id)
