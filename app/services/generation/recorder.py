"""Persists analysis results in a short session of their own.

Runs after the provider call has returned, in the thread pool, so no
database transaction is ever open while the provider is being called.
"""

import logging
from uuid import UUID

from starlette.concurrency import run_in_threadpool

from app.core.database import get_db_session
from app.domain.dream_operations import DreamOperations

logger = logging.getLogger(__name__)


def _record_sync(owner_id: UUID, dream_id: UUID, analysis_text: str, themes: list[str], emotions: list[str]) -> UUID:
    with get_db_session() as session:
        analysis = DreamOperations.create_analysis(
            session,
            owner_id,
            dream_id,
            analysis_text=analysis_text,
            themes=themes,
            emotions=emotions,
        )
        return analysis.id


async def record_analysis(
    owner_id: UUID,
    dream_id: UUID,
    analysis_text: str,
    themes: list[str],
    emotions: list[str],
) -> UUID:
    """Append a DreamAnalysis for an owned dream; returns its id."""
    analysis_id = await run_in_threadpool(_record_sync, owner_id, dream_id, analysis_text, themes, emotions)
    logger.info(f"Saved analysis {analysis_id} for dream {dream_id}")
    return analysis_id
