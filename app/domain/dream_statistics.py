"""Per-owner dream statistics.

Domain layer: aggregate figures for the journal dashboard.
Pattern: Sync operations with explicit session passing.

All figures come from three small aggregate queries in the caller's
session (one transaction, so one snapshot on stores with MVCC).
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import case, func, select
from sqlmodel import Session

from app.models.database.dreams import Dream, DreamTag
from app.models.database.mixins.timestamp import utcnow
from app.models.dto.dreams import DreamStats, MoodCount, TagCount

TOP_TAG_LIMIT = 10


def start_of_month(now: datetime) -> datetime:
    """Midnight on the first calendar day of now's month (same tzinfo)."""
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def compute_dream_stats(
    session: Session,
    owner_id: UUID,
    now: Optional[datetime] = None
) -> DreamStats:
    """
    Aggregate an owner's journal.

    Args:
        session: Database session
        owner_id: Owning user id
        now: Clock override (tests); defaults to current UTC time

    Returns:
        DreamStats. average_lucidity is None (not 0) when no dream is rated.

    Notes:
        - dreams_this_month uses created_at (server clock), not the dream date
        - most_common_tags: top 10 by count desc, ties broken on tag asc
    """
    month_start = start_of_month(now or utcnow())

    totals = session.execute(
        select(
            func.count().label("total"),
            func.count(case((Dream.created_at >= month_start, 1))).label("this_month"),
            func.count(case((Dream.is_favorite.is_(True), 1))).label("favorites"),
            func.avg(Dream.lucidity).label("avg_lucidity"),
        ).where(Dream.user_id == owner_id)
    ).one()

    tag_count = func.count().label("count")
    tag_rows = session.execute(
        select(DreamTag.tag, tag_count)
        .join(Dream, Dream.id == DreamTag.dream_id)
        .where(Dream.user_id == owner_id)
        .group_by(DreamTag.tag)
        .order_by(tag_count.desc(), DreamTag.tag.asc())
        .limit(TOP_TAG_LIMIT)
    ).all()

    mood_count = func.count().label("count")
    mood_rows = session.execute(
        select(Dream.mood, mood_count)
        .where(Dream.user_id == owner_id, Dream.mood.is_not(None))
        .group_by(Dream.mood)
        .order_by(mood_count.desc(), Dream.mood.asc())
    ).all()

    return DreamStats(
        total_dreams=totals.total or 0,
        dreams_this_month=totals.this_month or 0,
        favorite_dreams=totals.favorites or 0,
        most_common_tags=[TagCount(tag=tag, count=count) for tag, count in tag_rows],
        mood_distribution=[MoodCount(mood=mood, count=count) for mood, count in mood_rows],
        average_lucidity=float(totals.avg_lucidity) if totals.avg_lucidity is not None else None,
    )
