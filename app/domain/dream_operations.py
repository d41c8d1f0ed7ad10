"""
Dream Operations - Domain Logic Layer

Owner-scoped CRUD for dreams, the dream query engine (filters, sort,
pagination) and the append-only analysis history.
Follows static method pattern: no instance state, session passed as parameter.
No transaction management - routes handle commits/rollbacks.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic.alias_generators import to_snake
from sqlalchemy import select, and_, or_, func
from sqlalchemy.orm import selectinload
from sqlmodel import Session

from app.domain.exceptions import EntityNotFoundError, DomainValidationError
from app.models.database.dreams import (
    Dream,
    DreamAnalysis,
    DreamCreate,
    DreamDetail,
    DreamImage,
    DreamImageCreate,
    DreamRead,
    DreamTag,
    DreamUpdate,
)
from app.models.database.mixins.timestamp import utcnow
from app.models.dto.dreams import DreamFilters, DreamPage, PageRequest


# Caller-selectable sort columns, by snake_case or camelCase name.
# Anything else falls back to created_at.
SORTABLE_FIELDS = {
    "created_at": Dream.created_at,
    "updated_at": Dream.updated_at,
    "date": Dream.date,
    "title": Dream.title,
    "mood": Dream.mood,
    "lucidity": Dream.lucidity,
}
DEFAULT_SORT_FIELD = "created_at"

# Columns that exist but cannot be set to NULL through a partial update
NON_NULLABLE_UPDATE_FIELDS = {"dream_text", "date", "has_audio", "is_private", "is_favorite"}


def normalize_tags(tags: Optional[List[str]]) -> List[str]:
    """Trim, drop blanks and de-duplicate while keeping first-seen order."""
    seen: Dict[str, None] = {}
    for tag in tags or []:
        cleaned = tag.strip()
        if cleaned and cleaned not in seen:
            seen[cleaned] = None
    return list(seen)


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return value.replace("\\", "\\\\").replace("%", r"\%").replace("_", r"\_")


class DreamOperations:
    """
    Domain operations for Dream entity.

    All methods are SYNC. Routes that call them are plain `def` endpoints,
    which FastAPI runs in its thread pool.
    Domain layer uses flush() only; the request boundary commits.
    """

    # ═══════════════════════════════════════════════════════════════════
    # Core CRUD Operations
    # ═══════════════════════════════════════════════════════════════════

    @staticmethod
    def create(session: Session, owner_id: UUID, data: DreamCreate) -> Dream:
        """
        Create dream with its tags and scene images.
        Pattern: validate → build graph → add → flush.
        """
        if not data.dream_text.strip():
            raise DomainValidationError("Dream text is required")

        fields = data.model_dump(exclude={"tags", "images", "date"})
        dream = Dream(**fields, user_id=owner_id, date=data.date or utcnow())
        dream.tag_links = [DreamTag(tag=tag) for tag in normalize_tags(data.tags)]
        dream.images = DreamOperations._build_images(data.images)

        session.add(dream)
        session.flush()
        return dream

    @staticmethod
    def get_by_id(session: Session, owner_id: UUID, dream_id: UUID) -> Optional[Dream]:
        """Owner-scoped lookup. Returns None for a miss or someone else's dream."""
        result = session.execute(
            select(Dream).where(
                and_(
                    Dream.id == dream_id,
                    Dream.user_id == owner_id
                )
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    def get_or_raise(session: Session, owner_id: UUID, dream_id: UUID) -> Dream:
        dream = DreamOperations.get_by_id(session, owner_id, dream_id)
        if not dream:
            raise EntityNotFoundError("Dream", dream_id)
        return dream

    @staticmethod
    def update(session: Session, owner_id: UUID, dream_id: UUID, data: DreamUpdate) -> Dream:
        """
        Partial update. Raises EntityNotFoundError if not owned.

        Only fields present in the payload are touched. `images` present
        replaces the whole illustration set; `tags` present replaces the tag set.
        Pattern: Fetch → validate → modify → flush.
        """
        dream = DreamOperations.get_or_raise(session, owner_id, dream_id)

        changes = data.model_dump(exclude_unset=True, exclude={"tags", "images"})

        for field in NON_NULLABLE_UPDATE_FIELDS & changes.keys():
            if changes[field] is None:
                raise DomainValidationError(f"{field} cannot be null")
        if "dream_text" in changes and not changes["dream_text"].strip():
            raise DomainValidationError("Dream text is required")

        for field, value in changes.items():
            setattr(dream, field, value)

        if "tags" in data.model_fields_set:
            DreamOperations._replace_tags(dream, data.tags)

        if "images" in data.model_fields_set:
            # Wholesale replacement: old rows become orphans and are deleted
            dream.images = DreamOperations._build_images(data.images)

        dream.updated_at = utcnow()
        session.add(dream)
        session.flush()
        return dream

    @staticmethod
    def toggle_favorite(session: Session, owner_id: UUID, dream_id: UUID) -> Dream:
        """Flip is_favorite. Raises EntityNotFoundError if not owned."""
        dream = DreamOperations.get_or_raise(session, owner_id, dream_id)
        dream.is_favorite = not dream.is_favorite
        session.add(dream)
        session.flush()
        return dream

    @staticmethod
    def delete(session: Session, owner_id: UUID, dream_id: UUID) -> None:
        """Hard delete; tags, images and analyses go with it."""
        dream = DreamOperations.get_or_raise(session, owner_id, dream_id)
        session.delete(dream)
        session.flush()

    # ═══════════════════════════════════════════════════════════════════
    # Query Engine
    # ═══════════════════════════════════════════════════════════════════

    @staticmethod
    def build_conditions(owner_id: UUID, filters: DreamFilters) -> list:
        """Translate filters into ANDed SQL predicates (always owner-scoped)."""
        conditions = [Dream.user_id == owner_id]

        if filters.favorites_only:
            conditions.append(Dream.is_favorite.is_(True))

        if filters.search and filters.search.strip():
            pattern = f"%{escape_like(filters.search.strip())}%"
            conditions.append(
                or_(
                    Dream.dream_text.ilike(pattern, escape="\\"),
                    Dream.story.ilike(pattern, escape="\\"),
                    Dream.title.ilike(pattern, escape="\\"),
                )
            )

        tags = normalize_tags(filters.tags)
        if tags:
            # At least one requested tag
            conditions.append(
                Dream.id.in_(select(DreamTag.dream_id).where(DreamTag.tag.in_(tags)))
            )

        if filters.start_date is not None:
            conditions.append(Dream.date >= filters.start_date)

        if filters.end_date is not None:
            conditions.append(Dream.date <= filters.end_date)

        if filters.mood:
            conditions.append(Dream.mood == filters.mood)

        return conditions

    @staticmethod
    def query(
        session: Session,
        owner_id: Optional[UUID],
        filters: DreamFilters,
        page: PageRequest
    ) -> DreamPage:
        """
        Filtered, sorted, paginated listing of an owner's dreams.

        Anonymous callers (owner_id None) get an empty page, never an error.
        The total is counted independently of the page slice.
        """
        if owner_id is None:
            return DreamPage(dreams=[], total=0, has_more=False)

        where = and_(*DreamOperations.build_conditions(owner_id, filters))

        total = session.execute(
            select(func.count()).select_from(Dream).where(where)
        ).scalar_one()

        sort_column = SORTABLE_FIELDS.get(to_snake(page.order_by), SORTABLE_FIELDS[DEFAULT_SORT_FIELD])
        ordering = sort_column.asc() if page.ascending else sort_column.desc()

        result = session.execute(
            select(Dream)
            .where(where)
            .options(selectinload(Dream.images), selectinload(Dream.tag_links))
            .order_by(ordering, Dream.id)  # id keeps pages stable on ties
            .offset(page.offset)
            .limit(page.size)
        )
        dreams = list(result.scalars().all())

        counts = DreamOperations.count_analyses(session, [d.id for d in dreams])

        return DreamPage(
            dreams=[DreamOperations.to_read(d, counts.get(d.id, 0)) for d in dreams],
            total=total,
            has_more=page.offset + page.size < total,
        )

    @staticmethod
    def count_analyses(session: Session, dream_ids: List[UUID]) -> Dict[UUID, int]:
        """Analysis count per dream in one grouped query."""
        if not dream_ids:
            return {}
        result = session.execute(
            select(DreamAnalysis.dream_id, func.count())
            .where(DreamAnalysis.dream_id.in_(dream_ids))
            .group_by(DreamAnalysis.dream_id)
        )
        return {dream_id: count for dream_id, count in result.all()}

    # ═══════════════════════════════════════════════════════════════════
    # Analyses (append-only)
    # ═══════════════════════════════════════════════════════════════════

    @staticmethod
    def create_analysis(
        session: Session,
        owner_id: UUID,
        dream_id: UUID,
        analysis_text: str,
        themes: List[str],
        emotions: List[str],
        symbols: Optional[Dict[str, Any]] = None
    ) -> DreamAnalysis:
        """Append a new analysis to an owned dream. Raises EntityNotFoundError if not owned."""
        DreamOperations.get_or_raise(session, owner_id, dream_id)

        analysis = DreamAnalysis(
            dream_id=dream_id,
            user_id=owner_id,
            analysis_text=analysis_text,
            themes=list(themes),
            emotions=list(emotions),
            symbols=symbols,
        )
        session.add(analysis)
        session.flush()
        return analysis

    @staticmethod
    def list_analyses(session: Session, owner_id: UUID, dream_id: UUID) -> List[DreamAnalysis]:
        """Analysis history of an owned dream, newest first."""
        DreamOperations.get_or_raise(session, owner_id, dream_id)

        result = session.execute(
            select(DreamAnalysis)
            .where(DreamAnalysis.dream_id == dream_id)
            .order_by(DreamAnalysis.created_at.desc())
        )
        return list(result.scalars().all())

    # ═══════════════════════════════════════════════════════════════════
    # Read-model helpers
    # ═══════════════════════════════════════════════════════════════════

    @staticmethod
    def to_read(dream: Dream, analysis_count: int = 0) -> DreamRead:
        read = DreamRead.model_validate(dream)
        read.analysis_count = analysis_count
        return read

    @staticmethod
    def to_detail(dream: Dream) -> DreamDetail:
        detail = DreamDetail.model_validate(dream)
        detail.analysis_count = len(detail.analyses)
        return detail

    @staticmethod
    def _build_images(images: Optional[List[DreamImageCreate]]) -> List[DreamImage]:
        return [DreamImage(**image.model_dump()) for image in images or []]

    @staticmethod
    def _replace_tags(dream: Dream, tags: Optional[List[str]]) -> None:
        # Keep surviving rows so the (dream_id, tag) key is never re-inserted
        wanted = normalize_tags(tags)
        existing = {link.tag: link for link in dream.tag_links}
        dream.tag_links = [existing.get(tag) or DreamTag(tag=tag) for tag in wanted]
