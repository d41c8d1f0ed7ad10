"""Dream journal models: dreams, their tags, illustrations and analyses.

A Dream belongs to one User and owns:
- an unordered tag set (dream_tags rows, one per distinct tag)
- up to three scene illustrations, replaced wholesale on update
- an append-only history of analyses, one per analysis run
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional, TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import JSON, CheckConstraint, Index
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Column, Field, Relationship, SQLModel

from app.models.database.mixins.camel import CAMEL_CASE
from app.models.database.mixins.timestamp import TimestampMixin, utcnow

if TYPE_CHECKING:
    from app.models.database.user import User


# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONVariant = JSON().with_variant(JSONB(), "postgresql")


class SceneLabel(str, Enum):
    """Ordered illustration slots of a story."""
    SCENE_1 = "Scene 1"
    SCENE_2 = "Scene 2"
    SCENE_3 = "Scene 3"


# ─────────────────────────────────────────────────────────────
# Dream
# ─────────────────────────────────────────────────────────────


class DreamBase(SQLModel):
    """Shared fields for Dream model."""
    title: str | None = Field(default=None, max_length=255, nullable=True)
    dream_text: str = Field(description="Free-text dream description as told by the user")
    story: str | None = Field(default=None, nullable=True, description="Generated fairy tale")
    story_tone: str | None = Field(default=None, max_length=50, nullable=True)
    story_length: str | None = Field(default=None, max_length=50, nullable=True)
    has_audio: bool = Field(default=False)
    audio_url: str | None = Field(default=None, nullable=True)
    audio_duration: int | None = Field(default=None, ge=0, nullable=True, description="Seconds")
    is_private: bool = Field(default=True)
    is_favorite: bool = Field(default=False, index=True)
    mood: str | None = Field(default=None, max_length=50, nullable=True)
    lucidity: int | None = Field(default=None, ge=1, le=5, nullable=True, description="Lucidity rating 1-5")


class Dream(DreamBase, TimestampMixin, table=True):
    """Dream entity. Inherits created_at, updated_at from TimestampMixin."""
    __tablename__ = "dreams"
    __table_args__ = (
        CheckConstraint("lucidity IS NULL OR (lucidity >= 1 AND lucidity <= 5)", name="ck_dreams_lucidity_range"),
        Index("ix_dreams_user_id_created_at", "user_id", "created_at"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", index=True, ondelete="CASCADE", description="Owner")
    date: datetime = Field(default_factory=utcnow, index=True, description="When the dream occurred")

    # Relationships
    user: "User" = Relationship(back_populates="dreams")
    tag_links: list["DreamTag"] = Relationship(
        back_populates="dream",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "DreamTag.tag"}
    )
    images: list["DreamImage"] = Relationship(
        back_populates="dream",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "DreamImage.scene"}
    )
    analyses: list["DreamAnalysis"] = Relationship(
        back_populates="dream",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "desc(DreamAnalysis.created_at)"}
    )

    @property
    def tags(self) -> list[str]:
        return [link.tag for link in self.tag_links]


class DreamTag(SQLModel, table=True):
    """One member of a dream's tag set."""
    __tablename__ = "dream_tags"

    dream_id: UUID = Field(foreign_key="dreams.id", primary_key=True, ondelete="CASCADE")
    tag: str = Field(max_length=100, primary_key=True, index=True)

    dream: Dream = Relationship(back_populates="tag_links")


# ─────────────────────────────────────────────────────────────
# Images
# ─────────────────────────────────────────────────────────────


class DreamImageBase(SQLModel):
    """Shared fields for DreamImage model."""
    url: str | None = Field(default=None, nullable=True, description="Image reference; null when generation failed")
    scene: SceneLabel = Field(description="Scene slot")
    description: str = Field(default="", description="Human-readable scene description")
    prompt: str | None = Field(default=None, nullable=True, description="Exact prompt sent to the provider")


class DreamImage(DreamImageBase, table=True):
    """Illustration of one scene of a dream's story."""
    __tablename__ = "dream_images"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    dream_id: UUID = Field(foreign_key="dreams.id", index=True, ondelete="CASCADE")
    created_at: datetime = Field(default_factory=utcnow, nullable=False)

    dream: Dream = Relationship(back_populates="images")


class DreamImageCreate(DreamImageBase):
    """Image payload accepted on dream create/update."""
    model_config = CAMEL_CASE


class DreamImageRead(DreamImageBase):
    """Image returned to clients."""
    model_config = CAMEL_CASE

    id: UUID
    created_at: datetime


# ─────────────────────────────────────────────────────────────
# Analyses
# ─────────────────────────────────────────────────────────────


class DreamAnalysis(SQLModel, table=True):
    """Append-only record of one analysis run. Never updated in place."""
    __tablename__ = "dream_analyses"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    dream_id: UUID = Field(foreign_key="dreams.id", index=True, ondelete="CASCADE")
    user_id: UUID = Field(foreign_key="users.id", index=True, ondelete="CASCADE", description="Denormalized owner")
    analysis_text: str
    symbols: Optional[dict[str, Any]] = Field(default=None, sa_column=Column(JSONVariant, nullable=True))
    themes: list[str] = Field(default_factory=list, sa_column=Column(JSONVariant, nullable=False))
    emotions: list[str] = Field(default_factory=list, sa_column=Column(JSONVariant, nullable=False))
    created_at: datetime = Field(default_factory=utcnow, nullable=False, index=True)

    dream: Dream = Relationship(back_populates="analyses")
    user: "User" = Relationship(back_populates="analyses")


class DreamAnalysisRead(SQLModel):
    """Analysis returned to clients."""
    model_config = CAMEL_CASE

    id: UUID
    dream_id: UUID
    analysis_text: str
    symbols: Optional[dict[str, Any]] = None
    themes: list[str] = []
    emotions: list[str] = []
    created_at: datetime


# ─────────────────────────────────────────────────────────────
# Dream DTOs
# ─────────────────────────────────────────────────────────────


class DreamCreate(DreamBase):
    """Data required to create a Dream. user_id excluded (set from the identity token)."""
    model_config = CAMEL_CASE

    dream_text: str = Field(min_length=1)
    date: datetime | None = None
    tags: list[str] = Field(default_factory=list)
    images: list[DreamImageCreate] = Field(default_factory=list)


class DreamRead(DreamBase):
    """Data returned when reading a Dream."""
    model_config = CAMEL_CASE

    id: UUID
    user_id: UUID
    date: datetime
    tags: list[str] = []
    images: list[DreamImageRead] = []
    analysis_count: int = 0
    created_at: datetime
    updated_at: datetime


class DreamDetail(DreamRead):
    """Single dream with its analysis history (newest first)."""
    analyses: list[DreamAnalysisRead] = []


class DreamUpdate(SQLModel):
    """
    Partial update. Only fields present in the request body are applied;
    an explicit null clears a nullable field. Presence is tracked by
    pydantic's model_fields_set, so "absent" and "null" never collide.
    """
    model_config = CAMEL_CASE

    title: str | None = None
    dream_text: str | None = None
    date: datetime | None = None
    story: str | None = None
    story_tone: str | None = None
    story_length: str | None = None
    has_audio: bool | None = None
    audio_url: str | None = None
    audio_duration: int | None = Field(default=None, ge=0)
    is_private: bool | None = None
    is_favorite: bool | None = None
    tags: list[str] | None = None
    mood: str | None = None
    lucidity: int | None = Field(default=None, ge=1, le=5)
    images: list[DreamImageCreate] | None = None
