"""User model - a person known to the identity provider."""

from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel, Relationship

from app.models.database.mixins.timestamp import TimestampMixin

if TYPE_CHECKING:
    from app.models.database.dreams import Dream, DreamAnalysis


class UserBase(SQLModel):
    """Shared fields for User model."""
    auth_uid: str = Field(max_length=128, unique=True, index=True, description="Identity-provider subject id (JWT 'sub' claim)")
    email: str | None = Field(default=None, max_length=255, unique=True, index=True, nullable=True, description="User's email address")
    display_name: str | None = Field(default=None, max_length=255, nullable=True, description="Display name")
    photo_url: str | None = Field(default=None, nullable=True, description="Avatar reference")


class User(UserBase, TimestampMixin, table=True):
    """User entity. Created on first authenticated request (upsert on auth_uid)."""
    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    # Relationships
    dreams: list["Dream"] = Relationship(
        back_populates="user",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
    analyses: list["DreamAnalysis"] = Relationship(back_populates="user")


class UserUpsert(UserBase):
    """Claims taken from a verified identity token."""
    pass
