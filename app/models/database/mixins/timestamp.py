"""Timestamp helpers shared by the journal tables."""

from datetime import datetime, timezone
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    """Timezone-aware current time; the single clock for every stored timestamp."""
    return datetime.now(timezone.utc)


class TimestampMixin(SQLModel):
    """Adds created_at and updated_at to mutable entities (users, dreams)."""

    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        index=True,
        description="When this record was created"
    )

    updated_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_column_kwargs={"onupdate": utcnow},
        description="When this record was last updated"
    )
