"""Domain operations for Users.

Users are never created explicitly: the first authenticated request upserts
a row keyed on the identity-provider subject id, and every later login
refreshes the profile claims.
"""

from typing import Optional
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlmodel import Session

from app.models.database.mixins.timestamp import utcnow
from app.models.database.user import User, UserUpsert


_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class UserOperations:
    """User business logic. Static methods, sync session-based, no commits."""

    @staticmethod
    def get_by_auth_uid(session: Session, auth_uid: str) -> Optional[User]:
        result = session.execute(
            select(User)
            .where(User.auth_uid == auth_uid)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    def upsert(session: Session, data: UserUpsert) -> User:
        """
        Create-or-refresh by auth_uid in one INSERT ... ON CONFLICT statement.

        Two first requests for the same subject may race; the database decides
        which one inserts and the other becomes a claims update.
        """
        dialect = session.get_bind().dialect.name
        insert = _DIALECT_INSERTS.get(dialect)
        if insert is None:
            raise RuntimeError(f"User upsert is not supported on {dialect}")

        now = utcnow()
        claims = {
            "email": data.email,
            "display_name": data.display_name,
            "photo_url": data.photo_url,
        }
        statement = (
            insert(User)
            .values(id=uuid4(), auth_uid=data.auth_uid, created_at=now, updated_at=now, **claims)
            .on_conflict_do_update(index_elements=["auth_uid"], set_={**claims, "updated_at": now})
        )
        session.execute(statement)

        return UserOperations.get_by_auth_uid(session, data.auth_uid)
