"""API dependencies: caller resolution, admission control, shared services.

Identity tokens are verified in app.core.auth; here a verified identity is
turned into a users row (upsert on every authenticated request, in a short
session of its own) and requests are gated by the admission controller.
"""

from typing import Optional
from uuid import UUID

from fastapi import Depends, Request
from starlette.concurrency import run_in_threadpool

from app.core.auth import VerifiedIdentity, get_current_identity, require_current_identity
from app.core.database import get_db_session
from app.domain.exceptions import RateLimitedError
from app.domain.user_operations import UserOperations
from app.middleware.rate_limit import AdmissionController, caller_identity, get_admission_controller
from app.models.database.user import UserUpsert
from app.services.generation.orchestrator import GenerationOrchestrator


def _upsert_user(identity: VerifiedIdentity) -> UUID:
    with get_db_session() as session:
        user = UserOperations.upsert(session, UserUpsert(
            auth_uid=identity.subject_id,
            email=identity.email,
            display_name=identity.display_name,
            photo_url=identity.photo_url,
        ))
        return user.id


async def get_current_user_id(
    identity: Optional[VerifiedIdentity] = Depends(get_current_identity)
) -> Optional[UUID]:
    """
    Internal user id of the caller, or None for guests.

    CRITICAL: returns users.id, not the identity-provider subject id.
    """
    if identity is None:
        return None
    return await run_in_threadpool(_upsert_user, identity)


async def require_current_user_id(
    identity: VerifiedIdentity = Depends(require_current_identity)
) -> UUID:
    """Internal user id of the caller; 401/503 raised by require_current_identity."""
    return await run_in_threadpool(_upsert_user, identity)


class RequireAdmission:
    """
    Gate a route behind one admission class.

    Usage:
        @router.post("/generate-story", dependencies=[Depends(RequireAdmission(STORY_GENERATION))])
    """

    def __init__(self, operation_class: str):
        self.operation_class = operation_class

    async def __call__(
        self,
        request: Request,
        identity: Optional[VerifiedIdentity] = Depends(get_current_identity),
        controller: AdmissionController = Depends(get_admission_controller),
    ) -> None:
        caller = caller_identity(request, identity.subject_id if identity else None)
        if not controller.admit(self.operation_class, caller):
            raise RateLimitedError(
                self.operation_class,
                retry_after=controller.retry_after(self.operation_class),
                message=controller.policy(self.operation_class).message,
            )


def get_orchestrator(request: Request) -> GenerationOrchestrator:
    """Orchestrator built once in the application lifespan."""
    return request.app.state.orchestrator
