"""Identity verification for bearer tokens.

Tokens are JWTs issued by an external identity provider (Firebase by
default), verified against its JWKS key set:
- no Authorization header → guest (None)
- identity provider not configured → guest, with a warning
- bad/expired token → 401

Verification never touches the database; user rows are upserted by
the API dependencies once a token is accepted.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from jose import jwt, JWTError
from fastapi import Header, HTTPException, status

from app.core.config import settings
from app.core.auth_cache import auth_cache

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class VerifiedIdentity:
    """Claims taken from a verified token."""
    subject_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None

    @classmethod
    def from_claims(cls, payload: dict) -> "VerifiedIdentity":
        return cls(
            subject_id=payload["sub"],
            email=payload.get("email"),
            display_name=payload.get("name"),
            photo_url=payload.get("picture"),
        )


def _invalid_token() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid authentication token",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


async def verify_token(token: str) -> VerifiedIdentity:
    """
    Verify signature, audience, issuer and expiry of an identity token.

    Raises:
        HTTPException: 401 for any invalid token, 503 if the key set is unreachable
    """
    payload = auth_cache.get_payload(token)

    if payload is None:
        try:
            kid = jwt.get_unverified_header(token).get("kid")
        except JWTError as e:
            logger.warning("Malformed token header: %s", e)
            raise _invalid_token()

        if not kid:
            raise _invalid_token()

        try:
            public_key = await auth_cache.get_key(kid)
        except httpx.HTTPError as e:
            logger.error("JWKS fetch failed: %s", e)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Identity provider unavailable",
            )

        if not public_key:
            logger.warning("Unknown signing key id: %s", kid)
            raise _invalid_token()

        try:
            payload = jwt.decode(
                token,
                public_key,
                algorithms=settings.AUTH_ALGORITHMS,
                audience=settings.token_audience or None,
                issuer=settings.token_issuer or None,
                options={
                    "verify_aud": bool(settings.token_audience),
                    "require_exp": True,
                    "require_iat": True,
                    "require_sub": True,
                },
            )
        except jwt.ExpiredSignatureError:
            logger.warning("Token expired")
            raise _invalid_token()
        except JWTError as e:
            logger.warning("Token rejected: %s", e)
            raise _invalid_token()

        auth_cache.set_payload(token, payload)

    if not payload.get("sub"):
        raise _invalid_token()

    return VerifiedIdentity.from_claims(payload)


async def get_current_identity(
    authorization: Optional[str] = Header(None)
) -> Optional[VerifiedIdentity]:
    """
    Optional authentication.

    Returns:
        VerifiedIdentity, or None for guests

    Raises:
        HTTPException: 401 if a token is present but invalid
    """
    token = _extract_bearer(authorization)
    if token is None:
        return None

    if not settings.identity_provider_configured:
        logger.warning("Bearer token ignored: identity provider not configured")
        return None

    return await verify_token(token)


async def require_current_identity(
    authorization: Optional[str] = Header(None)
) -> VerifiedIdentity:
    """
    Mandatory authentication.

    Raises:
        HTTPException: 401 without a valid token, 503 if no identity provider is configured
    """
    token = _extract_bearer(authorization)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not settings.identity_provider_configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service not configured",
        )

    return await verify_token(token)
