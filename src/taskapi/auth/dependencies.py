"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract
and validate the current user identity from the request. The handler
receives the identity as an explicit argument and passes it on to the
access policy.
"""

from typing import Optional

import structlog
from fastapi import Depends, Header, HTTPException

from taskapi.auth.identity import CurrentIdentity
from taskapi.auth.jwt import TokenError, verify_token

logger = structlog.get_logger()


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_optional(
    authorization: Optional[str] = Header(None),
) -> Optional[CurrentIdentity]:
    """Extract current identity (optional — returns None if no auth header).

    A header that is present but malformed or carries a bad token is
    still rejected with 401.
    """
    if not authorization:
        return None

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthenticated("Authorization header must be 'Bearer <token>'")

    try:
        return verify_token(token.strip())
    except TokenError as e:
        logger.info("taskapi.auth_rejected", reason=str(e))
        raise _unauthenticated(str(e))


async def get_current_user(
    identity: Optional[CurrentIdentity] = Depends(get_current_user_optional),
) -> CurrentIdentity:
    """Extract current identity (required — 401 if no auth)."""
    if not identity:
        raise _unauthenticated("Authentication required")
    return identity
