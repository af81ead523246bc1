"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
A token carries the user's id, username, email and role, and lives for
exactly one day. There is no revocation list: a token stays valid until
it expires.
"""

from datetime import datetime, timedelta, timezone

import jwt

from taskapi.auth.identity import CurrentIdentity, Role
from taskapi.config import settings

TOKEN_LIFETIME = timedelta(days=1)

REQUIRED_CLAIMS = ["sub", "username", "role", "exp", "iat"]


class TokenError(Exception):
    """Raised when token verification fails."""


def create_access_token(user, now: datetime | None = None) -> str:
    """Create a signed access token for a User row."""
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "username": user.username,
        "email": user.email,
        "role": Role(user.role).value,
        "iat": issued_at,
        "exp": issued_at + TOKEN_LIFETIME,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    """Verify signature, expiry, issuer and audience. Returns the raw claims."""
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            options={"require": REQUIRED_CLAIMS},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")


def verify_token(token: str) -> CurrentIdentity:
    """Verify a token and turn its claims into a CurrentIdentity.

    Raises TokenError if the token is invalid, expired, missing claims,
    or carries an identity that can't be parsed.
    """
    payload = decode_token(token)
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise TokenError("Invalid token: malformed subject claim")
    try:
        role = Role(payload["role"])
    except ValueError:
        raise TokenError("Invalid token: unknown role")

    return CurrentIdentity(
        user_id=user_id,
        username=payload["username"],
        role=role,
        email=payload.get("email"),
    )
