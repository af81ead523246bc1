"""Auth API — registration, login, current user.

Learn: Routes for user authentication:
- POST /auth/register → create a regular user → identity + JWT
- POST /auth/login → username/password → identity + JWT
- GET /auth/me → identity decoded from the bearer token
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from taskapi.auth.dependencies import get_current_user
from taskapi.auth.identity import CurrentIdentity, Role
from taskapi.auth.jwt import create_access_token
from taskapi.db.engine import get_db
from taskapi.schemas.base import CamelModel
from taskapi.services.user_service import UserService, UsernameTaken

router = APIRouter(prefix="/auth")


# ─── Schemas ─────────────────────────────────────────────


class RegisterRequest(CamelModel):
    username: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=100, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=1)


class LoginRequest(CamelModel):
    username: str
    password: str


class AuthResponse(CamelModel):
    id: int
    username: str
    email: str
    role: Role
    token: str


class MeResponse(CamelModel):
    id: int
    username: str
    email: str | None = None
    role: Role


def _user_svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


def _auth_response(user) -> AuthResponse:
    return AuthResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        role=user.role,
        token=create_access_token(user),
    )


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, svc: UserService = Depends(_user_svc)):
    """Login with username and password → identity + JWT."""
    user = await svc.authenticate(body.username, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid username or password")
    return _auth_response(user)


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=AuthResponse)
async def register(body: RegisterRequest, svc: UserService = Depends(_user_svc)):
    """Create a new account (always role User) and log it in."""
    try:
        user = await svc.register(body.username, body.email, body.password)
    except UsernameTaken:
        raise HTTPException(status_code=400, detail="Username already exists")
    return _auth_response(user)


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=MeResponse)
async def get_me(identity: CurrentIdentity = Depends(get_current_user)):
    """Get the identity carried by the caller's token."""
    return MeResponse(
        id=identity.user_id,
        username=identity.username,
        email=identity.email,
        role=identity.role,
    )
