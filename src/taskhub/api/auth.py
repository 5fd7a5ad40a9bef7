"""Auth API: registration, login, token refresh, self profile.

- POST /auth/register → create account, returns user + token pair
- POST /auth/login → email/password → user + token pair
- POST /auth/refresh → refresh token → new access token (role re-read)
- GET /auth/me → current user's profile
- PUT /auth/me → change own username/email (never role)

Token fields are camelCase on the wire (accessToken, refreshToken).
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.auth.dependencies import Principal, get_current_principal
from taskhub.auth.jwt import (
    InvalidOrExpiredToken,
    issue_access_token,
    issue_refresh_token,
    verify_refresh_token,
)
from taskhub.config import settings
from taskhub.db.engine import get_db
from taskhub.db.models import User
from taskhub.errors import (
    DuplicateIdentity,
    Forbidden,
    NoFieldsToUpdate,
    NotFoundOrUnauthorized,
)
from taskhub.schemas.user import (
    EMAIL_PATTERN,
    USERNAME_PATTERN,
    ProfileUpdate,
    Role,
    UserRead,
)
from taskhub.services.user_service import UserService

logger = structlog.get_logger()

router = APIRouter(prefix="/auth")


# ─── Schemas ─────────────────────────────────────────────


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    email: str = Field(..., max_length=100, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6, max_length=128)
    role: Role = "user"

    model_config = {"extra": "forbid"}


class LoginRequest(BaseModel):
    email: str
    password: str


class AuthResponse(_CamelModel):
    user: UserRead
    access_token: str
    refresh_token: str


class RefreshRequest(_CamelModel):
    refresh_token: str


class AccessTokenResponse(_CamelModel):
    access_token: str


def _user_svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


def _auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        user=UserRead.model_validate(user),
        access_token=issue_access_token(user.id, user.role),
        refresh_token=issue_refresh_token(user.id),
    )


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(body: RegisterRequest, svc: UserService = Depends(_user_svc)):
    """Create a new account and log it in."""
    if body.role == "admin" and not settings.allow_admin_registration:
        raise HTTPException(
            status_code=403,
            detail="Admin accounts can only be created by an administrator",
        )

    try:
        user = await svc.create(
            username=body.username,
            email=body.email,
            password=body.password,
            role=body.role,
        )
    except DuplicateIdentity as e:
        raise HTTPException(status_code=400, detail=str(e))

    return _auth_response(user)


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, svc: UserService = Depends(_user_svc)):
    """Email + password → tokens. Same 401 for unknown email and bad password."""
    user = await svc.authenticate(body.email, body.password)
    if user is None:
        logger.info("auth.login_failed")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    logger.info("auth.login", user_id=user.id)
    return _auth_response(user)


# ─── Refresh ────────────────────────────────────────────


@router.post("/refresh", response_model=AccessTokenResponse)
async def refresh(body: RefreshRequest, svc: UserService = Depends(_user_svc)):
    """Exchange a refresh token for a new access token.

    The role in the new token comes from the database, never from the
    refresh token, so demotions and promotions apply here.
    """
    try:
        claims = verify_refresh_token(body.refresh_token)
    except InvalidOrExpiredToken as e:
        logger.debug("auth.refresh_rejected", reason=str(e))
        raise HTTPException(status_code=401, detail="Invalid or expired refresh token")

    user = await svc.find_by_id(claims.subject_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid or expired refresh token")

    return AccessTokenResponse(access_token=issue_access_token(user.id, user.role))


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=UserRead)
async def get_me(
    principal: Principal = Depends(get_current_principal),
    svc: UserService = Depends(_user_svc),
):
    """Get the current authenticated user's profile."""
    try:
        return await svc.get_user(principal, principal.id, self_profile=True)
    except NotFoundOrUnauthorized as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/me", response_model=UserRead)
async def update_me(
    body: ProfileUpdate,
    principal: Principal = Depends(get_current_principal),
    svc: UserService = Depends(_user_svc),
):
    """Change own username and/or email."""
    try:
        return await svc.update_user(
            principal, principal.id, body.to_changes(), self_profile=True
        )
    except (DuplicateIdentity, NoFieldsToUpdate) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Forbidden as e:
        raise HTTPException(status_code=403, detail=str(e))
    except NotFoundOrUnauthorized as e:
        raise HTTPException(status_code=404, detail=str(e))
