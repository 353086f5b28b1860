"""Registration, login and session endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from pathgen.auth import (
    clear_session_cookie,
    create_session_token,
    get_active_user,
    set_session_cookie,
)
from pathgen.db.base import get_db
from pathgen.models import User
from pathgen.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    SessionToken,
    UserProfile,
    UserPublic,
)
from pathgen.schemas.common import ErrorResponse
from pathgen.services.auth import AuthService

router = APIRouter(
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    }
)


def _session_response(user: User, response: Response) -> AuthResponse:
    token, expires_at = create_session_token(user.id, user.email)
    set_session_cookie(response, token)
    return AuthResponse(
        user=UserPublic.model_validate(user),
        session=SessionToken(access_token=token, expires_at=expires_at),
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    payload: RegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    """Create an account and start a session."""
    service = AuthService(db)
    user = await service.register(payload.email, payload.password)
    return _session_response(user, response)


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    """Exchange email and password for a new session."""
    service = AuthService(db)
    user = await service.login(payload.email, payload.password)
    return _session_response(user, response)


@router.post("/logout")
async def logout(response: Response) -> dict:
    """Clear the session cookie."""
    clear_session_cookie(response)
    return {}


@router.get("/me", response_model=UserProfile)
async def me(
    db: AsyncSession = Depends(get_db),
    user_id: UUID = Depends(get_active_user),
) -> UserProfile:
    service = AuthService(db)
    user = await service.get_user(user_id)
    return UserProfile.model_validate(user)
