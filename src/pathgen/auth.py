"""Password hashing, session tokens and the current-user dependencies."""

import logging
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Optional, Tuple
from uuid import UUID

import jwt
from fastapi import Depends, Request, Response, status
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from pathgen.config import get_settings
from pathgen.db.base import get_db, utcnow
from pathgen.errors import AuthError
from pathgen.models import User

logger = logging.getLogger(__name__)
logging.getLogger("passlib").setLevel(logging.ERROR)


@lru_cache
def _pwd_context() -> CryptContext:
    settings = get_settings()
    return CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
        bcrypt__rounds=settings.bcrypt_rounds,
    )


def hash_password(password: str) -> str:
    return _pwd_context().hash(password)


@lru_cache
def dummy_password_hash() -> str:
    """A throwaway hash to verify against when no account matches."""
    return hash_password("pathgen-no-such-account")


def needs_rehash(password_hash: str) -> bool:
    """True when the hash was made with weaker settings than configured."""
    return _pwd_context().needs_update(password_hash)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return _pwd_context().verify(password, password_hash)
    except ValueError:
        # Unrecognized or corrupt hash
        return False


def create_session_token(user_id: UUID, email: str) -> Tuple[str, datetime]:
    """Issue a signed session token; returns the token and its expiry."""
    settings = get_settings()
    issued_at = utcnow()
    expires_at = issued_at + timedelta(hours=settings.session_ttl_hours)
    payload = {
        "sub": str(user_id),
        "email": email,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": issued_at,
        "exp": expires_at,
    }
    token = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return token, expires_at


def decode_session_token(token: str) -> UUID:
    """Validate a session token and return the user id it is bound to.

    Raises ``jwt.InvalidTokenError`` (or a subclass) for anything unusable.
    """
    settings = get_settings()
    payload = jwt.decode(
        token,
        settings.jwt_secret_key,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        issuer=settings.jwt_issuer,
    )
    subject = payload.get("sub")
    if not subject:
        raise jwt.InvalidTokenError("missing subject")
    try:
        return UUID(subject)
    except ValueError as exc:
        raise jwt.InvalidTokenError("malformed subject") from exc


def extract_token(request: Request) -> Optional[str]:
    """Read the credential from the Authorization header or the session cookie."""
    auth = request.headers.get("Authorization")
    if auth and auth.startswith("Bearer "):
        return auth.split(" ", 1)[1].strip() or None
    return request.cookies.get(get_settings().session_cookie_name)


def set_session_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_hours * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    settings = get_settings()
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
        path="/",
    )


def resolve_credential(token: str) -> UUID:
    """Map a presented credential to a user id, or raise a 403 ``AuthError``."""
    try:
        return decode_session_token(token)
    except jwt.ExpiredSignatureError:
        raise AuthError(
            "Session has expired",
            status_code=status.HTTP_403_FORBIDDEN,
            code="AUTH_EXPIRED",
        )
    except jwt.InvalidTokenError:
        raise AuthError(
            "Invalid session credential",
            status_code=status.HTTP_403_FORBIDDEN,
            code="AUTH_INVALID",
        )


async def get_current_user(request: Request) -> UUID:
    """Return the authenticated user id for the request.

    Prefers the value attached by ``AuthMiddleware``. No credential gives
    401; a credential that failed validation gives 403.
    """
    user_id = getattr(request.state, "user_id", None)
    if user_id is not None:
        return user_id

    auth_error = getattr(request.state, "auth_error", None)
    if auth_error is not None:
        raise auth_error

    token = extract_token(request)
    if not token:
        raise AuthError("Access denied: no session credential")
    return resolve_credential(token)


async def get_active_user(
    request: Request, db: AsyncSession = Depends(get_db)
) -> UUID:
    """Like ``get_current_user`` but the account must still exist.

    A valid token outlives its user when the account is deleted; such a
    credential gives 403.
    """
    user_id = await get_current_user(request)
    if await db.get(User, user_id) is None:
        logger.info("Session credential for missing user %s", user_id)
        raise AuthError(
            "Invalid session credential",
            status_code=status.HTTP_403_FORBIDDEN,
            code="AUTH_INVALID",
        )
    return user_id
