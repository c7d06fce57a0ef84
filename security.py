import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Cookie, Response
from jose import jwt, JWTError
from passlib.context import CryptContext

from config import get_settings
from errors import UnauthorizedError
from schemas import SessionUser

logger = logging.getLogger(__name__)

COOKIE_NAME = "token"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ===== PASSWORDS =====
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


# ===== TOKENS =====
def create_access_token(user_id: int, expires_minutes: Optional[int] = None) -> str:
    settings = get_settings()
    if expires_minutes is None:
        expires_minutes = settings.access_token_expire_minutes
    issued_at = datetime.utcnow()
    to_encode = {
        "sub": str(user_id),
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> SessionUser:
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        logger.debug("JWT verification failed: %s", exc)
        raise UnauthorizedError("Unauthorized: Invalid token") from exc

    sub = payload.get("sub")
    if not sub or not str(sub).isdigit():
        raise UnauthorizedError("Unauthorized: Invalid token")
    return SessionUser(id=int(sub), iat=payload.get("iat"), exp=payload.get("exp"))


# ===== COOKIE =====
def _cookie_options() -> dict:
    settings = get_settings()
    return {
        "httponly": True,
        "secure": settings.is_production,
        "samesite": "none" if settings.is_production else "lax",
    }


def set_session_cookie(response: Response, token: str) -> None:
    max_age = get_settings().access_token_expire_minutes * 60
    response.set_cookie(COOKIE_NAME, token, max_age=max_age, **_cookie_options())


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(COOKIE_NAME, **_cookie_options())


# ===== SESSION GUARD =====
def get_current_user(token: Optional[str] = Cookie(None)) -> SessionUser:
    if not token:
        raise UnauthorizedError("Unauthorized: No token found")
    return decode_access_token(token)
