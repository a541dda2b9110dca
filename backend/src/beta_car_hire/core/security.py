"""
Password hashing, JWT handling and auth cookie helpers.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any

from fastapi import Request, Response
from jose import JWTError, jwt
from passlib.context import CryptContext

from beta_car_hire.core.config import get_config
from beta_car_hire.core.constants import TOKEN_COOKIE, SESSION_COOKIE, CHAT_COOKIE

config = get_config()
logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# bcrypt only looks at the first 72 bytes
BCRYPT_MAX_BYTES = 72


def _truncate_password(password: str) -> str:
    encoded = password.encode('utf-8')
    if len(encoded) > BCRYPT_MAX_BYTES:
        return encoded[:BCRYPT_MAX_BYTES].decode('utf-8', errors='ignore')
    return password


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    try:
        return pwd_context.verify(_truncate_password(plain_password), hashed_password)
    except ValueError as e:
        logger.error(f"Password verification error: {e}")
        return False


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(_truncate_password(password))


def create_access_token(
    user_id: str,
    session_id: Optional[str] = None,
    chat_id: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        user_id: Subject of the token
        session_id: Chat session opened at login, if any
        chat_id: Greeting chat of that session, if any
        expires_delta: Lifetime override

    Returns:
        Encoded JWT
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=config.security.access_token_expire_minutes)
    )
    to_encode: Dict[str, Any] = {"sub": user_id, "exp": expire}
    if session_id:
        to_encode["session_id"] = session_id
    if chat_id:
        to_encode["chat_id"] = chat_id
    return jwt.encode(to_encode, config.security.jwt_secret, algorithm=config.security.algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT.

    Raises:
        JWTError: If the token is malformed, badly signed, expired or has no subject
    """
    payload = jwt.decode(token, config.security.jwt_secret, algorithms=[config.security.algorithm])
    if not payload.get("sub"):
        raise JWTError("Token has no subject")
    return payload


def get_token_from_request(request: Request) -> Optional[str]:
    """Read the token cookie, falling back to an Authorization bearer header."""
    token = request.cookies.get(TOKEN_COOKIE)
    if token:
        return token

    authorization = request.headers.get("Authorization")
    if not authorization:
        return None
    try:
        scheme, value = authorization.split()
    except ValueError:
        return None
    if scheme.lower() != "bearer":
        return None
    return value


def set_auth_cookies(response: Response, token: str, session_id: str, chat_id: str) -> None:
    """Attach the token, session and chat cookies to a response."""
    options = {
        "httponly": True,
        "secure": config.is_production(),
        "samesite": "strict",
        "max_age": config.security.cookie_max_age_seconds,
    }
    response.set_cookie(TOKEN_COOKIE, token, **options)
    response.set_cookie(SESSION_COOKIE, session_id, **options)
    response.set_cookie(CHAT_COOKIE, chat_id, **options)


def clear_auth_cookies(response: Response) -> None:
    for name in (TOKEN_COOKIE, SESSION_COOKIE, CHAT_COOKIE):
        response.delete_cookie(
            name,
            httponly=True,
            secure=config.is_production(),
            samesite="strict",
        )
