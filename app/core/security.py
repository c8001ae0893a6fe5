"""
SkillPulse Security Module
JWT bearer token verification

Tokens are minted by the site's identity provider with the shared SECRET_KEY;
the subject claim is the user's email address.
"""
from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from app.core.config import settings

# Token URL belongs to the identity provider, documented for OpenAPI only
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create JWT access token

    Args:
        subject: Token subject (the user's email)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token
    """
    expire = datetime.utcnow() + (expires_delta or timedelta(hours=24))

    to_encode = {
        "exp": expire,
        "sub": str(subject),
        "iat": datetime.utcnow(),
    }

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[str]:
    """
    Decode and validate JWT token

    Returns:
        Subject (email) if valid, None otherwise
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

    subject = payload.get("sub")
    return subject.strip().lower() if subject else None


async def get_optional_user_email(token: Optional[str] = Depends(oauth2_scheme)) -> Optional[str]:
    """Email of the signed-in user, or None for anonymous requests."""
    if not token:
        return None
    return decode_access_token(token)


async def get_current_user_email(email: Optional[str] = Depends(get_optional_user_email)) -> str:
    """
    Dependency to get the current user's email from the bearer token

    Raises:
        HTTPException: If the token is missing or invalid
    """
    if email is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return email
