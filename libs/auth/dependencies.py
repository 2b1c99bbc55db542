from datetime import timedelta
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import ValidationError

from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.datetime_utils import unix_after

settings = get_settings()
security = HTTPBearer(auto_error=False)


def create_access_token(
    *, user_id: str, email: str, expires_delta: Optional[timedelta] = None
) -> tuple[str, int]:
    """
    Issue a signed access token for a user.

    Returns ``(token, expires_at)`` with ``expires_at`` as a unix timestamp.
    """
    exp = unix_after(
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload = {"sub": user_id, "email": email, "role": "customer", "exp": exp}
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return token, exp


async def get_current_user(
    token: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)]
) -> AuthUser:
    """
    Validate the bearer JWT and return the authenticated user.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Please authenticate",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if token is None:
        raise credentials_exception

    try:
        payload = jwt.decode(
            token.credentials,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
        return AuthUser(**payload)

    except (JWTError, ValidationError):
        raise credentials_exception
