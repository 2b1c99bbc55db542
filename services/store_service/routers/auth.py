"""Auth router: registration and login."""

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import create_access_token
from libs.db.session import get_async_db
from services.store_service.models import User
from services.store_service.schemas import (
    AccessToken,
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    TokenBundle,
    UserResponse,
)
from services.store_service.services import identity_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(user: User) -> AuthResponse:
    token, expires = create_access_token(user_id=str(user.id), email=user.email)
    return AuthResponse(
        user=UserResponse.model_validate(user),
        tokens=TokenBundle(access=AccessToken(token=token, expires=expires)),
    )


@router.post(
    "/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """Create an account and return it with an access token."""
    user = await identity_ops.register_user(
        db, name=payload.name, email=payload.email, password=payload.password
    )
    return _auth_response(user)


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_async_db),
):
    user = await identity_ops.authenticate(
        db, email=payload.email, password=payload.password
    )
    return _auth_response(user)
